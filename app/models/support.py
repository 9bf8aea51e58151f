from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from app.database import Base


class TicketStatus(str, enum.Enum):
    NEW         = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED    = "resolved"
    CLOSED      = "closed"


class SenderType(str, enum.Enum):
    CLIENT = "client"
    ADMIN  = "admin"


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id             = Column(String, primary_key=True, index=True)
    user_id        = Column(String, ForeignKey("users.id"), nullable=True)

    name           = Column(String, nullable=False)
    email          = Column(String, nullable=True, index=True)
    phone          = Column(String, nullable=True, index=True)
    source_page    = Column(String, nullable=True)

    last_message   = Column(String(255), nullable=True)
    status         = Column(String, nullable=False, default=TicketStatus.NEW.value, index=True)
    priority       = Column(String, nullable=False, default="medium")
    tags           = Column(JSON, nullable=False, default=list)
    pipeline_stage = Column(String, nullable=False, default="lead")
    assigned_to    = Column(String, ForeignKey("users.id"), nullable=True)

    created_at     = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at     = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship(
        "SupportMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="SupportMessage.created_at",
    )


class SupportMessage(Base):
    __tablename__ = "support_messages"

    id          = Column(String, primary_key=True, index=True)
    ticket_id   = Column(String, ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True)

    sender_type = Column(String, nullable=False)   # client | admin
    sender_name = Column(String, nullable=True)
    sender_id   = Column(String, ForeignKey("users.id"), nullable=True)
    message     = Column(Text, nullable=False)
    file_url    = Column(String, nullable=True)

    created_at  = Column(DateTime, default=datetime.utcnow)

    ticket = relationship("SupportTicket", back_populates="messages")
