from sqlalchemy import Column, String, Integer, DateTime, JSON
from datetime import datetime
from app.database import Base


class CtaClick(Base):
    __tablename__ = "cta_clicks"

    id          = Column(String, primary_key=True, index=True)
    button_name = Column(String, nullable=False)
    page_url    = Column(String, nullable=False, index=True)
    device_type = Column(String, nullable=True)
    user_agent  = Column(String, nullable=True)
    session_id  = Column(String, nullable=True, index=True)
    user_id     = Column(String, nullable=True)
    ip_address  = Column(String, nullable=True)
    referrer    = Column(String, nullable=True)
    created_at  = Column(DateTime, default=datetime.utcnow, index=True)


class UserAction(Base):
    """Admin audit trail."""
    __tablename__ = "user_actions"

    id         = Column(String, primary_key=True, index=True)
    user_id    = Column(String, nullable=True, index=True)
    email      = Column(String, nullable=True)
    action     = Column(String, nullable=False)
    meta       = Column(JSON, nullable=True)
    ip         = Column(String, nullable=True)
    ua         = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ClientThrottling(Base):
    """Per-contact upload throttling (email, phone or IP)."""
    __tablename__ = "client_throttling"

    id            = Column(String, primary_key=True, index=True)
    contact_key   = Column(String, nullable=False, unique=True, index=True)
    attempts      = Column(Integer, nullable=False, default=0)
    last_attempt  = Column(DateTime, nullable=True)
    blocked_until = Column(DateTime, nullable=True)
