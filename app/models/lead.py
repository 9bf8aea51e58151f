from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
import enum
from app.database import Base


class LeadStage(str, enum.Enum):
    CTA_CLICKED       = "cta_clicked"
    ACCOUNT_COMPLETED = "account_completed"
    ADDRESS_COMPLETED = "address_completed"
    PAYMENT_VIEWED    = "payment_viewed"


class Lead(Base):
    __tablename__ = "leads"

    lead_id      = Column(String, primary_key=True, index=True)
    session_id   = Column(String, nullable=True, index=True)

    # Attribution, written once at creation
    source_page  = Column(String, nullable=False, index=True)
    utm_source   = Column(String, nullable=True)
    utm_medium   = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    referrer     = Column(String, nullable=True)
    user_agent   = Column(String, nullable=True)
    ip_address   = Column(String, nullable=True)

    # Contact
    email        = Column(String, nullable=True, index=True)
    full_name    = Column(String, nullable=True)
    phone        = Column(String, nullable=True)

    # Funnel progression (stored as VARCHAR, validated against LeadStage)
    stage                = Column(String, nullable=False, default=LeadStage.CTA_CLICKED.value, index=True)
    cta_clicked_at       = Column(DateTime, nullable=True)
    account_completed_at = Column(DateTime, nullable=True)
    address_completed_at = Column(DateTime, nullable=True)
    payment_viewed_at    = Column(DateTime, nullable=True)

    # Append-only touch log: [{ts, step, meta?}, ...]
    events       = Column(JSON, nullable=False, default=list)

    created_at   = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at   = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
