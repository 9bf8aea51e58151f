from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
import enum
from app.database import Base


class EventOutcome(str, enum.Enum):
    APPLIED   = "applied"     # subscriber status changed
    UNCHANGED = "unchanged"   # matched, same status (e.g. renewal charge)
    REJECTED  = "rejected"    # illegal transition for the current status
    UNMATCHED = "unmatched"   # no subscriber for customer_id
    IGNORED   = "ignored"     # event type carries no status


class BillingEvent(Base):
    """Raw SUMIT webhook deliveries. event_id is the dedup key."""
    __tablename__ = "billing_events"

    id          = Column(String, primary_key=True, index=True)
    event_id    = Column(String, nullable=False, unique=True, index=True)
    event_type  = Column(String, nullable=True)
    customer_id = Column(String, nullable=True, index=True)
    payload     = Column(JSON, nullable=False)
    outcome     = Column(String, nullable=False)
    received_at = Column(DateTime, default=datetime.utcnow)
