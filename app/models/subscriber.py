from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import validates
from datetime import datetime
import enum
from app.database import Base
from app.errors import ValidationError


class SubscriptionStatus(str, enum.Enum):
    TRIAL_ACTIVE = "trial_active"
    ACTIVE       = "active"
    PAST_DUE     = "past_due"
    CANCELED     = "canceled"


class Subscriber(Base):
    __tablename__ = "subscribers"
    __table_args__ = (
        CheckConstraint("amount_minor >= 0", name="ck_subscribers_amount_minor_non_negative"),
    )

    subscriber_id = Column(String, primary_key=True, index=True)

    # Weak back-reference to the originating lead (lookup key, no FK). One subscriber per lead
    lead_id       = Column(String, nullable=True, unique=True, index=True)

    # Customer
    email         = Column(String, nullable=False, index=True)
    full_name     = Column(String, nullable=True)

    # Billing: amounts in minor currency units (agorot / cents)
    plan_code     = Column(String, nullable=False)
    currency      = Column(String, nullable=False, default="USD")
    amount_minor  = Column(Integer, nullable=False, default=0)
    status        = Column(String, nullable=False, default=SubscriptionStatus.TRIAL_ACTIVE.value, index=True)

    # SUMIT identity
    sumit_customer_id     = Column(String, nullable=False, unique=True, index=True)
    sumit_payment_method  = Column(String, nullable=True)
    sumit_subscription_id = Column(String, nullable=True)

    # Lifecycle
    trial_start            = Column(DateTime, nullable=True)
    trial_end              = Column(DateTime, nullable=True)
    last_charge_at         = Column(DateTime, nullable=True)
    canceled_at            = Column(DateTime, nullable=True)
    trial_reminder_sent_at = Column(DateTime, nullable=True)

    created_at    = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at    = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("amount_minor")
    def _validate_amount_minor(self, key, value):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError("amount_minor must be a non-negative integer")
        return value
