from datetime import datetime, timedelta
from typing import Optional
import logging
import uuid

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ThrottledError, ValidationError
from app.models import ClientThrottling

logger = logging.getLogger(__name__)


def contact_key(email: Optional[str], phone: Optional[str], ip: Optional[str]) -> str:
    for prefix, value in (("email", email), ("phone", phone), ("ip", ip)):
        if value:
            return f"{prefix}:{value.strip().lower()}"
    raise ValidationError("email, phone or client address is required")


def check_and_record(db: Session, key: str, now: Optional[datetime] = None) -> ClientThrottling:
    """Count one attempt for key; raises ThrottledError once the window allowance is spent."""
    now = now or datetime.utcnow()
    window = timedelta(seconds=settings.UPLOAD_THROTTLE_WINDOW_SECONDS)

    row = db.query(ClientThrottling).filter(ClientThrottling.contact_key == key).first()
    if row is None:
        row = ClientThrottling(id=str(uuid.uuid4()), contact_key=key, attempts=0)
        db.add(row)

    if row.blocked_until and row.blocked_until > now:
        raise ThrottledError("Too many upload attempts, try again later")

    if row.last_attempt and row.last_attempt > now - window:
        row.attempts = (row.attempts or 0) + 1
    else:
        row.attempts = 1
        row.blocked_until = None
    row.last_attempt = now

    if row.attempts > settings.UPLOAD_THROTTLE_ATTEMPTS:
        row.blocked_until = now + window
        db.commit()
        logger.warning(f"Upload throttled for {key}")
        raise ThrottledError("Too many upload attempts, try again later")

    db.commit()
    return row
