"""
app/tasks/cleanup.py
Purge of expired upload-throttling rows.
To be called from APScheduler (hourly) or a cron job.
"""
from datetime import datetime, timedelta
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.database import SessionLocal
from app.models import ClientThrottling

logger = logging.getLogger(__name__)


def purge_stale_throttling(db: Session = None) -> int:
    """Deletes rows whose window has passed and that are not currently blocked."""
    owns_session = db is None
    db = db or SessionLocal()
    try:
        now = datetime.utcnow()
        cutoff = now - timedelta(seconds=settings.UPLOAD_THROTTLE_WINDOW_SECONDS)
        count = db.query(ClientThrottling).filter(
            or_(ClientThrottling.last_attempt == None, ClientThrottling.last_attempt < cutoff),
            or_(ClientThrottling.blocked_until == None, ClientThrottling.blocked_until < now),
        ).delete(synchronize_session=False)

        db.commit()
        logger.info(f"Cleanup: {count} throttling row(s) purged")
        return count

    except Exception:
        db.rollback()
        logger.exception("Throttling cleanup failed")
        raise
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    purge_stale_throttling()
