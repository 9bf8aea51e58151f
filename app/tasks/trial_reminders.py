"""
app/tasks/trial_reminders.py
Reminder email before the end of a trial. Scheduled daily from main.py.
"""
from datetime import datetime, timedelta
import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.database import SessionLocal
from app.models import Subscriber, SubscriptionStatus
from app.services.email import send_trial_reminder

logger = logging.getLogger(__name__)


def send_trial_reminders(db: Session = None) -> int:
    """Emails trial subscribers ending within TRIAL_REMINDER_DAYS, once each."""
    owns_session = db is None
    db = db or SessionLocal()
    try:
        now = datetime.utcnow()
        due = db.query(Subscriber).filter(
            Subscriber.status == SubscriptionStatus.TRIAL_ACTIVE.value,
            Subscriber.trial_end != None,
            Subscriber.trial_end > now,
            Subscriber.trial_end <= now + timedelta(days=settings.TRIAL_REMINDER_DAYS),
            Subscriber.trial_reminder_sent_at == None,
        ).all()

        count = 0
        for subscriber in due:
            if send_trial_reminder(subscriber) is None:
                logger.warning(f"Trial reminder not sent to {subscriber.email}")
                continue
            subscriber.trial_reminder_sent_at = now
            count += 1

        db.commit()
        logger.info(f"Trial reminders: {count} sent")
        return count

    except Exception:
        db.rollback()
        logger.exception("Trial reminder run failed")
        raise
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    send_trial_reminders()
