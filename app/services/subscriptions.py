"""
app/services/subscriptions.py
Subscriber status machine. Every change to Subscriber.status goes through
transition_status().
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple
import hashlib
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import InvalidTransition, NotFoundError
from app.models import BillingEvent, EventOutcome, Subscriber, SubscriptionStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    SubscriptionStatus.TRIAL_ACTIVE: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.ACTIVE:       {SubscriptionStatus.PAST_DUE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.PAST_DUE:     {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED},
    SubscriptionStatus.CANCELED:     set(),
}

# Provider event type -> target status
EVENT_STATUS_MAP = {
    "charge.succeeded":       SubscriptionStatus.ACTIVE,
    "payment.succeeded":      SubscriptionStatus.ACTIVE,
    "charge.failed":          SubscriptionStatus.PAST_DUE,
    "payment.failed":         SubscriptionStatus.PAST_DUE,
    "subscription.canceled":  SubscriptionStatus.CANCELED,
    "subscription.cancelled": SubscriptionStatus.CANCELED,
}

CHARGE_SUCCEEDED_EVENTS = {"charge.succeeded", "payment.succeeded"}


def transition_status(sub: Subscriber, target, *, at: Optional[datetime] = None) -> bool:
    """Move sub to target. Returns False for a same-state no-op, raises InvalidTransition if illegal."""
    target = SubscriptionStatus(target)
    current = SubscriptionStatus(sub.status)
    if current == target:
        return False
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move subscriber from {current.value} to {target.value}")

    at = at or datetime.utcnow()
    sub.status = target.value
    sub.updated_at = at
    if target == SubscriptionStatus.CANCELED:
        sub.canceled_at = at
    logger.info(f"Subscriber {sub.subscriber_id}: {current.value} -> {target.value}")
    return True


def cancel_subscriber(db: Session, subscriber_id: str) -> Subscriber:
    sub = db.query(Subscriber).filter(Subscriber.subscriber_id == subscriber_id).first()
    if sub is None:
        raise NotFoundError("Subscriber not found")
    transition_status(sub, SubscriptionStatus.CANCELED)
    db.commit()
    db.refresh(sub)
    return sub


# ─── Webhook ─────────────────────────────────────────────────────────────────

def event_dedup_key(raw_body: bytes, payload: Dict[str, Any]) -> str:
    """Provider event id when present. Otherwise a hash of the body, so two byte-identical id-less deliveries count as one."""
    key = payload.get("id") or payload.get("event_id")
    if key:
        return str(key)
    return hashlib.sha256(raw_body).hexdigest()


def _payload_value(payload: Dict[str, Any], *keys):
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
        if data.get(key) is not None:
            return data[key]
    return None


def _target_status(event_type: Optional[str], payload: Dict[str, Any]) -> Optional[SubscriptionStatus]:
    if event_type in EVENT_STATUS_MAP:
        return EVENT_STATUS_MAP[event_type]
    status = _payload_value(payload, "status")
    try:
        return SubscriptionStatus(status) if status else None
    except ValueError:
        return None


def _apply_charge(sub: Subscriber, payload: Dict[str, Any], at: datetime):
    sub.last_charge_at = at
    sub.updated_at = at
    amount = _payload_value(payload, "amount_minor", "amount")
    if isinstance(amount, int) and not isinstance(amount, bool) and amount >= 0:
        sub.amount_minor = amount
    currency = _payload_value(payload, "currency")
    if currency:
        sub.currency = str(currency).upper()


def apply_billing_event(db: Session, raw_body: bytes, payload: Dict[str, Any]) -> Tuple[Optional[str], bool]:
    """
    Process one provider delivery. Returns (outcome, duplicate); outcome is None for a replay.

    A replayed event (same dedup key) changes nothing. An illegal transition
    is recorded as rejected rather than raised, so the provider stops retrying.
    """
    event_id = event_dedup_key(raw_body, payload)
    if db.query(BillingEvent).filter(BillingEvent.event_id == event_id).first() is not None:
        logger.info(f"Billing event {event_id} already processed")
        return None, True

    event_type = _payload_value(payload, "type", "event_type")
    customer_id = _payload_value(payload, "customer_id", "customerId")
    now = datetime.utcnow()

    sub = None
    if customer_id:
        sub = db.query(Subscriber).filter(Subscriber.sumit_customer_id == str(customer_id)).first()

    target = _target_status(event_type, payload)
    if target is None:
        outcome = EventOutcome.IGNORED
    elif sub is None:
        outcome = EventOutcome.UNMATCHED
    else:
        try:
            changed = transition_status(sub, target, at=now)
        except InvalidTransition as e:
            logger.warning(f"Billing event {event_id} rejected: {e.message}")
            outcome = EventOutcome.REJECTED
        else:
            if event_type in CHARGE_SUCCEEDED_EVENTS:
                _apply_charge(sub, payload, now)
            outcome = EventOutcome.APPLIED if changed else EventOutcome.UNCHANGED

    db.add(BillingEvent(
        id=str(uuid.uuid4()),
        event_id=event_id,
        event_type=event_type,
        customer_id=str(customer_id) if customer_id else None,
        payload=payload,
        outcome=outcome.value,
        received_at=now,
    ))
    try:
        db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event won the insert
        db.rollback()
        logger.info(f"Billing event {event_id} already processed")
        return None, True

    logger.info(f"Billing event {event_id} type={event_type} outcome={outcome.value}")
    return outcome.value, False


# ─── Reporting ───────────────────────────────────────────────────────────────

def subscribers_summary(db: Session, expiring_within_days: int = 7) -> dict:
    now = datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    def _count(*criteria) -> int:
        return db.query(func.count(Subscriber.subscriber_id)).filter(*criteria).scalar() or 0

    mrr = (
        db.query(func.coalesce(func.sum(Subscriber.amount_minor), 0))
        .filter(Subscriber.status == SubscriptionStatus.ACTIVE.value)
        .scalar()
    )

    return {
        "new_today": _count(Subscriber.created_at >= today),
        "active_total": _count(Subscriber.status == SubscriptionStatus.ACTIVE.value),
        "trials_total": _count(Subscriber.status == SubscriptionStatus.TRIAL_ACTIVE.value),
        "trials_expiring_soon": _count(
            Subscriber.status == SubscriptionStatus.TRIAL_ACTIVE.value,
            Subscriber.trial_end != None,  # noqa: E711
            Subscriber.trial_end <= now + timedelta(days=expiring_within_days),
        ),
        "past_due_total": _count(Subscriber.status == SubscriptionStatus.PAST_DUE.value),
        "monthly_recurring_revenue_minor": int(mrr or 0),
    }
