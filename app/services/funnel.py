"""
app/services/funnel.py
Lead funnel: stage validation, monotonic progression, event log and
promotion of a lead to a paying subscriber.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import InvalidStage, InvalidTransition, MissingAttribution, NotFoundError, ValidationError
from app.models import Lead, LeadStage, Subscriber, SubscriptionStatus

logger = logging.getLogger(__name__)

STAGE_ORDER: List[LeadStage] = [
    LeadStage.CTA_CLICKED,
    LeadStage.ACCOUNT_COMPLETED,
    LeadStage.ADDRESS_COMPLETED,
    LeadStage.PAYMENT_VIEWED,
]

# Stage -> timestamp column on Lead
STAGE_TIMESTAMPS = {
    LeadStage.CTA_CLICKED:       "cta_clicked_at",
    LeadStage.ACCOUNT_COMPLETED: "account_completed_at",
    LeadStage.ADDRESS_COMPLETED: "address_completed_at",
    LeadStage.PAYMENT_VIEWED:    "payment_viewed_at",
}


@dataclass(frozen=True)
class LeadAttributes:
    """Attribution and contact fields carried by a funnel submission."""
    source_page: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class BillingDetails:
    """What the billing provider returned for a lead that paid (or started a trial)."""
    plan_code: str
    currency: str
    amount_minor: int
    sumit_customer_id: str
    sumit_payment_method: Optional[str] = None
    sumit_subscription_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    charged_now: bool = False


def parse_stage(value: Optional[str]) -> LeadStage:
    if value is None:
        return LeadStage.CTA_CLICKED
    try:
        return LeadStage(value)
    except ValueError:
        raise InvalidStage(f"Unknown stage: {value}")


def stage_index(stage) -> int:
    return STAGE_ORDER.index(LeadStage(stage))


def _find_lead(db: Session, lead_id: Optional[str], session_id: Optional[str]) -> Optional[Lead]:
    if lead_id:
        lead = db.query(Lead).filter(Lead.lead_id == lead_id).first()
        if lead is None:
            raise NotFoundError("Lead not found")
        return lead
    if session_id:
        return (
            db.query(Lead)
            .filter(Lead.session_id == session_id)
            .order_by(Lead.created_at.desc())
            .first()
        )
    return None


def record_stage_event(
    db: Session,
    stage: Optional[str],
    *,
    lead_id: Optional[str] = None,
    session_id: Optional[str] = None,
    attributes: Optional[LeadAttributes] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Tuple[Lead, bool]:
    """
    Record one funnel touch for a lead, creating the lead on first contact.

    Returns (lead, created). The stage only ever moves forward; every call
    appends exactly one entry to lead.events.
    """
    target = parse_stage(stage)
    attributes = attributes or LeadAttributes()
    now = datetime.utcnow()

    lead = _find_lead(db, lead_id, session_id)
    if lead is None and not attributes.source_page:
        raise MissingAttribution("source_page is required to create a lead")

    email = attributes.email or (lead.email if lead is not None else None)
    if stage_index(target) >= stage_index(LeadStage.ACCOUNT_COMPLETED) and not email:
        raise ValidationError(f"email is required from stage {LeadStage.ACCOUNT_COMPLETED.value}")

    created = False
    if lead is None:
        lead = Lead(
            lead_id=str(uuid.uuid4()),
            session_id=session_id,
            source_page=attributes.source_page,
            utm_source=attributes.utm_source,
            utm_medium=attributes.utm_medium,
            utm_campaign=attributes.utm_campaign,
            referrer=attributes.referrer,
            user_agent=attributes.user_agent,
            ip_address=attributes.ip_address,
            stage=LeadStage.CTA_CLICKED.value,
            cta_clicked_at=now,
            events=[],
            created_at=now,
        )
        db.add(lead)
        created = True

    # Contact fields: fill, never blank
    for field in ("email", "full_name", "phone"):
        value = getattr(attributes, field)
        if value:
            setattr(lead, field, value)

    advanced = stage_index(target) > stage_index(lead.stage)
    if advanced:
        lead.stage = target.value
        setattr(lead, STAGE_TIMESTAMPS[target], now)

    event = {"ts": now.isoformat(), "step": target.value}
    if meta:
        event["meta"] = meta
    # Reassign so the JSON column is flagged dirty
    lead.events = list(lead.events or []) + [event]
    lead.updated_at = now

    db.commit()
    db.refresh(lead)

    if created:
        logger.info(f"Lead created: {lead.lead_id} source={lead.source_page} stage={lead.stage}")
    elif advanced:
        logger.info(f"Lead advanced: {lead.lead_id} -> {lead.stage}")
    return lead, created


def promote_to_subscriber(db: Session, lead_id: str, billing: BillingDetails) -> Subscriber:
    lead = db.query(Lead).filter(Lead.lead_id == lead_id).first()
    if lead is None:
        raise NotFoundError("Lead not found")
    if lead.stage != LeadStage.PAYMENT_VIEWED.value:
        raise InvalidTransition(f"Lead is at stage {lead.stage}, expected {LeadStage.PAYMENT_VIEWED.value}")

    existing = db.query(Subscriber).filter(Subscriber.lead_id == lead_id).first()
    if existing is not None:
        raise InvalidTransition("Lead already promoted")

    amount = billing.amount_minor
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError("amount_minor must be a non-negative integer")
    if not billing.sumit_customer_id:
        raise ValidationError("sumit_customer_id is required")

    email = billing.email or lead.email
    if not email:
        raise ValidationError("email is required")

    now = datetime.utcnow()
    subscriber = Subscriber(
        subscriber_id=str(uuid.uuid4()),
        lead_id=lead.lead_id,
        email=email,
        full_name=billing.full_name or lead.full_name,
        plan_code=billing.plan_code,
        currency=billing.currency,
        amount_minor=amount,
        sumit_customer_id=billing.sumit_customer_id,
        sumit_payment_method=billing.sumit_payment_method,
        sumit_subscription_id=billing.sumit_subscription_id,
        trial_start=now,
        created_at=now,
    )
    if billing.charged_now:
        subscriber.status = SubscriptionStatus.ACTIVE.value
        subscriber.last_charge_at = now
    else:
        subscriber.status = SubscriptionStatus.TRIAL_ACTIVE.value
        subscriber.trial_end = now + timedelta(days=settings.TRIAL_DAYS)

    db.add(subscriber)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent promotion of the same lead (or customer) won the insert
        db.rollback()
        logger.warning(f"Duplicate promotion rejected for lead {lead_id}")
        raise InvalidTransition("Lead already promoted")
    db.refresh(subscriber)
    logger.info(f"Subscriber created: {subscriber.subscriber_id} lead={lead.lead_id} status={subscriber.status}")
    return subscriber


# ─── Reporting ───────────────────────────────────────────────────────────────

def _rate(numerator: int, denominator: int) -> float:
    if not denominator:
        return 0.0
    return round(numerator * 100.0 / denominator, 2)


def leads_summary(db: Session) -> dict:
    """Stage counts, period totals and per-source conversion rates."""
    now = datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    rows = (
        db.query(Lead.source_page, Lead.stage, func.count(Lead.lead_id))
        .group_by(Lead.source_page, Lead.stage)
        .all()
    )

    # reached[source][i] = leads from that source that got at least to STAGE_ORDER[i]
    reached: Dict[str, List[int]] = {}
    totals = [0] * len(STAGE_ORDER)
    for source_page, stage, count in rows:
        per_source = reached.setdefault(source_page, [0] * len(STAGE_ORDER))
        for i in range(stage_index(stage) + 1):
            per_source[i] += count
            totals[i] += count

    def _count_since(since: datetime) -> int:
        return db.query(func.count(Lead.lead_id)).filter(Lead.created_at >= since).scalar() or 0

    funnel = []
    for source_page in sorted(reached):
        cta, account, address, payment = reached[source_page]
        funnel.append({
            "source_page": source_page,
            "cta_clicks": cta,
            "accounts_completed": account,
            "addresses_completed": address,
            "payments_viewed": payment,
            "cta_to_account_rate": _rate(account, cta),
            "account_to_address_rate": _rate(address, account),
            "address_to_payment_rate": _rate(payment, address),
        })

    return {
        "leads": {
            "total_leads": totals[0],
            "stage_1_cta": totals[0],
            "stage_2_account": totals[1],
            "stage_3_address": totals[2],
            "stage_4_payment": totals[3],
            "today_total": _count_since(today),
            "week_total": _count_since(now - timedelta(days=7)),
            "month_total": _count_since(now - timedelta(days=30)),
        },
        "funnel": funnel,
    }
