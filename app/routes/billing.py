"""
app/routes/billing.py
SUMIT checkout and webhook.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session
import json
import logging

from app.config import settings
from app.database import get_db
from app.errors import AuthError, InvalidTransition, NotFoundError, ValidationError
from app.limiter import limiter
from app.models import Lead, LeadStage, Subscriber
from app.schemas import CheckoutRequest, SubscriberResponse
from app.services.email import send_welcome_email
from app.services.funnel import BillingDetails, promote_to_subscriber
from app.services.plans import get_plan
from app.services.subscriptions import apply_billing_event
from app.services.sumit import SumitClient, SumitCustomer, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()


def get_sumit_client() -> SumitClient:
    return SumitClient()


@router.post("/checkout", status_code=201)
@limiter.limit("10/minute")
async def checkout(
    request: Request,
    data: CheckoutRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sumit: SumitClient = Depends(get_sumit_client),
):
    plan = get_plan(data.plan_code)

    # Lead row stays locked until the promotion commits; validated before any charge
    lead = db.query(Lead).filter(Lead.lead_id == data.lead_id).with_for_update().first()
    if lead is None:
        raise NotFoundError("Lead not found")
    if lead.stage != LeadStage.PAYMENT_VIEWED.value:
        raise InvalidTransition(f"Lead is at stage {lead.stage}, expected {LeadStage.PAYMENT_VIEWED.value}")
    if db.query(Subscriber).filter(Subscriber.lead_id == lead.lead_id).first() is not None:
        raise InvalidTransition("Lead already promoted")

    email = data.email or lead.email
    if not email:
        raise ValidationError("email is required")

    charge = sumit.charge(
        SumitCustomer(
            full_name=data.full_name or lead.full_name or email,
            email=email,
            phone=data.phone or lead.phone,
        ),
        plan,
        data.single_use_token,
    )

    subscriber = promote_to_subscriber(db, lead.lead_id, BillingDetails(
        plan_code=plan.code,
        currency=plan.currency,
        amount_minor=plan.amount_minor,
        sumit_customer_id=charge.customer_id,
        sumit_payment_method=charge.payment_method_id,
        sumit_subscription_id=charge.subscription_id,
        email=email,
        full_name=data.full_name,
        charged_now=charge.charged_now,
    ))
    background_tasks.add_task(send_welcome_email, subscriber)
    return {"subscriber": SubscriberResponse.model_validate(subscriber)}


@router.post("/webhook")
async def sumit_webhook(request: Request, db: Session = Depends(get_db)):
    raw_body = await request.body()

    if settings.SUMIT_WEBHOOK_SECRET:
        signature = request.headers.get("x-sumit-signature")
        if not verify_webhook_signature(raw_body, signature, settings.SUMIT_WEBHOOK_SECRET):
            logger.warning("SUMIT webhook rejected: invalid signature")
            raise AuthError("Invalid signature")

    try:
        payload = json.loads(raw_body or b"null")
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object")

    outcome, duplicate = apply_billing_event(db, raw_body, payload)
    if duplicate:
        return {"status": "ok", "duplicate": True}
    return {"status": "ok", "outcome": outcome}
