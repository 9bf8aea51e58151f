"""
app/routes/subscribers.py
Subscriber creation (internal / admin) and admin reporting.
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import Optional
import math

from app.database import get_db
from app.dependencies import require_admin, require_internal_or_admin
from app.errors import ValidationError
from app.models import Subscriber, SubscriptionStatus, User
from app.schemas import SubscriberCreate, SubscriberResponse
from app.services.email import send_welcome_email
from app.services.funnel import BillingDetails, promote_to_subscriber
from app.services.subscriptions import cancel_subscriber, subscribers_summary
from app.utils.request import clamp_limit

router = APIRouter()


@router.post("", status_code=201)
async def create_subscriber(
    data: SubscriberCreate,
    background_tasks: BackgroundTasks,
    caller: Optional[User] = Depends(require_internal_or_admin),
    db: Session = Depends(get_db),
):
    subscriber = promote_to_subscriber(db, data.lead_id, BillingDetails(
        plan_code=data.plan_code,
        currency=data.currency.upper(),
        amount_minor=data.amount_minor,
        sumit_customer_id=data.sumit_customer_id,
        sumit_payment_method=data.sumit_payment_method,
        sumit_subscription_id=data.sumit_subscription_id,
        email=data.email,
        charged_now=data.charged_now,
    ))
    background_tasks.add_task(send_welcome_email, subscriber)
    return {"subscriber": SubscriberResponse.model_validate(subscriber)}


@router.get("")
async def list_subscribers(
    page: int = 1,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = max(page, 1)
    limit = clamp_limit(limit)

    query = db.query(Subscriber)
    if status:
        try:
            query = query.filter(Subscriber.status == SubscriptionStatus(status).value)
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")

    total = query.count()
    subscribers = query.order_by(Subscriber.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "subscribers": [SubscriberResponse.model_validate(s) for s in subscribers],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/summary")
async def get_subscribers_summary(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return subscribers_summary(db)


@router.post("/{subscriber_id}/cancel")
async def cancel(
    subscriber_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    subscriber = cancel_subscriber(db, subscriber_id)
    return {"subscriber": SubscriberResponse.model_validate(subscriber)}
