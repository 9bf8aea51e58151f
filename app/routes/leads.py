"""
app/routes/leads.py
Lead funnel: public stage submissions and admin reporting.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
import math

from app.database import get_db
from app.dependencies import require_admin
from app.errors import NotFoundError
from app.limiter import limiter
from app.models import Lead, User
from app.schemas import LeadEventIn, LeadResponse
from app.services import audit, notifications
from app.services.funnel import LeadAttributes, leads_summary, parse_stage, record_stage_event
from app.utils.request import clamp_limit, client_ip

router = APIRouter()


# ─── Public ──────────────────────────────────────────────────────────────────

@router.post("")
@limiter.limit("30/minute")
async def submit_lead_event(
    request: Request,
    response: Response,
    data: LeadEventIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    attributes = LeadAttributes(
        source_page=data.source_page,
        utm_source=data.utm_source,
        utm_medium=data.utm_medium,
        utm_campaign=data.utm_campaign,
        referrer=data.referrer or request.headers.get("referer"),
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
        email=data.email,
        full_name=data.full_name,
        phone=data.phone,
    )
    lead, created = record_stage_event(
        db,
        data.stage,
        lead_id=data.lead_id,
        session_id=data.session_id,
        attributes=attributes,
        meta=data.meta,
    )
    if created:
        response.status_code = 201
        background_tasks.add_task(notifications.post_lead_webhook, notifications.build_lead_payload(lead))

    return {"lead": LeadResponse.model_validate(lead), "updated": not created}


# ─── Admin ───────────────────────────────────────────────────────────────────

@router.get("")
async def list_leads(
    request: Request,
    page: int = 1,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    source: Optional[str] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    page = max(page, 1)
    limit = clamp_limit(limit)

    query = db.query(Lead)
    if status:
        query = query.filter(Lead.stage == parse_stage(status).value)
    if source:
        query = query.filter(Lead.source_page == source)

    total = query.count()
    leads = query.order_by(Lead.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    audit.log_action(db, current_user, "leads.list", {"page": page, "limit": limit, "status": status, "source": source}, request)

    return {
        "leads": [LeadResponse.model_validate(l) for l in leads],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/summary")
async def get_leads_summary(
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    summary = leads_summary(db)
    audit.log_action(db, current_user, "leads.summary", None, request)
    return summary


@router.get("/{lead_id}")
async def get_lead(
    lead_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    lead = db.query(Lead).filter(Lead.lead_id == lead_id).first()
    if lead is None:
        raise NotFoundError("Lead not found")
    return {"lead": LeadResponse.model_validate(lead)}
