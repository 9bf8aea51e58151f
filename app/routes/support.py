"""
app/routes/support.py
Support tickets, message thread and attachment uploads.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_optional_user, require_admin
from app.errors import AuthError, AuthorizationError, NotFoundError
from app.limiter import limiter
from app.models import SenderType, SupportTicket, User, UserRole
from app.schemas import (
    AttachmentRequest, AttachmentResponse, MessageCreate, MessageResponse,
    TicketCreate, TicketListItem, TicketResponse, TicketUpdate,
)
from app.services import storage, support, throttling
from app.services.email import notify_new_ticket
from app.utils.request import clamp_limit, client_ip

router = APIRouter()


# ─── Tickets ─────────────────────────────────────────────────────────────────

@router.post("/tickets", status_code=201)
@limiter.limit("10/minute")
async def create_ticket(
    request: Request,
    data: TicketCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ticket = support.create_ticket(
        db,
        name=data.name,
        email=data.email,
        phone=data.phone,
        message=data.message,
        source_page=data.source_page,
    )
    background_tasks.add_task(notify_new_ticket, ticket)
    return {"ticket": TicketResponse.model_validate(ticket)}


@router.get("/tickets")
async def list_tickets(
    status: Optional[str] = None,
    pipeline_stage: Optional[str] = None,
    limit: Optional[int] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    rows, total = support.list_tickets(db, status=status, pipeline_stage=pipeline_stage, limit=clamp_limit(limit))
    tickets = [
        TicketListItem.model_validate(ticket).model_copy(update={"message_count": count})
        for ticket, count in rows
    ]
    return {"tickets": tickets, "total": total}


@router.patch("/tickets/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    data: TicketUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ticket = support.update_ticket(
        db,
        ticket_id,
        status=data.status,
        tags=data.tags,
        pipeline_stage=data.pipeline_stage,
        assigned_to=data.assigned_to,
    )
    return {"ticket": TicketResponse.model_validate(ticket)}


@router.post("/tickets/{ticket_id}/attachments", response_model=AttachmentResponse)
async def request_attachment_upload(
    ticket_id: str,
    request: Request,
    data: AttachmentRequest,
    db: Session = Depends(get_db),
):
    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found")

    key = throttling.contact_key(data.email, data.phone, client_ip(request))
    throttling.check_and_record(db, key)
    return storage.presign_attachment_upload(ticket.id, data.filename, data.content_type)


# ─── Messages ────────────────────────────────────────────────────────────────

@router.post("/messages", status_code=201)
@limiter.limit("30/minute")
async def post_message(
    request: Request,
    data: MessageCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    sender_id = None
    if data.sender_type == SenderType.ADMIN.value:
        if current_user is None:
            raise AuthError("Admin token required")
        if current_user.role != UserRole.ADMIN.value:
            raise AuthorizationError("Admin access required")
        sender_id = current_user.id

    message = support.add_message(
        db,
        data.ticket_id,
        sender_type=data.sender_type,
        sender_name=data.sender_name or (current_user.full_name if sender_id else None),
        sender_id=sender_id,
        message=data.message,
        file_url=data.file_url,
    )
    return {"message": MessageResponse.model_validate(message)}


@router.get("/messages")
async def get_messages(ticket_id: str, db: Session = Depends(get_db)):
    ticket, messages = support.get_thread(db, ticket_id)
    return {
        "ticket": TicketResponse.model_validate(ticket),
        "messages": [MessageResponse.model_validate(m) for m in messages],
    }
