"""
app/services/support.py
Support tickets and their message thread.
"""
from datetime import datetime
from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models import SenderType, SupportMessage, SupportTicket, TicketStatus, User

logger = logging.getLogger(__name__)

LAST_MESSAGE_MAX = 255


def _preview(text: Optional[str]) -> str:
    return (text or "")[:LAST_MESSAGE_MAX]


def find_user_id(db: Session, email: Optional[str], phone: Optional[str]) -> Optional[str]:
    criteria = []
    if email:
        criteria.append(User.email == email)
    if phone:
        criteria.append(User.phone == phone)
    if not criteria:
        return None
    user = db.query(User).filter(or_(*criteria)).first()
    return user.id if user else None


def create_ticket(
    db: Session,
    *,
    name: str,
    message: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    source_page: Optional[str] = None,
    tags: Optional[List[str]] = None,
    pipeline_stage: str = "lead",
    sent_at: Optional[datetime] = None,
    commit: bool = True,
) -> SupportTicket:
    """Ticket plus its first client message, written together."""
    if not email and not phone:
        raise ValidationError("email or phone is required")
    now = datetime.utcnow()
    ticket = SupportTicket(
        id=str(uuid.uuid4()),
        user_id=find_user_id(db, email, phone),
        name=name,
        email=email,
        phone=phone,
        source_page=source_page,
        last_message=_preview(message),
        status=TicketStatus.NEW.value,
        tags=list(tags or []),
        pipeline_stage=pipeline_stage,
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    db.add(SupportMessage(
        id=str(uuid.uuid4()),
        ticket_id=ticket.id,
        sender_type=SenderType.CLIENT.value,
        sender_name=name,
        message=message,
        created_at=sent_at or now,
    ))
    if commit:
        db.commit()
        db.refresh(ticket)
        logger.info(f"Support ticket created: {ticket.id} source={source_page}")
    return ticket


def add_message(
    db: Session,
    ticket_id: str,
    *,
    sender_type: str,
    message: str,
    sender_name: Optional[str] = None,
    sender_id: Optional[str] = None,
    file_url: Optional[str] = None,
    sent_at: Optional[datetime] = None,
    commit: bool = True,
) -> SupportMessage:
    try:
        sender = SenderType(sender_type)
    except ValueError:
        raise ValidationError("sender_type must be client or admin")

    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found")

    now = datetime.utcnow()
    msg = SupportMessage(
        id=str(uuid.uuid4()),
        ticket_id=ticket.id,
        sender_type=sender.value,
        sender_name=sender_name,
        sender_id=sender_id,
        message=message,
        file_url=file_url,
        created_at=sent_at or now,
    )
    db.add(msg)

    ticket.last_message = _preview(message)
    ticket.updated_at = now
    if sender == SenderType.ADMIN and ticket.status == TicketStatus.NEW.value:
        ticket.status = TicketStatus.IN_PROGRESS.value

    if commit:
        db.commit()
        db.refresh(msg)
    return msg


def list_tickets(
    db: Session,
    status: Optional[str] = None,
    pipeline_stage: Optional[str] = None,
    limit: int = 50,
) -> Tuple[List[Tuple[SupportTicket, int]], int]:
    """Returns ([(ticket, message_count)], total)."""
    counts = (
        db.query(SupportMessage.ticket_id, func.count(SupportMessage.id).label("message_count"))
        .group_by(SupportMessage.ticket_id)
        .subquery()
    )
    query = db.query(SupportTicket, func.coalesce(counts.c.message_count, 0)).outerjoin(
        counts, counts.c.ticket_id == SupportTicket.id
    )
    if status:
        query = query.filter(SupportTicket.status == status)
    if pipeline_stage:
        query = query.filter(SupportTicket.pipeline_stage == pipeline_stage)

    total = query.count()
    rows = query.order_by(SupportTicket.updated_at.desc()).limit(limit).all()
    return [(ticket, int(count)) for ticket, count in rows], total


def update_ticket(
    db: Session,
    ticket_id: str,
    *,
    status: Optional[str] = None,
    tags: Optional[List[str]] = None,
    pipeline_stage: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> SupportTicket:
    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found")

    if status is not None:
        try:
            ticket.status = TicketStatus(status).value
        except ValueError:
            raise ValidationError(f"Unknown ticket status: {status}")
    if tags is not None:
        ticket.tags = list(tags)
    if pipeline_stage is not None:
        ticket.pipeline_stage = pipeline_stage
    if assigned_to is not None:
        ticket.assigned_to = assigned_to or None
    ticket.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(ticket)
    return ticket


def get_thread(db: Session, ticket_id: str) -> Tuple[SupportTicket, List[SupportMessage]]:
    ticket = db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found")
    messages = (
        db.query(SupportMessage)
        .filter(SupportMessage.ticket_id == ticket_id)
        .order_by(SupportMessage.created_at.asc())
        .all()
    )
    return ticket, messages
