from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
import hmac
import logging

from app.config import settings
from app.database import get_db
from app.errors import AuthorizationError, ValidationError
from app.dependencies import require_admin
from app.models import User
from app.schemas import WhatsAppSend
from app.services import whatsapp

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(request: Request):
    params = request.query_params
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token") or ""
    challenge = params.get("hub.challenge") or ""

    if (
        mode == "subscribe"
        and settings.WHATSAPP_VERIFY_TOKEN
        and hmac.compare_digest(token, settings.WHATSAPP_VERIFY_TOKEN)
    ):
        logger.info("WhatsApp webhook verified")
        return PlainTextResponse(challenge)
    raise AuthorizationError("Webhook verification failed")


@router.post("/webhook")
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object")

    messages = whatsapp.extract_messages(payload)
    for m in messages:
        ticket = whatsapp.record_inbound_message(db, m["phone"], m["name"], m["text"], m["sent_at"])
        logger.info(f"WhatsApp message from {m['phone']} stored on ticket {ticket.id}")
    return {"status": "ok"}


@router.post("/send")
async def send_message(data: WhatsAppSend, current_user: User = Depends(require_admin)):
    provider_response = whatsapp.send_text(data.to, data.message)
    return {"status": "sent", "provider_response": provider_response}
