"""
app/services/whatsapp.py
WhatsApp Business (Graph API): outbound text messages and inbound
messages folded into support tickets.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import re

import httpx
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import UpstreamError
from app.models import SenderType, SupportTicket
from app.services import support

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com"
COUNTRY_CODE = "972"


def normalize_phone(raw: str) -> str:
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == 10 and digits.startswith("0"):
        digits = COUNTRY_CODE + digits[1:]
    return digits


def send_text(to: str, message: str, transport: Optional[httpx.BaseTransport] = None) -> Dict[str, Any]:
    if not settings.WHATSAPP_ACCESS_TOKEN or not settings.WHATSAPP_PHONE_NUMBER_ID:
        raise UpstreamError("WhatsApp credentials not configured")

    phone = normalize_phone(to)
    url = f"{GRAPH_API_URL}/{settings.WHATSAPP_API_VERSION}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"
    try:
        with httpx.Client(timeout=10, transport=transport) as client:
            resp = client.post(
                url,
                json={
                    "messaging_product": "whatsapp",
                    "to": phone,
                    "type": "text",
                    "text": {"body": message},
                },
                headers={"Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}"},
            )
    except httpx.HTTPError as e:
        logger.error(f"WhatsApp send to {phone} failed: {e}")
        raise UpstreamError("Failed to send WhatsApp message")

    if resp.status_code >= 300:
        logger.error(f"WhatsApp send to {phone} failed {resp.status_code}: {resp.text[:500]}")
        raise UpstreamError("Failed to send WhatsApp message")

    logger.info(f"WhatsApp message sent to {phone}")
    return resp.json()


def record_inbound_message(
    db: Session,
    phone: str,
    name: Optional[str],
    text: str,
    sent_at: Optional[datetime] = None,
) -> SupportTicket:
    """Append the message to the newest ticket for this phone, or open a new one."""
    ticket = (
        db.query(SupportTicket)
        .filter(SupportTicket.phone == phone)
        .order_by(SupportTicket.created_at.desc())
        .first()
    )
    if ticket is None:
        ticket = support.create_ticket(
            db,
            name=name or phone,
            phone=phone,
            message=text,
            source_page="whatsapp",
            tags=["whatsapp"],
            pipeline_stage="lead",
            sent_at=sent_at,
        )
    else:
        support.add_message(
            db,
            ticket.id,
            sender_type=SenderType.CLIENT.value,
            sender_name=name or phone,
            message=text,
            sent_at=sent_at,
        )
    return ticket


def extract_messages(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten a Graph API webhook body into [{phone, name, text, sent_at}]."""
    found = []
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            if change.get("field") != "messages":
                continue
            value = change.get("value") or {}
            names = {
                c.get("wa_id"): (c.get("profile") or {}).get("name")
                for c in value.get("contacts") or []
            }
            for message in value.get("messages") or []:
                phone = message.get("from")
                if not phone:
                    continue
                text = (message.get("text") or {}).get("body") or f"[{message.get('type', 'message')}]"
                sent_at = None
                if message.get("timestamp"):
                    try:
                        sent_at = datetime.fromtimestamp(int(message["timestamp"]), timezone.utc).replace(tzinfo=None)
                    except (TypeError, ValueError):
                        sent_at = None
                found.append({
                    "phone": phone,
                    "name": names.get(phone) or next(iter(names.values()), None),
                    "text": text,
                    "sent_at": sent_at,
                })
    return found
