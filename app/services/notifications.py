"""
app/services/notifications.py
Outbound lead webhook. Fire-and-forget: failures are logged, never raised.
"""
from typing import Any, Dict, Optional
import logging

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


def build_lead_payload(lead) -> Dict[str, Any]:
    return {
        "type": "lead.created",
        "source": lead.source_page,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
        "data": {
            "id": lead.lead_id,
            "full_name": lead.full_name,
            "email": lead.email,
            "phone": lead.phone,
            "stage": lead.stage,
            "source_page": lead.source_page,
            "utm_source": lead.utm_source,
            "utm_medium": lead.utm_medium,
            "utm_campaign": lead.utm_campaign,
            "referrer": lead.referrer,
            "ip_address": lead.ip_address,
            "user_agent": lead.user_agent,
        },
    }


def post_lead_webhook(payload: Dict[str, Any], transport: Optional[httpx.BaseTransport] = None) -> bool:
    url = settings.LEADS_WEBHOOK_URL
    if not url:
        return False
    try:
        with httpx.Client(timeout=5, transport=transport) as client:
            resp = client.post(url, json=payload)
        if resp.status_code >= 300:
            logger.warning(f"Lead webhook returned {resp.status_code}: {resp.text[:200]}")
            return False
        return True
    except httpx.HTTPError as e:
        logger.warning(f"Lead webhook failed: {e}")
        return False
