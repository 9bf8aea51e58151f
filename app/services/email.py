"""
app/services/email.py
Transactional email via Resend. Notifications never block the caller.
"""
from datetime import datetime
from typing import Optional
import html as _html
import logging

import resend

from app.config import settings
from app.errors import UpstreamError

logger = logging.getLogger(__name__)


def send_email(to, subject: str, html: str, *, raise_errors: bool = False) -> Optional[str]:
    """Returns the provider message id, "dev-mode" when no key is configured, or None on a swallowed failure."""
    if not settings.RESEND_API_KEY:
        logger.warning(f"RESEND_API_KEY missing, email not sent to {to}: {subject}")
        return "dev-mode"

    resend.api_key = settings.RESEND_API_KEY
    params = {
        "from": settings.EMAIL_FROM,
        "to": to if isinstance(to, list) else [to],
        "subject": subject,
        "html": html,
    }
    if settings.EMAIL_REPLY_TO:
        params["reply_to"] = settings.EMAIL_REPLY_TO

    try:
        result = resend.Emails.send(params)
    except Exception as e:
        logger.error(f"Email to {to} failed: {e}")
        if raise_errors:
            raise UpstreamError("Email provider failed")
        return None

    message_id = result.get("id") if isinstance(result, dict) else getattr(result, "id", None)
    logger.info(f"Email sent to {to}: {subject}")
    return message_id


# ─── Templates ───────────────────────────────────────────────────────────────

def _layout(body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1"></head>
<body style="margin:0;padding:0;background:#f7f5f2;font-family:Arial,sans-serif;">
  <div style="max-width:560px;margin:0 auto;padding:32px 24px;background:#ffffff;">
    <div style="font-size:22px;font-weight:800;letter-spacing:.04em;margin-bottom:24px;">
      SALON<span style="color:#b5838d;">OS</span>
    </div>
    {body}
    <p style="font-size:11px;color:#999;margin-top:28px;">SALONOS · support@salonos.ai</p>
  </div>
</body>
</html>"""


def _first_name(name: Optional[str]) -> str:
    return _html.escape(name.split()[0]) if name else "there"


def notify_new_ticket(ticket) -> Optional[str]:
    if not settings.SUPPORT_INBOX:
        logger.info("SUPPORT_INBOX not set, skipping ticket notification")
        return None
    body = f"""
    <p style="font-size:15px;">New support ticket from <strong>{_html.escape(ticket.name)}</strong></p>
    <p style="font-size:13px;color:#555;">
      Email: {_html.escape(ticket.email or "-")}<br>
      Phone: {_html.escape(ticket.phone or "-")}<br>
      Page: {_html.escape(ticket.source_page or "-")}
    </p>
    <blockquote style="border-left:3px solid #b5838d;margin:16px 0;padding:8px 14px;color:#333;">
      {_html.escape(ticket.last_message or "")}
    </blockquote>
    """
    return send_email(settings.SUPPORT_INBOX, f"New support ticket: {ticket.name}", _layout(body))


def send_welcome_email(subscriber) -> Optional[str]:
    trial_line = ""
    if subscriber.trial_end:
        trial_line = f"<p style=\"font-size:14px;\">Your free trial runs until <strong>{subscriber.trial_end:%d/%m/%Y}</strong>.</p>"
    body = f"""
    <p style="font-size:15px;">Hi {_first_name(subscriber.full_name)},</p>
    <p style="font-size:14px;line-height:1.6;">Welcome to SALONOS. Your <strong>{_html.escape(subscriber.plan_code)}</strong> plan is ready.</p>
    {trial_line}
    """
    return send_email(subscriber.email, "Welcome to SALONOS", _layout(body))


def send_trial_reminder(subscriber) -> Optional[str]:
    days_left = max((subscriber.trial_end - datetime.utcnow()).days, 0) if subscriber.trial_end else 0
    body = f"""
    <p style="font-size:15px;">Hi {_first_name(subscriber.full_name)},</p>
    <p style="font-size:14px;line-height:1.6;">
      Your SALONOS trial ends in <strong>{days_left} day(s)</strong>.
      Your card will be charged on <strong>{subscriber.trial_end:%d/%m/%Y}</strong> unless you cancel before then.
    </p>
    """
    return send_email(subscriber.email, "Your SALONOS trial is ending soon", _layout(body))
