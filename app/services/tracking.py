from typing import Optional
import logging
import uuid

from sqlalchemy.orm import Session

from app.models import CtaClick

logger = logging.getLogger(__name__)


def detect_device(user_agent: Optional[str]) -> str:
    ua = (user_agent or "").lower()
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "mobile"
    if "tablet" in ua or "ipad" in ua:
        return "tablet"
    return "desktop"


def record_cta_click(
    db: Session,
    *,
    button_name: str,
    page_url: str,
    device_type: Optional[str] = None,
    user_agent: Optional[str] = None,
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    referrer: Optional[str] = None,
) -> CtaClick:
    click = CtaClick(
        id=str(uuid.uuid4()),
        button_name=button_name,
        page_url=page_url,
        device_type=device_type or detect_device(user_agent),
        user_agent=user_agent,
        session_id=session_id,
        user_id=user_id,
        ip_address=ip_address,
        referrer=referrer,
    )
    db.add(click)
    db.commit()
    db.refresh(click)
    logger.info(f"CTA click: {button_name} on {page_url} ({click.device_type})")
    return click
