from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.limiter import limiter
from app.schemas import CtaClickIn, CtaClickResponse
from app.services.tracking import record_cta_click
from app.utils.request import client_ip

router = APIRouter()


@router.post("", status_code=201)
@limiter.limit("60/minute")
async def track_cta_click(request: Request, data: CtaClickIn, db: Session = Depends(get_db)):
    click = record_cta_click(
        db,
        button_name=data.button_name,
        page_url=data.page_url,
        device_type=data.device_type,
        user_agent=data.user_agent or request.headers.get("user-agent"),
        session_id=data.session_id,
        user_id=data.user_id,
        ip_address=client_ip(request),
        referrer=data.referrer or request.headers.get("referer"),
    )
    return {"click": CtaClickResponse.model_validate(click)}
