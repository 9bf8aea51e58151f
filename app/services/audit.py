from typing import Any, Dict, Optional
import logging
import uuid

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import UserAction

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    user,
    action: str,
    meta: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> None:
    """Write one user_actions row. A failed write is logged and never reaches the caller."""
    try:
        db.add(UserAction(
            id=str(uuid.uuid4()),
            user_id=getattr(user, "id", None),
            email=getattr(user, "email", None),
            action=action,
            meta=meta or {},
            ip=request.client.host if request is not None and request.client else None,
            ua=request.headers.get("user-agent") if request is not None else None,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Audit write failed for {action}: {e}")
