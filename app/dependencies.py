import hmac
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import AuthError, AuthorizationError
from app.models import User, UserRole
from app.utils.auth import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db: Session) -> User:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise AuthError("Invalid or expired token")

    # No session cache: the role is re-read on every request
    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None or not user.is_active:
        raise AuthError("Unknown or inactive user")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthError("Missing bearer token")
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    return _user_from_token(credentials.credentials, db)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin access required")
    return current_user


def require_internal_or_admin(
    x_internal_key: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_user),
) -> Optional[User]:
    """Server-to-server callers present X-Internal-Key; everyone else needs an admin token."""
    if x_internal_key and settings.INTERNAL_API_KEY:
        if hmac.compare_digest(x_internal_key, settings.INTERNAL_API_KEY):
            return None
        raise AuthError("Invalid internal key")
    if current_user is None:
        raise AuthError("Missing bearer token")
    if current_user.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin access required")
    return current_user
