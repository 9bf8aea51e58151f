from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

# Shared by main.py (app.state.limiter) and every router that decorates endpoints
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
