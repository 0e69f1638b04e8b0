# File: app/core/ratelimit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

DEFAULT_LIMIT = f"{settings.rate_limit_max_requests} per {settings.rate_limit_window_seconds} seconds"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_LIMIT],
    enabled=settings.rate_limit_enabled,
)
