"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)

# Reads include the day-group views clients poll while an entry is running.
READ_LIMIT = "60/minute"
WRITE_LIMIT = "30/minute"
