from slowapi import Limiter
from slowapi.util import get_remote_address

from docvault.core.config import settings


# ============================================================================
# Rate Limiter Setup
# ============================================================================
# In-memory storage by default, Redis in production via RATE_LIMIT_STORAGE_URI
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
