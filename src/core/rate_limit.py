from slowapi import Limiter
from slowapi.util import get_remote_address

from core import settings


# ============================================================================
# Rate Limiter Setup
# ============================================================================
# Redis-backed in deployments; RATE_LIMIT_STORAGE_URI=memory:// for tests
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.limiter_storage_uri,
    default_limits=[settings.rate_limit_default],  # Global rate limit
    enabled=settings.rate_limit_enabled,
)
