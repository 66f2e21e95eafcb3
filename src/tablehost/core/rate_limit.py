"""Rate limiting for public widget endpoints.

Widgets are embedded on restaurant websites and call the API without
credentials, so event ingestion and draft endpoints are throttled per client
IP. Uses Redis storage when REDIS_URL is configured (shared across API
replicas), otherwise per-process memory.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.tablehost.core.config import get_settings
from src.tablehost.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Rate limit by client IP only.

    Never include request-controlled values (tenant id, session id) in the
    key: rotating them would create unlimited fresh buckets.
    """
    return get_remote_address(request) or "unknown"


def widget_event_limit() -> str:
    """Limit string for event ingestion, read at request time."""
    return get_settings().widget_event_rate_limit


def create_limiter() -> Limiter:
    """Create the limiter. Disabled in the testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    # slowapi talks to Redis synchronously, so the plain redis:// URI is used
    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


# Settings are read once at import; changing limits requires a restart
limiter = create_limiter()
