"""
Rate Limiting & Throttling
Request throttling per client IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


# Rate limit definitions
SEARCH_LIMIT = "100/minute"
META_LIMIT = "300/minute"
HEALTH_LIMIT = "1000/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 JSON response when rate limit exceeded."""
    client_host = request.client.host if request.client else "unknown"
    logger.warning(f"Rate limit exceeded for {client_host}: {request.url.path} ({exc.detail})")

    return JSONResponse(
        status_code=429,
        content={"error": "too_many_requests", "retry_after": 60},
        headers={"Retry-After": "60"},
    )
