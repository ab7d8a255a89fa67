# backend/portfolio_analytics/middleware/rate_limit.py
"""
Rate limiting for API protection.

slowapi limits keyed by client IP. Analytics endpoints replay every lot on
every cached price date, so they get a tighter limit than plain reads.

Limits live in services/constants.py. RATE_LIMIT_ENABLED=false (forced in
the test environment) turns every limit off.

Key by: Client IP address (X-Forwarded-For only from trusted proxies)
Storage: In-memory (single instance)

Usage:
    from portfolio_analytics.middleware.rate_limit import limiter, RATE_LIMIT_ANALYTICS

    @router.get("/summary")
    @limiter.limit(RATE_LIMIT_ANALYTICS)
    def get_summary(request: Request):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_analytics.config import settings
from portfolio_analytics.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_ANALYTICS,
)

logger = logging.getLogger(__name__)

# Seconds a limited client is told to wait
RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    """
    Whether forwarding headers on this request may be believed.

    True when TRUST_PROXY_HEADERS is set (behind a load balancer) or the
    immediate peer is one of TRUSTED_PROXY_IPS.
    """
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    X-Forwarded-For (first entry) and X-Real-IP are honoured only from
    trusted proxies, so clients cannot pick their own key.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard error envelope, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(
        f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {
                "retry_after": RETRY_AFTER_SECONDS,
            },
        },
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
        },
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_ANALYTICS",
]
