# fund_positions/middleware/rate_limit.py
"""
Rate limiting for the fund positions API (slowapi).

Key by: Client IP address (forwarding headers only from trusted proxies)
Storage: In-memory (single instance)

Limits are defined in fund_positions/services/constants.py. Disable with
RATE_LIMIT_ENABLED=false (the test suite does).

Usage:
    from fund_positions.middleware.rate_limit import limiter, RATE_LIMIT_VALUATION

    @router.get("/{user_id}/assets")
    @limiter.limit(RATE_LIMIT_VALUATION)
    def get_assets(request: Request, user_id: str):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from fund_positions.config import settings
from fund_positions.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_HEALTH,
)

logger = logging.getLogger(__name__)

# Seconds suggested to clients in the Retry-After header
RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    """
    Check whether forwarding headers on this request can be trusted.

    With TRUST_PROXY_HEADERS=true every peer is trusted (use only behind a
    load balancer). Otherwise the peer must be listed in TRUSTED_PROXY_IPS.
    """
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    X-Forwarded-For (first hop) or X-Real-IP when the peer is a trusted
    proxy, the socket peer address otherwise.
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
    """
    429 response in the standard error format, with a Retry-After header.
    """
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

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
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_HEALTH",
]
