# fund_positions/middleware/__init__.py
"""
ASGI middleware for the fund positions API.

- Correlation ID tracking for request tracing
- Rate limiting (slowapi)

Usage:
    from fund_positions.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from fund_positions.middleware.correlation import CorrelationIdMiddleware
from fund_positions.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_HEALTH",
]
