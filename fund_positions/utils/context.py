# fund_positions/utils/context.py
"""
Request-scoped context for the fund positions API.

Holds the correlation ID of the request being served. Uses contextvars,
so each request (thread or task) sees its own value.

Usage:
    from fund_positions.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")   # middleware
    get_correlation_id()            # anywhere else -> "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Correlation ID of the current request, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    Called by CorrelationIdMiddleware at the start of each request.
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Reset the correlation ID once the request has been served."""
    _correlation_id_var.set(None)
