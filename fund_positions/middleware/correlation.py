# fund_positions/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Correlation ID sources, in order of precedence:
1. X-Correlation-ID header
2. X-Request-ID header
3. A generated UUID4

The ID is stored in request context (so every log record carries it)
and echoed back in the X-Correlation-ID response header.

Client Usage:
    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8080/u1/assets
"""

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fund_positions.utils.context import set_correlation_id, clear_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Assigns each request a correlation ID and returns it to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code}"
            )
            return response
        finally:
            clear_correlation_id()

    @staticmethod
    def _get_correlation_id(request: Request) -> str:
        """Header value if the client sent one, otherwise a new UUID."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if value:
                return value
        return str(uuid.uuid4())
