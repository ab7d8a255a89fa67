# backend/portfolio_analytics/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Each request gets an ID, taken from the first of:
1. X-Correlation-ID header (from client or upstream service)
2. X-Request-ID header
3. A generated UUID4

The ID is stored in the request context, so every log line emitted while
serving the request carries it. It is also echoed in the X-Correlation-ID
response header.

Usage:
    app.add_middleware(CorrelationIdMiddleware)

    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health/live
"""

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from portfolio_analytics.utils.context import set_correlation_id, clear_request_context

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request context and the response."""

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
            return response
        finally:
            clear_request_context()

    @staticmethod
    def _get_correlation_id(request: Request) -> str:
        """Header value if the client sent one, otherwise a new UUID4."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if value:
                return value
        return str(uuid.uuid4())
