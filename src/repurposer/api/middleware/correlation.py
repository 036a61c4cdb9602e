"""Correlation ID middleware.

Every request gets an ID, taken from ``X-Correlation-ID`` when the caller sends
a well-formed one. The ID is bound to the request's log context, kept on
``request.state`` for error bodies and echoed on the response.
"""

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ...logging.config import get_logger, log_context

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Caller-supplied IDs are written to logs and response headers
_VALID_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_correlation_id(header_value: str | None) -> str:
    """Use the caller's ID when it is well formed, otherwise a new UUID."""
    if header_value and _VALID_ID_RE.match(header_value):
        return header_value
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request, its logs and its response with a correlation ID."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        with log_context(correlation_id=correlation_id):
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
