"""
Request logging middleware.

Binds a request id into structlog's context for every downstream log line and
emits one ``http_request`` event per request. Health probes are logged at
debug level.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("copilot.http")

QUIET_PATHS = frozenset({"/healthz"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its id, status and latency."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            if request.url.path in QUIET_PATHS and status_code < 400:
                emit = logger.debug
            elif status_code >= 500:
                emit = logger.error
            elif status_code >= 400:
                emit = logger.warning
            else:
                emit = logger.info
            emit("http_request", method=request.method, status=status_code, duration_ms=elapsed_ms)
