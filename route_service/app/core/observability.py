"""
Observability Middleware.

Every request gets a correlation id (taken from X-Correlation-ID or
generated). It is echoed in the response headers and stamped on every log
record emitted while the request is handled, so a failed driver/vehicle
sync can be traced back to the HTTP call that caused it.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

logger = logging.getLogger("route_service")


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to log records for use in format strings."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)

        try:
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            response.headers[CORRELATION_HEADER] = correlation_id
            response.headers["X-Process-Time"] = str(elapsed_ms)

            log_data = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            }

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            logger.log(
                level, "%s %s -> %s (%.2f ms)",
                request.method, request.url.path, response.status_code, elapsed_ms,
                extra=log_data
            )
            return response
        finally:
            correlation_id_var.reset(token)
