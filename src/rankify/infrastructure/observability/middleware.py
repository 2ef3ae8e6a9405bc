"""Request logging middleware with correlation ids."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from rankify.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# health checks hit every few seconds; logging them drowns everything else
_QUIET_PREFIXES = ("/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request/response pair and echo the correlation id back to the client."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        quiet = path.startswith(_QUIET_PREFIXES)

        if not quiet:
            logger.info(
                "→ %s %s",
                method,
                path,
                extra={
                    "method": method,
                    "path": path,
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed: %s %s",
                method,
                path,
                extra={"method": method, "path": path, "error_type": type(e).__name__},
            )
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        if not quiet:
            marker = "✓" if response.status_code < 400 else "✗"
            logger.info(
                "%s %s %s → %d (%dms)",
                marker,
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )

        response.headers[CORRELATION_HEADER] = get_correlation_id()
        return response
