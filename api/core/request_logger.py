"""
Request logging middleware.

Logs HTTP method, path, status code, duration and client IP
for every registry request.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("nginx_registry.access")

# Paths excluded from access logging to reduce noise
_EXCLUDED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/"}


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every HTTP request with timing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        if path in _EXCLUDED_PATHS:
            return await call_next(request)

        start = time.monotonic()
        client_ip = request.client.host if request.client else "unknown"

        response: Response = await call_next(request)

        duration_ms = (time.monotonic() - start) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "%s %s %d %.1fms client=%s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            client_ip,
        )

        return response
