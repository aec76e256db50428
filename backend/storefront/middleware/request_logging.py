"""Middleware that logs every HTTP request."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, client, response status and latency.

    Request bodies are never logged since they carry passwords.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client = request.headers.get("X-Forwarded-For", request.client.host if request.client else "unknown")
        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client.split(",")[0].strip(),
            response.status_code,
            elapsed_ms,
        )
        return response
