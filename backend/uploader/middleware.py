"""Access logging middleware.

Logs method, path, status and duration of every request, skipping the
monitoring probes.
"""
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("uploader.access")

# Probe endpoints polled by the orchestrator
EXCLUDED_PREFIX = "/monitoring"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware logging every HTTP request and its response status."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(EXCLUDED_PREFIX):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "%s %s %s 500 %.1fms", client_ip, request.method, request.url.path, duration_ms
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "%s %s %s %d %.1fms",
            client_ip,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
