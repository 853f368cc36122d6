"""Request/response logging middleware."""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from eunify.utils.monitoring import observe_request

logger = logging.getLogger("eunify.api")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Structured logging and request metrics for inbound HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        observe_request(request.method, path, response.status_code, duration)

        logger.info(
            "request.completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "client": request.client.host if request.client else None,
            },
        )

        return response
