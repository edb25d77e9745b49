"""Request logging middleware for the mediagrab API server.

Logs all HTTP requests with method, path, status code, duration, and client IP.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mediagrab.logging import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests.

    Status polling is frequent, so successful requests log at debug level;
    client errors log as warnings and server errors as errors.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                client=client_ip,
                error=str(e),
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client": client_ip,
        }

        if response.status_code >= 500:
            logger.error("Request", **fields)
        elif response.status_code >= 400:
            logger.warning("Request", **fields)
        else:
            logger.debug("Request", **fields)

        return response
