"""Request ID middleware for the mediagrab API server.

Every request gets an ID that is echoed in the ``X-Request-ID`` response
header, included in error bodies and bound into the structlog context, so
all log lines emitted while serving the request carry it.
"""

import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID, keeping one supplied by the client."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> str:
    """Request ID of the current request, or ``"unknown"`` outside the middleware."""
    return getattr(request.state, "request_id", "unknown")
