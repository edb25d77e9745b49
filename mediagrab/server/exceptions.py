"""Custom exceptions for the mediagrab API server.

This module defines custom exception types and FastAPI exception handlers.
Every error response is JSON with an ``error`` message.
"""

from typing import Any, Dict

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mediagrab.core.metadata import LOOKUP_FAILED_MESSAGE
from mediagrab.logging import get_logger
from mediagrab.server.middleware.request_id import get_request_id

logger = get_logger(__name__)

URL_REQUIRED_MESSAGE = "URL é obrigatória"
FILE_NOT_FOUND_MESSAGE = "Arquivo não encontrado"


class MediagrabAPIException(Exception):
    """Base exception for all mediagrab API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Dict[str, Any] | None = None,
    ):
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code
            details: Additional error details (logged, not returned)
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidInputException(MediagrabAPIException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class FileMissingException(MediagrabAPIException):
    """Raised when a requested download file does not exist."""

    def __init__(self, filename: str):
        super().__init__(
            message=FILE_NOT_FOUND_MESSAGE,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"filename": filename},
        )


class MetadataUnavailableException(MediagrabAPIException):
    """Raised when video details cannot be retrieved from the source."""

    def __init__(self, url: str):
        super().__init__(
            message=LOOKUP_FAILED_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"url": url},
        )


def _error_body(request: Request, message: str, status_code: int) -> Dict[str, Any]:
    return {
        "error": message,
        "status_code": status_code,
        "request_id": get_request_id(request),
    }


# Exception handlers for FastAPI


async def mediagrab_exception_handler(
    request: Request, exc: MediagrabAPIException
) -> JSONResponse:
    """Handle mediagrab API exceptions."""
    logger.warning(
        f"{exc.status_code} {request.method} {request.url.path}: {exc.message}",
        details=exc.details,
        request_id=get_request_id(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.status_code),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    logger.warning(
        f"{exc.status_code} {request.method} {request.url.path}: {exc.detail}",
        request_id=get_request_id(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, str(exc.detail), exc.status_code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 with the first problem."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"

    logger.warning(
        f"400 {request.method} {request.url.path}: {message}",
        request_id=get_request_id(request),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, message, status.HTTP_400_BAD_REQUEST),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"500 {request.method} {request.url.path}: Unexpected error: {exc}",
        exc_info=True,
        request_id=get_request_id(request),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
    )
