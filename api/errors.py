"""
Error taxonomy and exception handlers for the API.

Services raise ``BookstoreError`` subclasses; the handlers registered by
``setup_exception_handlers`` turn them, framework errors and unexpected
exceptions into ``ErrorResponse`` bodies.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse

logger = structlog.get_logger(__name__)


class BookstoreError(Exception):
    """Base exception for API errors with a fixed HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationFailed(BookstoreError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationRequired(BookstoreError):
    """No bearer token was presented."""
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentials(BookstoreError):
    """Unknown email or wrong password."""
    status_code = status.HTTP_401_UNAUTHORIZED


class TokenRejected(BookstoreError):
    """The bearer token is invalid or expired."""
    status_code = status.HTTP_403_FORBIDDEN


class NotOwner(BookstoreError):
    """The caller does not own the record it tried to change."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(BookstoreError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BookstoreError):
    status_code = status.HTTP_409_CONFLICT


AVAILABLE_ENDPOINTS = {
    "auth": ["POST /api/auth/register", "POST /api/auth/login"],
    "books": [
        "GET /api/books",
        "GET /api/books/:id",
        "POST /api/books",
        "PUT /api/books/:id",
        "DELETE /api/books/:id",
        "GET /api/books/search?genre=<genre>",
    ],
    "health": ["GET /api/health"],
}


def error_response(
    status_code: int,
    error: str,
    detail: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Render an ``ErrorResponse`` body, omitting an empty detail."""
    body = ErrorResponse(error=error, detail=detail, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def endpoint_not_found(request: Request) -> JSONResponse:
    """404 body listing the routes the API serves."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Endpoint not found",
            "message": f"Cannot {request.method} {request.url.path}",
            "availableEndpoints": AVAILABLE_ENDPOINTS,
            "status_code": status.HTTP_404_NOT_FOUND,
        },
    )


def setup_exception_handlers(app: FastAPI, development: bool = False) -> None:
    """
    Register exception handlers with the FastAPI app.

    Args:
        app: Application to configure
        development: Expose unexpected exception messages in 500 responses
    """

    @app.exception_handler(BookstoreError)
    async def bookstore_error_handler(request: Request, exc: BookstoreError):
        logger.info(
            "Request rejected",
            error=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return error_response(exc.status_code, exc.message, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation error", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unmatched paths and unmatched methods both get the endpoint directory
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return endpoint_not_found(request)
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            str(exc) if development else "Something went wrong",
        )
