"""Application errors and the JSON error envelope.

Every error response produced by the API has the same shape:

    {
        "error": "TENANT_NOT_FOUND",
        "message": "No tenant is configured for this host",
        "status_code": 404,
        "details": null,
        "request_id": "..."
    }

Services raise AppError with one of the string codes below; the handlers
registered by register_exception_handlers() turn it (and framework errors)
into the envelope.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from observability.request_id import get_request_id

logger = logging.getLogger(__name__)


# Error codes
VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
INVALID_TOKEN = "INVALID_TOKEN"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
MISSING_BUSINESS_CONTEXT = "MISSING_BUSINESS_CONTEXT"
INVALID_HOST = "INVALID_HOST"
TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
TENANT_RESOLUTION_FAILED = "TENANT_RESOLUTION_FAILED"
INVALID_SUBDOMAIN = "INVALID_SUBDOMAIN"
SUBDOMAIN_RESERVED = "SUBDOMAIN_RESERVED"
SUBDOMAIN_TAKEN = "SUBDOMAIN_TAKEN"
INVALID_DOMAIN = "INVALID_DOMAIN"
DOMAIN_NOT_ALLOWED = "DOMAIN_NOT_ALLOWED"
DOMAIN_TAKEN = "DOMAIN_TAKEN"
DOMAIN_IN_USE = "DOMAIN_IN_USE"
RATE_LIMITED = "RATE_LIMITED"
DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Fallback codes for bare HTTPExceptions raised by FastAPI internals
_STATUS_CODES = {
    400: VALIDATION_ERROR,
    401: UNAUTHORIZED,
    403: FORBIDDEN,
    404: NOT_FOUND,
    409: CONFLICT,
    422: VALIDATION_ERROR,
    429: RATE_LIMITED,
}


class AppError(Exception):
    """Application error carrying an HTTP status and a machine-readable code.

    Args:
        message: Human readable message returned to the client
        status_code: HTTP status code
        code: One of the module-level error code constants
        details: Optional JSON-serializable payload (e.g. suggestions)
        headers: Optional response headers (e.g. Retry-After)
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        code: str = VALIDATION_ERROR,
        details: Optional[Any] = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.headers = headers

    def __repr__(self) -> str:
        return f"<AppError({self.status_code}, {self.code!r}, {self.message!r})>"


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build a JSONResponse in the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "status_code": status_code,
            "details": jsonable_encoder(details),
            "request_id": get_request_id(),
        },
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message, exc.details, exc.headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, INTERNAL_ERROR if exc.status_code >= 500 else VALIDATION_ERROR)
    return error_response(
        exc.status_code,
        code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns a structured error response with field-level details.
    """
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": exc.errors()}
    )
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        VALIDATION_ERROR,
        "Request validation failed",
        details=exc.errors(),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        DATABASE_ERROR,
        "A database error occurred. Please try again later.",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        INTERNAL_ERROR,
        "An unexpected error occurred. Please try again later.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to an application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
