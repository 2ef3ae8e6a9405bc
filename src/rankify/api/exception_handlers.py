"""Global exception handlers: domain exceptions → HTTP status + {"error": message}.

Hey future me - routes never build error responses themselves. They raise a
domain exception and the mapping below decides the status code. Anything we
don't know is a 500 with a GENERIC body; the real error only goes to the log.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rankify.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainException,
    EntityNotFoundException,
    ExternalServiceError,
    ValidationException,
)

logger = logging.getLogger(__name__)

# Order matters only for readability; lookups walk the exception's MRO.
STATUS_BY_EXCEPTION: dict[type[DomainException], int] = {
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ValidationException: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_400_BAD_REQUEST,
    EntityNotFoundException: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_404_NOT_FOUND,
    ExternalServiceError: status.HTTP_502_BAD_GATEWAY,
    ConfigurationError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

GENERIC_ERROR = "Internal server error"


def status_for(exc: DomainException) -> int:
    if isinstance(exc, ExternalServiceError) and exc.status_code == 404:
        return status.HTTP_404_NOT_FOUND
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[cls]  # type: ignore[index]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _sanitize(value: Any) -> Any:
    # Pydantic errors may carry raw bytes / exception objects that JSONResponse can't encode
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {k: _sanitize(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_sanitize(v) for v in value]
    if isinstance(value, str | int | float | bool) or value is None:
        return value
    return str(value)


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, validation, HTTP and unexpected exceptions."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        status_code = status_for(exc)
        log = logger.warning if status_code >= 500 else logger.info
        log(
            "%s at %s: %s",
            type(exc).__name__,
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "status_code": status_code},
        )
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "Request validation failed at %s: %d error(s)",
            request.url.path,
            len(exc.errors()),
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request parameters",
                "detail": _sanitize(list(exc.errors())),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error at %s %s",
            request.method,
            request.url.path,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": GENERIC_ERROR},
        )
