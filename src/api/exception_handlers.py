"""Exception handlers for the FastAPI application.

Every error leaves the API in the same envelope::

    {"error_code": "...", "message": "...", "details": ...}
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.exceptions import AppException, ErrorCode

logger = structlog.get_logger()

# Framework-raised HTTP errors that have a code of their own.
_HTTP_ERROR_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
}


def error_response(
    status_code: int,
    error_code: ErrorCode,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code.value,
            "message": message,
            "details": details,
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle domain errors raised by the services."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "app_exception",
            error_code=exc.error_code.value,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return error_response(exc.status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions from FastAPI/Starlette (unknown routes, wrong methods)."""
        return error_response(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.HTTP_ERROR),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request schema errors (missing title, malformed ids and times)."""
        errors = exc.errors()
        logger.info("validation_error", path=request.url.path, error_count=len(errors))
        return error_response(
            422,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            [
                {
                    "field": ".".join(str(x) for x in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in errors
            ],
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        """Handle slowapi rejections."""
        logger.warning("rate_limit_exceeded", path=request.url.path, limit=str(exc.detail))
        return error_response(
            429,
            ErrorCode.RATE_LIMIT_EXCEEDED,
            f"Rate limit exceeded: {exc.detail}",
            {"limit": str(exc.detail)},
        )

    @app.exception_handler(OperationalError)
    async def database_unavailable_handler(
        request: Request, exc: OperationalError
    ) -> JSONResponse:
        """The entry store could not be reached; the request changed nothing."""
        logger.error(
            "database_unavailable",
            path=request.url.path,
            error=str(exc.orig) if exc.orig is not None else str(exc),
        )
        return error_response(
            503,
            ErrorCode.DATABASE_ERROR,
            "The time log store is temporarily unavailable",
            headers={"Retry-After": "5"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=request_id,
            exc_info=True,
        )

        message = "An unexpected error occurred"
        if not settings.is_production:
            message = str(exc)

        return error_response(
            500, ErrorCode.INTERNAL_ERROR, message, {"request_id": request_id}
        )
