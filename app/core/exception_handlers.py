"""Global exception handlers for consistent error responses.

Every failure leaves the service as an ``ApiError`` JSON body:

- AppError subclasses -> their own status (400, 404, 409)
- Request validation errors -> 400 VALIDATION_ERROR with per-field details
- Starlette HTTP errors (unknown route, wrong method) -> their status
- Anything else -> mapped by exception type, defaulting to 500. Caught by
  ``unhandled_exception_middleware``; the ``Exception`` handler remains the
  safety net for failures outside it
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_app_settings
from app.core.errors import AppError
from app.core.logging import get_request_id
from app.schemas.error import ApiError

logger = logging.getLogger(__name__)

# Checked in order; first isinstance match wins
BUILTIN_EXCEPTION_MAP: tuple[tuple[type[BaseException], int, str], ...] = (
    (NotImplementedError, status.HTTP_501_NOT_IMPLEMENTED, "NOT_IMPLEMENTED"),
    (TimeoutError, status.HTTP_408_REQUEST_TIMEOUT, "TIMEOUT"),
    (PermissionError, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED"),
    (LookupError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (ValueError, status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT"),
    (TypeError, status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT"),
)

_HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def map_exception(exc: BaseException) -> tuple[int, str]:
    """Return ``(status_code, error_code)`` for an unexpected exception."""
    for exc_type, status_code, error_code in BUILTIN_EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            return status_code, error_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR"


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error = ApiError(
        error_code=error_code,
        message=message,
        path=request.url.path,
        details=details,
    )
    return JSONResponse(status_code=status_code, content=error.to_content(), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    The HTTP status comes from the error class (``status_code``); code,
    message and details are passed through unchanged.
    """
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return _error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn body/path validation failures into a 400 with per-field details."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(details),
            "request_id": get_request_id(),
        },
    )
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "One or more validation errors occurred",
        details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404 route, 405 method, ...) as ApiError."""
    error_code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return _error_response(
        request,
        exc.status_code,
        error_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Known builtin exception types keep their message; 500s get a generic
    one so internals never leak. A traceback is attached to ``details``
    only in debug mode.
    """
    status_code, error_code = map_exception(exc)

    logger.error(
        "unhandled_exception",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={
            "error_type": type(exc).__name__,
            "error_code": error_code,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "An unexpected error occurred. Please try again later."
    else:
        message = str(exc) or error_code

    details = None
    if get_app_settings(request).app.debug:
        details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return _error_response(request, status_code, error_code, message, details)


async def unhandled_exception_middleware(request: Request, call_next) -> Response:
    """Render exceptions escaping the routes (or inner middleware) as ApiError.

    Starlette's ``Exception`` handler runs in the outermost server-error
    layer, which re-raises after responding and bypasses every other
    middleware. Catching here keeps mapped 4xx/5xx responses inside the
    stack so the request id middleware still decorates them.

    Usage:
        app.middleware("http")(unhandled_exception_middleware)
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Specific handlers are matched before the ``Exception`` fallback by
    Starlette regardless of registration order.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
