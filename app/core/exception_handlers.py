"""Global exception handlers for consistent error responses.

Every error leaves the proxy as a single-field JSON object,
``{"error": "<message>"}``, so browser callers only ever parse one shape.

Design:
- AppError subclasses carry their own HTTP status (400, 429, 500)
- Framework HTTPException (404, 405) → same single-field shape
- Unexpected Exception → generic 500 (safety net)
- Details stay in the server logs, never in the response body
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError
from app.core.logging import get_request_id
from app.core.middleware import apply_cors_headers

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    The status code comes from the error class (``AppError.status_code``);
    the body holds only the client-facing message. Structured details go to
    the log; ``exc.headers`` (e.g. Retry-After) go on the response.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status code and message.
    """
    status_code = exc.status_code
    details = exc.details or {}

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "details": details,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message},
        headers=exc.headers or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) as ``{"error": detail}``."""
    logger.warning(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Runs outside the HTTP middleware stack, so CORS headers are applied here
    directly. Logs detailed information while returning a generic message.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    response = JSONResponse(
        status_code=500,
        content={"error": GENERIC_ERROR_MESSAGE},
    )
    return apply_cors_headers(response)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
