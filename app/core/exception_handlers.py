"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → HTTP status from ``STATUS_BY_ERROR``
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    ConfigurationAppError,
    DocumentStoreAppError,
    GeocodingAppError,
    NotificationAppError,
    QuotaExceededAppError,
    SyncInProgressAppError,
    SyncWriteAppError,
    TransientIOAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (SyncInProgressAppError, 409),
    (SyncWriteAppError, 500),
    (DocumentStoreAppError, 502),
    (GeocodingAppError, 502),
    (NotificationAppError, 502),
    (ConfigurationAppError, 503),
    (QuotaExceededAppError, 503),
    (TransientIOAppError, 503),
)


def status_code_for(exc: AppError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For log correlation
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and error details.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers = None
    if isinstance(exc, QuotaExceededAppError) and exc.details and "retry_after" in exc.details:
        headers = {"Retry-After": str(int(exc.details["retry_after"]))}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message, so no
    stack trace or provider detail reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
