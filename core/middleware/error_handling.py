"""
Error handling middleware and exception handlers.

Workflow domain errors become 4xx responses carrying their own code and
details. Database and cache failures are reported as infrastructure errors.
All messages are sanitized before they leave the service.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import WorkflowError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged or returned
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """Type and sanitized message of ``exc``; traceback only when ``include_details``."""
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        input_value = error.get("input")
        if isinstance(input_value, (str, int, float, bool)):
            if not any(pattern.search(str(input_value)) for pattern in SENSITIVE_PATTERNS):
                error_dict["input"] = input_value
        errors.append(error_dict)
    return errors


def classify_exception(
    exc: Exception, method: str, path: str, debug: bool = False
) -> tuple[int, str, str, Optional[Any]]:
    """
    Map an exception to ``(status_code, error_code, message, details)`` and log it.
    """
    if isinstance(exc, WorkflowError):
        logger.info(f"Workflow error: {method} {path} - {exc.error_code}: {exc.message}")
        return (
            exc.status_code,
            exc.error_code,
            sanitize_error_message(exc.message),
            exc.details or None,
        )

    if isinstance(exc, StarletteHTTPException):
        message = sanitize_error_message(exc.detail)
        logger.warning(f"HTTP exception: {method} {path} - Status: {exc.status_code}, Message: {message}")
        return exc.status_code, "HTTP_EXCEPTION", message, None

    if isinstance(exc, RequestValidationError):
        details = format_validation_errors(exc)
        logger.warning(f"Validation error: {method} {path} - Errors: {details}")
        return (
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            details,
        )

    debug_details = get_safe_error_details(exc, include_details=True) if debug else None

    if isinstance(exc, IntegrityError):
        logger.error(f"Database integrity error: {method} {path}", exc_info=not debug)
        return (
            status.HTTP_409_CONFLICT,
            "INTEGRITY_ERROR",
            "Database integrity constraint violated",
            debug_details,
        )

    if isinstance(exc, OperationalError):
        logger.error(f"Database operational error: {method} {path}", exc_info=True)
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "DATABASE_ERROR",
            "Database service temporarily unavailable",
            None,
        )

    if isinstance(exc, SQLAlchemyError):
        logger.error(f"SQLAlchemy error: {method} {path}", exc_info=not debug)
        return (
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "DATABASE_ERROR",
            "A database error occurred",
            debug_details,
        )

    if isinstance(exc, RedisConnectionError):
        logger.error(f"Redis connection error: {method} {path}", exc_info=True)
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "CACHE_ERROR",
            "Cache service temporarily unavailable",
            None,
        )

    if isinstance(exc, RedisError):
        logger.error(f"Redis error: {method} {path}", exc_info=not debug)
        return (
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "CACHE_ERROR",
            "A cache error occurred",
            debug_details,
        )

    if isinstance(exc, ValueError):
        message = sanitize_error_message(str(exc)) or "Invalid input provided"
        logger.warning(f"Value error: {method} {path} - {message}")
        return status.HTTP_400_BAD_REQUEST, "INVALID_INPUT", message, None

    if isinstance(exc, TimeoutError):
        logger.error(f"Timeout error: {method} {path}")
        return status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT", "The request timed out", None

    logger.error(
        f"Unhandled exception: {method} {path} - "
        f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
        exc_info=True,
    )
    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        debug_details,
    )


def build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    path: str,
    method: str,
    details: Optional[Any] = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    if request_id:
        body["error"]["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=body)


class ErrorHandlingMiddleware:
    """
    Outermost ASGI middleware: turns anything that escapes the app into the
    standard JSON error envelope.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")
        status_code, error_code, message, details = classify_exception(
            exc, method, path, debug=self.debug
        )

        request_id = None
        if "headers" in scope:
            raw = dict(scope["headers"]).get(b"x-request-id")
            if raw:
                request_id = raw.decode()

        return build_error_response(
            status_code, error_code, message, path, method, details, request_id
        )


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Include exception details for unexpected errors
    """

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        path = str(request.url.path)
        status_code, error_code, message, details = classify_exception(
            exc, request.method, path, debug=debug
        )
        request_id = getattr(request.state, "request_id", None)
        return build_error_response(
            status_code, error_code, message, path, request.method, details, request_id
        )

    app.add_exception_handler(WorkflowError, _handle)
    app.add_exception_handler(StarletteHTTPException, _handle)
    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(SQLAlchemyError, _handle)
    app.add_exception_handler(Exception, _handle)
