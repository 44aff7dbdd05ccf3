"""Centralized error handling with consistent response formatting.

Every error leaves the API as::

    {"error": {"category": ..., "code": ..., "detail": ..., "suggestions": [...], "metadata": {...}}}

Store failures never leak driver messages to the client; the full context is
logged instead.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException

from questlog.exceptions import ConflictError, ResourceNotFoundError, StoreUnavailableError


logger = logging.getLogger(__name__)


# === Error Categories ===


class ErrorCategory:
    """Error category constants."""

    AUTHENTICATION = "AUTHENTICATION_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    """Specific error codes for better client handling."""

    # Authentication errors
    AUTH_REQUIRED = "AUTH_REQUIRED"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Database errors
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"

    # Internal errors
    INTERNAL = "INTERNAL_ERROR"


# === Error Response Formatting ===


def format_error_response(
    category: str,
    code: str,
    detail: str,
    status_code: int,
    suggestions: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> JSONResponse:
    """Format a consistent error response."""
    content: dict[str, Any] = {
        "error": {
            "category": category,
            "code": code,
            "detail": detail,
        }
    }

    if suggestions:
        content["error"]["suggestions"] = suggestions

    if metadata:
        content["error"]["metadata"] = metadata

    return JSONResponse(status_code=status_code, content=content)


async def handle_validation_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle request-body validation and domain precondition failures."""
    logger.info("Validation error on %s %s", request.method, request.url.path, extra={"error": str(exc)})

    if isinstance(exc, RequestValidationError):
        errors = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return format_error_response(
            category=ErrorCategory.VALIDATION,
            code=ErrorCode.INVALID_INPUT,
            detail="Invalid input data",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            metadata={"errors": errors},
        )

    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_INPUT,
        detail=str(exc),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_not_found_errors(_request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    """Handle missing or foreign-owned resources."""
    return format_error_response(
        category=ErrorCategory.RESOURCE_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        detail=str(exc),
        status_code=status.HTTP_404_NOT_FOUND,
        suggestions=["The requested resource does not exist"],
    )


async def handle_conflict_errors(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle optimistic-concurrency conflicts."""
    logger.warning("Conflict on %s %s: %s", request.method, request.url.path, exc)
    return format_error_response(
        category=ErrorCategory.CONFLICT,
        code=ErrorCode.CONCURRENT_UPDATE,
        detail=str(exc),
        status_code=status.HTTP_409_CONFLICT,
        suggestions=["Please try again"],
    )


async def handle_store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Handle an unreachable database with a generic retry message."""
    logger.error(
        "Store unavailable on %s %s during %s",
        request.method,
        request.url.path,
        exc.operation,
        exc_info=exc.__cause__ or exc,
    )
    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.DB_CONNECTION_FAILED,
        detail="Service temporarily unavailable",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        suggestions=["Please try again later"],
    )


async def handle_database_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle database errors that escaped the service layer."""
    logger.exception(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        extra={"error_type": type(exc).__name__},
        exc_info=(type(exc), exc, exc.__traceback__),
    )

    if isinstance(exc, IntegrityError):
        if "unique" in str(exc).lower():
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_UNIQUE_VIOLATION,
                detail="This resource already exists",
                status_code=status.HTTP_409_CONFLICT,
            )
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONSTRAINT_VIOLATION,
            detail="Required data is missing or invalid",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, OperationalError):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONNECTION_FAILED,
            detail="Service temporarily unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            suggestions=["Please try again later"],
        )

    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.INTERNAL,
        detail="A database error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def handle_http_exceptions(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPExceptions (auth failures, OAuth state problems) in the shared shape."""
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        logger.warning(
            "Authentication failed for %s %s: %s",
            request.method,
            request.url.path,
            exc.detail,
            extra={"client_host": request.client.host if request.client else "unknown"},
        )
        return format_error_response(
            category=ErrorCategory.AUTHENTICATION,
            code=ErrorCode.AUTH_REQUIRED,
            detail=str(exc.detail),
            status_code=exc.status_code,
            suggestions=["Ensure you are logged in", "Try logging in again"],
        )

    category = ErrorCategory.RESOURCE_NOT_FOUND if exc.status_code == 404 else ErrorCategory.VALIDATION
    if exc.status_code >= 500:
        category = ErrorCategory.INTERNAL
    response = format_error_response(
        category=category,
        code=ErrorCode.NOT_FOUND if exc.status_code == 404 else ErrorCode.INVALID_INPUT,
        detail=str(exc.detail),
        status_code=exc.status_code,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


# === Utility Functions ===


def log_error_context(request: Request, exc: Exception, error_id: UUID | None = None) -> None:
    """Log comprehensive error context for debugging."""
    context = {
        "error_id": str(error_id) if error_id else None,
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "client_host": request.client.host if request.client else "unknown",
        "user_id": getattr(request.state, "user_id", None),
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    safe_headers = {
        k: v for k, v in request.headers.items() if k.lower() not in ["authorization", "cookie", "x-api-key"]
    }
    context["headers"] = safe_headers

    logger.error("Request failed", extra=context, exc_info=exc)
