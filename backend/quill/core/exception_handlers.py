"""
Global exception handlers for FastAPI.

These handlers convert custom exceptions into appropriate HTTP responses
with consistent formatting including request IDs for tracing.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from quill.config import settings
from quill.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidCredentialsError,
    OperationTimeoutError,
    ResourceNotFoundError,
    UnauthorizedError,
    ValidationError,
)


def create_error_response(
    status_code: int,
    error: str,
    error_code: str,
    request_id: str | None = None
) -> JSONResponse:
    """
    Create standardized error response with request tracing.

    Args:
        status_code: HTTP status code
        error: Human-readable error message
        error_code: Machine-readable error code
        request_id: Request ID for tracing (optional)

    Returns:
        JSONResponse with consistent error format
    """
    content = {
        "error": error,
        "error_code": error_code,
    }

    if request_id:
        content["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=content)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle ValidationError → 400 response."""
    logger.warning(f"Validation failed: {request.url.path} - {str(exc)}")
    return create_error_response(
        status_code=400,
        error=str(exc) or "Invalid input",
        error_code="VALIDATION_ERROR",
        request_id=_request_id(request),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request body/query schema failures → 400 response.

    Only the first error is reported, prefixed with the offending field.
    """
    errors = exc.errors()
    message = "Invalid input"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    logger.warning(f"Request validation failed: {request.url.path} - {message}")
    return create_error_response(
        status_code=400,
        error=message,
        error_code="VALIDATION_ERROR",
        request_id=_request_id(request),
    )


async def conflict_error_handler(
    request: Request, exc: ConflictError
) -> JSONResponse:
    """Handle ConflictError → 400 response."""
    logger.warning(f"Conflict: {request.url.path} - {str(exc)}")
    return create_error_response(
        status_code=400,
        error=str(exc) or "Resource already exists",
        error_code="CONFLICT",
        request_id=_request_id(request),
    )


async def invalid_credentials_handler(
    request: Request, exc: InvalidCredentialsError
) -> JSONResponse:
    """Handle InvalidCredentialsError → 401 response."""
    logger.warning(f"Invalid credentials: {request.url.path}")
    return create_error_response(
        status_code=401,
        error=str(exc),
        error_code="INVALID_CREDENTIALS",
        request_id=_request_id(request),
    )


async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    """Handle AuthenticationError → 401 response."""
    logger.warning(f"Authentication failed: {request.url.path} - {str(exc)}")
    return create_error_response(
        status_code=401,
        error=str(exc) or "Authentication failed",
        error_code="AUTHENTICATION_FAILED",
        request_id=_request_id(request),
    )


async def unauthorized_error_handler(
    request: Request, exc: UnauthorizedError
) -> JSONResponse:
    """Handle UnauthorizedError → 403 response."""
    logger.warning(f"Ownership check failed: {request.method} {request.url.path}")
    return create_error_response(
        status_code=403,
        error=str(exc) or "Unauthorized",
        error_code="UNAUTHORIZED",
        request_id=_request_id(request),
    )


async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle ResourceNotFoundError → 404 response."""
    logger.warning(f"Resource not found: {request.url.path}")
    return create_error_response(
        status_code=404,
        error=str(exc) or "Not found",
        error_code="NOT_FOUND",
        request_id=_request_id(request),
    )


async def operation_timeout_handler(
    request: Request, exc: OperationTimeoutError
) -> JSONResponse:
    """Handle OperationTimeoutError → 504 response."""
    logger.error(f"Operation timed out: {request.url.path} - {str(exc)}")
    return create_error_response(
        status_code=504,
        error="The operation timed out. Please try again later.",
        error_code="TIMEOUT",
        request_id=_request_id(request),
    )


async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    """Handle HTTPException (ours and routing 404/405), keeping its status code."""
    return create_error_response(
        status_code=exc.status_code,
        error=str(exc.detail),
        error_code="HTTP_ERROR",
        request_id=_request_id(request),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all unhandled exceptions → 500 response.

    This is a catch-all handler for any exceptions not caught by specific handlers.
    It logs the full traceback and returns a generic error message to avoid
    leaking internal implementation details.
    """
    logger.exception(
        f"Unhandled exception: {request.method} {request.url.path} - {type(exc).__name__}: {str(exc)}"
    )
    error = "An internal error occurred. Please try again later."
    if settings.ENV != "production" and settings.DEBUG:
        error = f"{error} ({type(exc).__name__})"
    return create_error_response(
        status_code=500,
        error=error,
        error_code="INTERNAL_SERVER_ERROR",
        request_id=_request_id(request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all custom exception handlers on the application.

    HTTPException must be registered before the global Exception handler.
    """
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(InvalidCredentialsError, invalid_credentials_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(ResourceNotFoundError, resource_not_found_handler)
    app.add_exception_handler(OperationTimeoutError, operation_timeout_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
