"""
Exception handlers for FastAPI application.

This module provides:
- Custom application exception handler (AppException)
- Pydantic validation error handler (RequestValidationError)
- Unknown route handler (404)
- General unhandled exception handler (Exception)
- Rate limit exceeded handler (RateLimitExceeded)

Every handler renders the same envelope:
    {"success": false, "message": ..., "error"?: ..., "errors"?: [...]}
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.exceptions import AppException, RateLimitExceededError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Converts AppException to proper HTTP responses with consistent format.
    """
    logger.warning(
        f"Application exception: {exc.error_code} - {exc.message} "
        f"(request_id={_request_id(request)})"
    )

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Field-level problems are reported as 400 with an ``errors`` list.
    """
    logger.warning(
        f"Validation error: {len(exc.errors())} problem(s) "
        f"(request_id={_request_id(request)})"
    )

    errors = []
    for error in exc.errors():
        # Drop the leading "body"/"query" location segment
        location = [str(loc) for loc in error["loc"][1:]] or [str(error["loc"][0])]
        errors.append(
            {
                "field": ".".join(location),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": errors,
        },
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle framework HTTP errors (unknown routes, wrong methods).
    """
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full error and returns a generic error response. The exception
    text is only echoed back in development.
    """
    logger.error(
        f"Unexpected error: {str(exc)} "
        f"(request_id={_request_id(request)})",
        exc_info=True,
    )

    content: dict[str, object] = {
        "success": False,
        "message": "Internal server error",
    }
    if settings.is_development:
        content["error"] = str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handle rate limit exceeded errors.

    Renders RateLimitExceededError through the standard envelope (429).
    """
    logger.warning(
        f"Rate limit exceeded: {request.client.host if request.client else 'unknown'} "
        f"(request_id={_request_id(request)})"
    )

    error = RateLimitExceededError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
