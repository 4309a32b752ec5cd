"""
Custom exception classes for the Visigence API.

This module defines a hierarchy of custom exceptions that map to HTTP status codes
and provide consistent error responses across the API.

Exception hierarchy:
    AppException (base)
    ├── AuthenticationError (401)
    │   ├── MissingTokenError
    │   ├── TokenExpiredError
    │   ├── InvalidCredentialsError
    │   ├── InvalidRefreshTokenError
    │   └── AccountInactiveError
    ├── AuthorizationError (403)
    │   ├── InvalidTokenError
    │   ├── InsufficientPermissionsError
    │   └── ForbiddenError
    ├── NotFoundError (404)
    ├── BadRequestError (400)
    ├── ValidationError (400)
    │   ├── InvalidInputError
    │   ├── EmptyUpdateError
    │   └── AlreadyExistsError
    ├── ConflictError (409)
    └── RateLimitExceededError (429)
"""

from typing import Any


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    All custom exceptions should inherit from this class to ensure
    consistent error handling and response formatting.

    Attributes:
        status_code: HTTP status code for the error
        error_code: Machine-readable error code
        message: Human-readable error message
        details: Optional additional error details. A ``fields`` key holding a
            list of ``{"field", "message"}`` dicts is rendered as ``errors``.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (default: 500)
            error_code: Machine-readable error code
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the error envelope used in JSON responses.

        Returns:
            Dictionary with ``success``, ``message``, ``error`` and, when
            field-level details exist, ``errors``
        """
        body: dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error": self.error_code,
        }
        if self.details.get("fields"):
            body["errors"] = self.details["fields"]
        return body


# =============================================================================
# Authentication Errors (401 Unauthorized)
# =============================================================================


class AuthenticationError(AppException):
    """Base class for authentication errors."""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: str = "AUTHENTICATION_FAILED",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code=error_code,
            details=details,
        )


class MissingTokenError(AuthenticationError):
    """Raised when a protected endpoint is called without a bearer token."""

    def __init__(self, message: str = "Access token required") -> None:
        super().__init__(message=message, error_code="TOKEN_MISSING")


class TokenExpiredError(AuthenticationError):
    """
    Raised when a token signature is valid but its expiry has passed.

    Kept distinct from InvalidTokenError so clients know a refresh may help.
    """

    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message=message, error_code="TOKEN_EXPIRED")


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials are invalid."""

    def __init__(
        self,
        message: str = "Invalid email or password",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="INVALID_CREDENTIALS",
            details=details,
        )


class InvalidRefreshTokenError(AuthenticationError):
    """Raised when a refresh token is bad, unknown, revoked or expired."""

    def __init__(self, message: str = "Invalid refresh token") -> None:
        super().__init__(message=message, error_code="INVALID_REFRESH_TOKEN")


class AccountInactiveError(AuthenticationError):
    """Raised when the principal behind a valid token is missing or not active."""

    def __init__(self, message: str = "Invalid token or user not active") -> None:
        super().__init__(message=message, error_code="ACCOUNT_INACTIVE")


# =============================================================================
# Authorization Errors (403 Forbidden)
# =============================================================================


class AuthorizationError(AppException):
    """Base class for authorization errors."""

    def __init__(
        self,
        message: str = "Access forbidden",
        error_code: str = "AUTHORIZATION_FAILED",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=403,
            error_code=error_code,
            details=details,
        )


class InvalidTokenError(AuthorizationError):
    """Raised when an access token fails signature, claim or type checks."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message=message, error_code="INVALID_TOKEN")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when user lacks required permissions for an action."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="INSUFFICIENT_PERMISSIONS",
            details=details,
        )


class ForbiddenError(AuthorizationError):
    """Raised when an action is forbidden (e.g., violates business rules)."""

    def __init__(
        self,
        message: str = "This action is forbidden",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            details=details,
        )


# =============================================================================
# Resource Errors
# =============================================================================


class NotFoundError(AppException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if message is None:
            message = f"{resource} not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class ConflictError(AppException):
    """
    Raised when a write loses a race against a concurrent writer.

    Clients may retry the same request.
    """

    def __init__(
        self,
        message: str = "Resource conflict, please retry",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


class BadRequestError(AppException):
    """Raised when a request is well-formed but breaks a business rule."""

    def __init__(
        self,
        message: str = "Bad request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="BAD_REQUEST",
            details=details,
        )


# =============================================================================
# Validation Errors (400 Bad Request)
# =============================================================================


class ValidationError(AppException):
    """Base class for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details,
        )


class InvalidInputError(ValidationError):
    """Raised when input data is invalid."""

    def __init__(
        self,
        field: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if message is None and field:
            message = f"Invalid input for field: {field}"
        elif message is None:
            message = "Invalid input"

        if field and details is None:
            details = {"fields": [{"field": field, "message": message}]}

        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            details=details,
        )


class EmptyUpdateError(ValidationError):
    """Raised when an update payload contains nothing the caller may change."""

    def __init__(self, message: str = "No valid fields to update") -> None:
        super().__init__(message=message, error_code="EMPTY_UPDATE")


class AlreadyExistsError(ValidationError):
    """Raised when a client-supplied unique value (email, username) is taken."""

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        if message is None:
            message = f"{resource} already exists"
        super().__init__(
            message=message,
            error_code="ALREADY_EXISTS",
            details=details,
        )


# =============================================================================
# Rate Limiting Error (429 Too Many Requests)
# =============================================================================


class RateLimitExceededError(AppException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Too many requests, please try again later.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMIT_EXCEEDED",
            details=details,
        )
