"""
Authentication Pydantic schemas for API request/response handling.

This module provides:
- Registration and login request schemas
- Token refresh and logout schemas
- Auth response payloads (user plus tokens)
"""

from pydantic import EmailStr, Field, field_validator

from schemas.common import CamelModel
from schemas.user import UserResponse, check_name, check_password, check_username


class RegisterRequest(CamelModel):
    """
    Schema for user registration.

    Attributes:
        email: Email address (lowercased)
        password: Password (validated for strength)
        first_name: 2-50 characters
        last_name: 2-50 characters
        username: 3-30 letters, digits or underscores
    """

    email: EmailStr = Field(description="User's email address")
    password: str = Field(description="User's password")
    first_name: str
    last_name: str
    username: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, value: str) -> str:
        return check_name(value)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return check_username(value)


class LoginRequest(CamelModel):
    """
    Schema for user login request.

    Attributes:
        email: User's email address
        password: User's password
    """

    email: EmailStr = Field(description="User's email address")
    password: str = Field(min_length=1, description="User's password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RefreshRequest(CamelModel):
    """
    Schema for token refresh request.

    Attributes:
        refresh_token: Refresh token issued at login or registration
    """

    refresh_token: str = Field(min_length=1, description="JWT refresh token")


class LogoutRequest(CamelModel):
    """
    Schema for logout request.

    Attributes:
        refresh_token: Refresh token to revoke (optional)
    """

    refresh_token: str | None = Field(default=None, description="JWT refresh token to revoke")


class AuthData(CamelModel):
    """
    Payload returned after registration or login.

    Attributes:
        user: The authenticated user
        access_token: JWT access token (short-lived, 15 minutes)
        refresh_token: JWT refresh token (long-lived, 7 days)
    """

    user: UserResponse
    access_token: str
    refresh_token: str


class RefreshData(CamelModel):
    """
    Payload returned after a token refresh.

    The refresh token is not rotated, so only a new access token is returned.
    """

    access_token: str
    user: UserResponse
