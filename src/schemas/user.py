"""
User Pydantic schemas for API request/response handling.

This module provides:
- User response schemas (password hash never included)
- Whitelisted profile update schema
- Password change schema
- User filtering and statistics schemas
"""

import re
import uuid
from datetime import datetime

from pydantic import Field, HttpUrl, TypeAdapter, field_validator

from core.security import validate_password_strength
from models.enums import UserRole, UserStatus
from schemas.common import CamelModel, Pagination

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")
NAME_PATTERN = re.compile(r"^[A-Za-z\s'-]+$")

_HTTP_URL = TypeAdapter(HttpUrl)


def check_username(value: str) -> str:
    """Validate username format (3-30 letters, digits or underscores)."""
    value = value.strip()
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username must be 3-30 characters and contain only letters, "
            "numbers, and underscores"
        )
    return value


def check_name(value: str) -> str:
    """Validate a first or last name."""
    value = value.strip()
    if not 2 <= len(value) <= 50:
        raise ValueError("Name must be between 2 and 50 characters")
    if not NAME_PATTERN.match(value):
        raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
    return value


def check_password(value: str) -> str:
    """Validate password strength, reporting every failed rule."""
    strength = validate_password_strength(value)
    if not strength["valid"]:
        raise ValueError("; ".join(strength["reasons"]))
    return value


class UserResponse(CamelModel):
    """
    Schema for user response.

    Used everywhere a user is returned. The password hash is not a field
    of this schema, so it can never be serialized.
    """

    id: uuid.UUID = Field(description="User's unique identifier (UUID)")
    email: str = Field(description="User's email address")
    username: str = Field(description="User's username")
    first_name: str
    last_name: str
    bio: str | None = None
    avatar_url: str | None = None
    role: UserRole
    status: UserStatus
    email_verified: bool = False
    last_login: datetime | None = None
    login_count: int = 0
    created_at: datetime
    updated_at: datetime


class UserUpdate(CamelModel):
    """
    Schema for updating a user.

    All fields are optional; only fields present in the request body are
    considered, and the service reduces them further to the update
    allow-list. ``role`` and ``status`` are honored for admins only.
    """

    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    bio: str | None = Field(default=None, max_length=500)
    avatar_url: str | None = None
    role: UserRole | None = None
    status: UserStatus | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, value: str | None) -> str | None:
        return check_name(value) if value is not None else None

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        return check_username(value) if value is not None else None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, value: str | None) -> str | None:
        """Must be an http(s) URL; stored as the original string."""
        if value is not None:
            _HTTP_URL.validate_python(value)
        return value


class PasswordChange(CamelModel):
    """
    Schema for changing a password.

    Attributes:
        current_password: Required unless an admin changes someone else's password
        new_password: New password (validated for strength)
    """

    current_password: str | None = Field(
        default=None,
        description="Current password for verification",
    )
    new_password: str = Field(description="New password, must meet strength requirements")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password(value)


class UserFilterParams(CamelModel):
    """
    Query filters for user lists.

    Attributes:
        search: Case-insensitive match on email, username, first or last name
        role: Exact role
        status: Exact status
    """

    search: str | None = Field(default=None, max_length=100)
    role: UserRole | None = None
    status: UserStatus | None = None


class UserListData(CamelModel):
    """Payload of GET /api/users."""

    users: list[UserResponse]
    pagination: Pagination


class UserData(CamelModel):
    """Payload wrapping a single user."""

    user: UserResponse


class UserStats(CamelModel):
    """Aggregate counts returned by GET /api/users/stats."""

    total_users: int
    active_users: int
    inactive_users: int
    suspended_users: int
    admin_users: int
    moderator_users: int
    regular_users: int
    new_users_30d: int
    active_users_30d: int
