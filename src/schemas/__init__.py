"""
Pydantic schemas for API request/response validation.

This package provides all Pydantic models used for:
- Request validation
- Response serialization (camelCase on the wire)
- API documentation
"""

from schemas.audit import AuditLogFilterParams, AuditLogListData, AuditLogResponse
from schemas.auth import (
    AuthData,
    LoginRequest,
    LogoutRequest,
    RefreshData,
    RefreshRequest,
    RegisterRequest,
)
from schemas.common import (
    ApiResponse,
    CamelModel,
    ErrorResponse,
    FieldError,
    Pagination,
    PaginationParams,
    SearchResult,
    StatusResponse,
)
from schemas.enums import MessageSortField, SortOrder, UserSortField
from schemas.message import (
    MessageCreate,
    MessageData,
    MessageFilterParams,
    MessageListData,
    MessageResponse,
    MessageUpdate,
)
from schemas.user import (
    PasswordChange,
    UserData,
    UserFilterParams,
    UserListData,
    UserResponse,
    UserStats,
    UserUpdate,
)

__all__ = [
    # Common schemas
    "CamelModel",
    "PaginationParams",
    "Pagination",
    "SearchResult",
    "ApiResponse",
    "StatusResponse",
    "FieldError",
    "ErrorResponse",
    # Sorting
    "SortOrder",
    "UserSortField",
    "MessageSortField",
    # Auth schemas
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "AuthData",
    "RefreshData",
    # User schemas
    "UserResponse",
    "UserUpdate",
    "PasswordChange",
    "UserFilterParams",
    "UserListData",
    "UserData",
    "UserStats",
    # Message schemas
    "MessageCreate",
    "MessageUpdate",
    "MessageResponse",
    "MessageFilterParams",
    "MessageData",
    "MessageListData",
    # Audit schemas
    "AuditLogResponse",
    "AuditLogFilterParams",
    "AuditLogListData",
]
