"""
User management API routes.

This module provides:
- GET /api/users - List users (admin or moderator, paginated)
- GET /api/users/stats - Aggregate user statistics (admin only)
- GET /api/users/{user_id} - Get a user (admin, moderator or self)
- PUT /api/users/{user_id} - Update a user (admin or self)
- PUT /api/users/{user_id}/password - Change password (admin or self)
- DELETE /api/users/{user_id} - Soft delete a user (admin only)
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request

from api.dependencies import (
    AdminUser,
    CurrentUser,
    ModeratorUser,
    PaginationDep,
    RequestContextDep,
    UserServiceDep,
)
from core.config import settings
from core.query_builder import resolve_sort
from core.rate_limit import limiter
from models.enums import UserRole, UserStatus
from schemas.common import ApiResponse, Pagination, StatusResponse
from schemas.enums import UserSortField
from schemas.user import (
    PasswordChange,
    UserData,
    UserFilterParams,
    UserListData,
    UserResponse,
    UserStats,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "",
    response_model=ApiResponse[UserListData],
    summary="List users",
    description="List users with pagination, filtering and sorting (admin or moderator)",
)
async def list_users(
    current_user: ModeratorUser,
    user_service: UserServiceDep,
    pagination: PaginationDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
    role: UserRole | None = None,
    user_status: Annotated[UserStatus | None, Query(alias="status")] = None,
    sort: str | None = None,
    order: str | None = None,
) -> ApiResponse[UserListData]:
    """
    List users.

    Query parameters:
        - page / limit: Clamped to 1..1000 and 1..100
        - search: Matches email, username, first or last name
        - role / status: Exact match; unknown values are rejected
        - sort: created_at, updated_at, email, username or last_login;
          anything else falls back to created_at
        - order: asc, otherwise desc
    """
    filters = UserFilterParams(search=search, role=role, status=user_status)
    sort_spec = resolve_sort(sort, UserSortField, UserSortField.CREATED_AT, order)

    result = await user_service.list_users(filters, sort_spec, pagination)

    return ApiResponse(
        data=UserListData(
            users=[UserResponse.model_validate(user) for user in result.items],
            pagination=Pagination.build(pagination, result.total),
        )
    )


@router.get(
    "/stats",
    response_model=ApiResponse[UserStats],
    summary="User statistics",
    description="Counts per status and role, plus 30-day activity (admin only)",
)
async def get_user_stats(
    current_user: AdminUser,
    user_service: UserServiceDep,
) -> ApiResponse[UserStats]:
    stats = await user_service.get_stats()
    return ApiResponse(data=UserStats(**stats))


# ============================================================================
# Single User Endpoints
# ============================================================================


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserData],
    summary="Get specific user",
    description="Get a user's profile (admins and moderators can view any, users can view self)",
)
async def get_user(
    user_id: uuid.UUID,
    current_user: CurrentUser,
    user_service: UserServiceDep,
) -> ApiResponse[UserData]:
    """
    Get specific user by ID.

    Raises:
        - 403 Forbidden: Regular user viewing someone else
        - 404 Not Found: User not found
    """
    user = await user_service.get_user(user_id, current_user)
    return ApiResponse(data=UserData(user=UserResponse.model_validate(user)))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserData],
    summary="Update user",
    description="Update profile fields (self or admin); role and status are admin-only",
)
async def update_user(
    user_id: uuid.UUID,
    update_data: UserUpdate,
    current_user: CurrentUser,
    user_service: UserServiceDep,
    context: RequestContextDep,
) -> ApiResponse[UserData]:
    """
    Update a user.

    Fields outside the allow-list are ignored; ``role`` and ``status`` are
    ignored for non-admins.

    Raises:
        - 400 Bad Request: No updatable fields, or username taken
        - 403 Forbidden: Not self and not admin
        - 404 Not Found: User not found
    """
    user = await user_service.update_user(user_id, update_data, current_user, context=context)
    return ApiResponse(
        message="User updated successfully",
        data=UserData(user=UserResponse.model_validate(user)),
    )


@router.put(
    "/{user_id}/password",
    response_model=StatusResponse,
    summary="Change password",
    description="""
    Change a user's password (self or admin).

    **Security:** All refresh tokens of the user are revoked, requiring
    re-authentication on all devices.

    **Rate Limit:** Configurable via RATE_LIMIT_PASSWORD_CHANGE
    """,
)
@limiter.limit(settings.rate_limit_password_change)
async def change_password(
    request: Request,
    user_id: uuid.UUID,
    password_data: PasswordChange,
    current_user: CurrentUser,
    user_service: UserServiceDep,
    context: RequestContextDep,
) -> StatusResponse:
    """
    Change password.

    Raises:
        - 400 Bad Request: Current password missing or incorrect, weak new password
        - 403 Forbidden: Not self and not admin
        - 404 Not Found: User not found
    """
    await user_service.change_password(user_id, password_data, current_user, context=context)
    return StatusResponse(message="Password changed successfully")


@router.delete(
    "/{user_id}",
    response_model=StatusResponse,
    summary="Soft delete user",
    description="Soft delete a user account (admin only)",
)
async def delete_user(
    user_id: uuid.UUID,
    current_user: AdminUser,
    user_service: UserServiceDep,
    context: RequestContextDep,
) -> StatusResponse:
    """
    Soft delete a user account.

    Effects:
        - Sets deleted_at and status "deleted"
        - Revokes all refresh tokens

    Raises:
        - 400 Bad Request: Deleting your own account
        - 403 Forbidden: Not admin, or target is an admin and caller is not super_admin
        - 404 Not Found: User not found
    """
    await user_service.delete_user(user_id, current_user, context=context)
    return StatusResponse(message="User deleted successfully")
