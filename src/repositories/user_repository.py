"""
User repository for user-specific database operations.

This module provides database operations for the User model,
including authentication lookups, uniqueness checks, filtered listing
and aggregate statistics.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.query_builder import SortSpec, apply_pagination, apply_sort
from models.enums import UserRole, UserStatus
from models.user import User
from repositories.base import BaseRepository
from schemas.common import PaginationParams
from schemas.user import UserFilterParams

STATS_WINDOW = timedelta(days=30)


class UserRepository(BaseRepository[User]):
    """
    Repository for User model operations.

    Extends BaseRepository with user-specific queries:
    - Email and username lookups (for authentication)
    - Uniqueness checks among non-deleted users
    - User filtering (for admin/moderator list view)
    - Activity tracking (login counters)
    - Aggregate statistics
    """

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email address (case-insensitive).

        Automatically filters out soft-deleted users.

        Example:
            user = await user_repo.get_by_email("john@example.com")
            if user is None:
                raise InvalidCredentialsError()
        """
        query = select(User).where(User.email == email.strip().lower())
        query = self._apply_soft_delete_filter(query)

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def email_or_username_taken(
        self,
        email: str,
        username: str,
        exclude_user_id: uuid.UUID | None = None,
    ) -> bool:
        """
        Check whether either value is already used by a non-deleted user.

        Args:
            email: Email address (compared lowercased)
            username: Username
            exclude_user_id: User ID to exclude from check (for updates)

        Returns:
            True if the email or the username is taken
        """
        query = select(User.id).where(
            or_(User.email == email.strip().lower(), User.username == username)
        )
        query = self._apply_soft_delete_filter(query)

        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)

        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def username_exists(self, username: str, exclude_user_id: uuid.UUID | None = None) -> bool:
        """
        Check if username is already in use by another user.

        Example:
            if await user_repo.username_exists(new_username, exclude_user_id=user.id):
                raise AlreadyExistsError("User with this username")
        """
        query = select(User.id).where(User.username == username)
        query = self._apply_soft_delete_filter(query)

        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)

        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def record_login(self, user: User) -> User:
        """
        Stamp last_login and increment login_count.

        The increment is done in SQL so concurrent logins are not lost.
        """
        await self.session.execute(
            update(User)
            .where(User.id == user.id)
            .values(
                last_login=datetime.now(UTC),
                login_count=User.login_count + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        await self.session.refresh(user)
        return user

    def _apply_filters(self, query: Select[Any], filters: UserFilterParams) -> Select[Any]:
        query = self._apply_soft_delete_filter(query)

        if filters.search:
            search_pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    User.username.ilike(search_pattern),
                    User.email.ilike(search_pattern),
                    User.first_name.ilike(search_pattern),
                    User.last_name.ilike(search_pattern),
                )
            )

        if filters.role:
            query = query.where(User.role == filters.role)

        if filters.status:
            query = query.where(User.status == filters.status)

        return query

    async def filter_users(
        self,
        filters: UserFilterParams,
        sort: SortSpec,
        pagination: PaginationParams,
    ) -> list[User]:
        """
        Filter users with search, role and status, sorted and paginated.

        Sorting and pagination come pre-validated from the query builder.

        Example:
            users = await user_repo.filter_users(
                UserFilterParams(search="john", role=UserRole.USER),
                resolve_sort("username", UserSortField, UserSortField.CREATED_AT, "asc"),
                PaginationParams(page=1, limit=20),
            )
        """
        query = self._apply_filters(select(User), filters)
        query = apply_sort(query, User, sort)
        query = apply_pagination(query, pagination)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_filtered(self, filters: UserFilterParams) -> int:
        """Count users matching the same filters as filter_users."""
        query = self._apply_filters(select(func.count()).select_from(User), filters)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def stats(self) -> dict[str, int]:
        """
        Aggregate user counts by status and role, plus 30-day activity.

        Soft-deleted users are excluded.
        """
        cutoff = datetime.now(UTC) - STATS_WINDOW
        query = select(
            func.count().label("total_users"),
            func.count().filter(User.status == UserStatus.ACTIVE).label("active_users"),
            func.count().filter(User.status == UserStatus.INACTIVE).label("inactive_users"),
            func.count().filter(User.status == UserStatus.SUSPENDED).label("suspended_users"),
            func.count()
            .filter(User.role.in_([UserRole.ADMIN, UserRole.SUPER_ADMIN]))
            .label("admin_users"),
            func.count().filter(User.role == UserRole.MODERATOR).label("moderator_users"),
            func.count().filter(User.role == UserRole.USER).label("regular_users"),
            func.count().filter(User.created_at >= cutoff).label("new_users_30d"),
            func.count().filter(User.last_login >= cutoff).label("active_users_30d"),
        ).select_from(User)
        query = self._apply_soft_delete_filter(query)

        result = await self.session.execute(query)
        return {key: int(value or 0) for key, value in result.one()._mapping.items()}
