"""
User service for user management operations.

This module provides:
- User listing with search, filters, sorting and pagination
- User retrieval with self-or-elevated access
- Whitelisted, role-gated profile updates
- Soft deletion with admin protection
- Password changes with refresh token revocation
- Aggregate user statistics
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    AlreadyExistsError,
    BadRequestError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidInputError,
    NotFoundError,
)
from core.query_builder import (
    ALLOWED_USER_UPDATE_FIELDS,
    USER_PRIVILEGED_FIELDS,
    SortSpec,
    filter_update_fields,
)
from core.sanitizer import sanitize_text
from core.security import hash_password, verify_password
from models.enums import ADMIN_ROLES, AuditAction, UserRole, UserStatus
from models.user import User
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.user_repository import UserRepository
from schemas.common import PaginationParams, SearchResult
from schemas.user import PasswordChange, UserFilterParams, UserUpdate
from services.audit_service import AuditService, RequestContext

logger = logging.getLogger(__name__)

# Columns that may not be cleared by sending null
NON_NULLABLE_UPDATE_FIELDS = frozenset({"first_name", "last_name", "username", "role", "status"})

SANITIZED_FIELDS = frozenset({"first_name", "last_name", "username", "bio"})


class UserService:
    """
    Service class for user management operations.

    Permission model:
    - Read one user: self, moderators and admins
    - List users: moderators and admins (enforced by the route)
    - Update: self or admin; role/status only for admins
    - Delete: admins only, never self, admin targets need super_admin
    - Change password: self or admin
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserService.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.token_repo = RefreshTokenRepository(session)
        self.audit_service = AuditService(session)

    async def list_users(
        self,
        filters: UserFilterParams,
        sort: SortSpec,
        pagination: PaginationParams,
    ) -> SearchResult[User]:
        """
        List users with filtering, sorting and pagination.

        Args:
            filters: Search, role and status filters
            sort: Whitelisted sort column and direction
            pagination: Clamped page and limit

        Returns:
            SearchResult with the page of users and the total count
        """
        users = await self.user_repo.filter_users(filters, sort, pagination)
        total = await self.user_repo.count_filtered(filters)
        return SearchResult(items=users, total=total)

    async def get_user(self, user_id: uuid.UUID, current_user: User) -> User:
        """
        Get a user by ID.

        Raises:
            InsufficientPermissionsError: Caller is neither the user nor elevated
            NotFoundError: If the user doesn't exist
        """
        if current_user.id != user_id and not current_user.is_elevated:
            raise InsufficientPermissionsError()

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def update_user(
        self,
        user_id: uuid.UUID,
        data: UserUpdate,
        current_user: User,
        context: RequestContext | None = None,
    ) -> User:
        """
        Apply a whitelisted partial update.

        Only fields present in the request AND on the allow-list are applied.
        ``role`` and ``status`` are silently ignored unless the caller is an
        admin. Only a super admin may grant, or change the role or status
        of, a super admin.

        Args:
            user_id: Target user
            data: Update payload
            current_user: Authenticated caller
            context: Request origin for the audit trail

        Returns:
            Updated User

        Raises:
            NotFoundError: Target doesn't exist
            InsufficientPermissionsError: Caller is neither the target nor an admin
            EmptyUpdateError: Nothing left to update after whitelisting
            AlreadyExistsError: New username is taken
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")

        if current_user.id != user.id and not current_user.is_admin:
            logger.warning(
                f"Unauthorized user update attempt: requester={current_user.id}, target={user_id}"
            )
            raise InsufficientPermissionsError()

        payload = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field not in NON_NULLABLE_UPDATE_FIELDS
        }
        updates = filter_update_fields(
            payload,
            ALLOWED_USER_UPDATE_FIELDS,
            USER_PRIVILEGED_FIELDS,
            caller_is_privileged=current_user.is_admin,
        )

        self._check_super_admin_changes(user, updates, current_user)

        if "username" in updates and updates["username"] != user.username:
            if await self.user_repo.username_exists(updates["username"], exclude_user_id=user.id):
                raise AlreadyExistsError("User", message="Username already taken")

        for field in SANITIZED_FIELDS & updates.keys():
            updates[field] = sanitize_text(updates[field])

        before = user.to_dict()
        old_values = {field: before.get(field) for field in updates}

        for field, value in updates.items():
            setattr(user, field, value)

        user = await self.user_repo.update(user)
        await self.session.commit()

        after = user.to_dict()
        role_changed = "role" in updates and old_values.get("role") != after.get("role")

        logger.info(f"User {user.id} updated by {current_user.id}: fields={sorted(updates)}")

        await self.audit_service.log_data_change(
            user_id=current_user.id,
            action=AuditAction.ROLE_CHANGE if role_changed else AuditAction.UPDATE,
            resource_type="user",
            resource_id=user.id,
            old_values=old_values,
            new_values={field: after.get(field) for field in updates},
            context=context,
        )

        return user

    @staticmethod
    def _check_super_admin_changes(
        user: User,
        updates: dict,
        current_user: User,
    ) -> None:
        if current_user.role == UserRole.SUPER_ADMIN:
            return
        touches_access = "role" in updates or "status" in updates
        if updates.get("role") == UserRole.SUPER_ADMIN or (
            touches_access and user.role == UserRole.SUPER_ADMIN
        ):
            raise ForbiddenError("Only super admins can manage super admin accounts")

    async def delete_user(
        self,
        user_id: uuid.UUID,
        current_user: User,
        context: RequestContext | None = None,
    ) -> None:
        """
        Soft delete a user and revoke all their refresh tokens.

        Raises:
            BadRequestError: Caller tries to delete their own account
            NotFoundError: Target doesn't exist
            ForbiddenError: Target is an admin and caller is not a super admin
        """
        if current_user.id == user_id:
            raise BadRequestError("Cannot delete your own account")

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")

        if user.role in ADMIN_ROLES and current_user.role != UserRole.SUPER_ADMIN:
            logger.warning(
                f"Admin deletion attempt by non-super-admin: requester={current_user.id}, "
                f"target={user_id}"
            )
            raise ForbiddenError("Cannot delete admin users")

        old_values = user.to_dict()

        user.status = UserStatus.DELETED
        await self.user_repo.soft_delete(user)
        revoked = await self.token_repo.revoke_user_tokens(user.id)
        await self.session.commit()

        logger.info(f"User {user_id} deleted by {current_user.id}, revoked {revoked} tokens")

        await self.audit_service.log_data_change(
            user_id=current_user.id,
            action=AuditAction.DELETE,
            resource_type="user",
            resource_id=user_id,
            old_values=old_values,
            context=context,
        )

    async def change_password(
        self,
        user_id: uuid.UUID,
        data: PasswordChange,
        current_user: User,
        context: RequestContext | None = None,
    ) -> None:
        """
        Change a user's password and revoke all their refresh tokens.

        The current password is required unless an admin changes another
        user's password.

        Raises:
            InsufficientPermissionsError: Caller is neither the target nor an admin
            NotFoundError: Target doesn't exist
            InvalidInputError: Current password missing or incorrect
        """
        is_self = current_user.id == user_id
        if not is_self and not current_user.is_admin:
            logger.warning(
                f"Unauthorized password change attempt: requester={current_user.id}, "
                f"target={user_id}"
            )
            raise InsufficientPermissionsError()

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")

        if is_self or not current_user.is_admin:
            if not data.current_password:
                raise InvalidInputError("currentPassword", "Current password is required")
            if not verify_password(data.current_password, user.password_hash):
                logger.warning(f"Invalid current password provided for user {user_id}")
                raise InvalidInputError("currentPassword", "Current password is incorrect")

        user.password_hash = hash_password(data.new_password)
        user.password_changed_at = datetime.now(UTC)
        await self.user_repo.update(user)
        revoked = await self.token_repo.revoke_user_tokens(user.id)
        await self.session.commit()

        logger.info(f"Password changed for user {user_id} by {current_user.id}, revoked {revoked} tokens")

        await self.audit_service.log_password_reset(current_user.id, user_id, context=context)

    async def get_stats(self) -> dict[str, int]:
        """Aggregate user counts by status and role, plus 30-day activity."""
        return await self.user_repo.stats()
