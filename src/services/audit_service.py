"""
Audit service for the append-only audit trail.

This module provides:
- Best-effort audit recording (failures are logged, never raised)
- Convenience wrappers for authentication and data-change events
- Filtered, paginated audit log retrieval for admins
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from models.audit_log import AuditLog
from models.enums import AuditAction
from repositories.audit_repository import AuditLogRepository
from schemas.audit import AuditLogFilterParams
from schemas.common import PaginationParams, SearchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Origin of an HTTP request, copied into audit entries."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


class AuditService:
    """
    Service class for audit logging operations.

    This service handles:
    - Authentication event logging (login, logout, password change)
    - Data modification logging (create, update, delete, role change)
    - Audit log retrieval with filtering

    Callers commit their own work BEFORE recording, so a failed audit write
    can never undo the action it describes.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuditService.

        Args:
            session: Async database session
        """
        self.session = session
        self.audit_repo = AuditLogRepository(session)

    async def record(
        self,
        user_id: uuid.UUID | None,
        action: AuditAction,
        resource_type: str,
        resource_id: uuid.UUID | str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> AuditLog | None:
        """
        Append one audit entry, best-effort.

        The insert runs in a savepoint and is committed immediately. Any
        failure is logged and swallowed; the return value is then None.

        Args:
            user_id: Acting user (None for anonymous actions)
            action: Type of action performed
            resource_type: Kind of resource affected ("user", "message")
            resource_id: Identifier of the affected resource
            old_values: Snapshot before the action
            new_values: Snapshot after the action
            context: Request origin (IP, user agent, request id)

        Returns:
            Created AuditLog, or None if auditing is disabled or failed

        Example:
            await audit_service.record(
                user_id=admin.id,
                action=AuditAction.ROLE_CHANGE,
                resource_type="user",
                resource_id=target.id,
                old_values={"role": "user"},
                new_values={"role": "moderator"},
                context=context,
            )
        """
        if not settings.audit_log_enabled:
            return None

        context = context or RequestContext()
        try:
            # A failed insert only rolls back the savepoint
            async with self.session.begin_nested():
                audit_log = await self.audit_repo.add(
                    AuditLog(
                        user_id=user_id,
                        action=action,
                        resource_type=resource_type,
                        resource_id=str(resource_id) if resource_id is not None else None,
                        old_values=old_values,
                        new_values=new_values,
                        ip_address=context.ip_address,
                        user_agent=context.user_agent,
                        request_id=context.request_id,
                    )
                )
        except Exception as e:
            logger.error(
                f"Failed to write audit log: action={action.value}, "
                f"resource={resource_type}:{resource_id}, user={user_id}: {e}",
                exc_info=True,
            )
            return None

        try:
            await self.session.commit()
        except Exception as e:
            logger.error(f"Failed to commit audit log: action={action.value}: {e}", exc_info=True)
            await self._discard_failed_commit()
            return None

        logger.debug(
            f"Audit log created: user={user_id}, action={action.value}, "
            f"resource={resource_type}:{resource_id}"
        )
        return audit_log

    async def _discard_failed_commit(self) -> None:
        # Only the audit row can be pending here; the caller already committed
        try:
            await self.session.rollback()
        except Exception as e:
            logger.error(f"Rollback after failed audit commit also failed: {e}")

    async def log_login(
        self,
        user_id: uuid.UUID,
        context: RequestContext | None = None,
    ) -> AuditLog | None:
        """Log a successful login."""
        return await self.record(
            user_id=user_id,
            action=AuditAction.LOGIN,
            resource_type="user",
            resource_id=user_id,
            context=context,
        )

    async def log_logout(
        self,
        user_id: uuid.UUID,
        context: RequestContext | None = None,
    ) -> AuditLog | None:
        """Log a logout."""
        return await self.record(
            user_id=user_id,
            action=AuditAction.LOGOUT,
            resource_type="user",
            resource_id=user_id,
            context=context,
        )

    async def log_password_reset(
        self,
        actor_id: uuid.UUID,
        target_user_id: uuid.UUID,
        context: RequestContext | None = None,
    ) -> AuditLog | None:
        """
        Log a password change.

        Args:
            actor_id: Who changed it (the user or an admin)
            target_user_id: Whose password changed
            context: Request origin
        """
        return await self.record(
            user_id=actor_id,
            action=AuditAction.PASSWORD_RESET,
            resource_type="user",
            resource_id=target_user_id,
            context=context,
        )

    async def log_data_change(
        self,
        user_id: uuid.UUID | None,
        action: AuditAction,
        resource_type: str,
        resource_id: uuid.UUID | str | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> AuditLog | None:
        """
        Log a create, update, delete or role change with snapshots.

        Example:
            await audit_service.log_data_change(
                user_id=user.id,
                action=AuditAction.CREATE,
                resource_type="message",
                resource_id=message.id,
                new_values=message.to_dict(),
                context=context,
            )
        """
        return await self.record(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            context=context,
        )

    async def query(
        self,
        filters: AuditLogFilterParams,
        pagination: PaginationParams,
    ) -> SearchResult[AuditLog]:
        """
        Get audit logs matching filters, newest first.

        Args:
            filters: Actor, action, resource and date range filters
            pagination: Clamped page and limit

        Returns:
            SearchResult with the page of entries and the total count
        """
        logs = await self.audit_repo.query(
            filters,
            offset=pagination.offset,
            limit=pagination.limit,
        )
        total = await self.audit_repo.count(filters)
        return SearchResult(items=logs, total=total)
