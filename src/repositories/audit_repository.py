"""
AuditLog repository for audit trail operations.

This module provides database operations for the AuditLog model.
Note: AuditLogs are IMMUTABLE - this repository only supports
creation and reading, not updates or deletes.
"""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.audit_log import AuditLog
from schemas.audit import AuditLogFilterParams


class AuditLogRepository:
    """
    Repository for AuditLog model operations.

    IMPORTANT: This repository does NOT extend BaseRepository because
    audit logs are immutable. Only add() and read operations are supported.

    Operations:
    - Create audit log entries
    - Query audit logs by user, resource, action, date range
    - Count audit logs for pagination

    NO UPDATE OR DELETE OPERATIONS - audit logs are write-once.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, instance: AuditLog) -> AuditLog:
        """
        Persist a new audit log entry.

        This is the ONLY way to add audit logs. They cannot be modified after creation.
        """
        self.session.add(instance)
        await self.session.flush()
        return instance

    @staticmethod
    def _apply_filters(query: Select[Any], filters: AuditLogFilterParams) -> Select[Any]:
        if filters.user_id:
            query = query.where(AuditLog.user_id == filters.user_id)

        if filters.action:
            query = query.where(AuditLog.action == filters.action)

        if filters.resource_type:
            query = query.where(AuditLog.resource_type == filters.resource_type)

        if filters.resource_id:
            query = query.where(AuditLog.resource_id == filters.resource_id)

        if filters.start_date:
            query = query.where(AuditLog.created_at >= filters.start_date)

        if filters.end_date:
            query = query.where(AuditLog.created_at <= filters.end_date)

        return query

    async def query(
        self,
        filters: AuditLogFilterParams,
        offset: int = 0,
        limit: int = 100,
    ) -> list[AuditLog]:
        """
        Get audit logs matching filters, newest first.

        Args:
            filters: Actor, action, resource and date range filters
            offset: Number of records to skip (pagination)
            limit: Maximum number of records to return

        Example:
            # Last week's logins
            logs = await audit_repo.query(
                AuditLogFilterParams(
                    action=AuditAction.LOGIN,
                    start_date=datetime.now(UTC) - timedelta(days=7),
                )
            )
        """
        query = self._apply_filters(select(AuditLog), filters)

        # Order by created_at descending (newest first)
        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

        # Apply pagination
        query = query.offset(offset).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, filters: AuditLogFilterParams) -> int:
        """Count audit logs matching filters. Used for pagination metadata."""
        query = self._apply_filters(select(func.count()).select_from(AuditLog), filters)

        result = await self.session.execute(query)
        return result.scalar_one()
