"""
Audit log API routes.

This module provides:
- GET /api/audit-logs - Filtered, paginated audit trail, newest first (admin only)
"""

import logging
import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from api.dependencies import AdminUser, AuditServiceDep, PaginationDep
from models.enums import AuditAction
from schemas.audit import AuditLogFilterParams, AuditLogListData, AuditLogResponse
from schemas.common import ApiResponse, Pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get(
    "",
    response_model=ApiResponse[AuditLogListData],
    summary="Get audit logs",
    description="Get audit logs with filtering, newest first (admin only)",
)
async def get_audit_logs(
    current_user: AdminUser,
    audit_service: AuditServiceDep,
    pagination: PaginationDep,
    user_id: Annotated[uuid.UUID | None, Query(alias="userId")] = None,
    action: AuditAction | None = None,
    resource_type: Annotated[str | None, Query(alias="resourceType", max_length=50)] = None,
    resource_id: Annotated[str | None, Query(alias="resourceId", max_length=255)] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
) -> ApiResponse[AuditLogListData]:
    """
    Get all audit logs with filtering (admin only).

    Query parameters:
        - page / limit: Clamped to 1..1000 and 1..100
        - userId: Acting user
        - action: create, update, delete, login, logout, password_reset,
          email_verify or role_change
        - resourceType / resourceId: Affected resource
        - startDate / endDate: Inclusive creation-time range (ISO 8601)
    """
    filters = AuditLogFilterParams(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
    )

    result = await audit_service.query(filters, pagination)

    return ApiResponse(
        data=AuditLogListData(
            logs=[AuditLogResponse.model_validate(log) for log in result.items],
            pagination=Pagination.build(pagination, result.total),
        )
    )
