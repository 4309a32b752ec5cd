"""
Audit log Pydantic schemas for API request/response handling.

This module provides:
- Audit log response schema
- Audit log filtering parameters
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from models.enums import AuditAction
from schemas.common import CamelModel, Pagination


class AuditLogResponse(CamelModel):
    """
    Schema for audit log response.

    Attributes:
        id: Audit log entry ID
        user_id: ID of user who performed the action
        action: Action performed ("login", "update", ...)
        resource_type: Type of resource affected ("user", "message")
        resource_id: ID of the affected resource
        old_values: Resource state before the action
        new_values: Resource state after the action
        ip_address: IP address of the client
        user_agent: User agent string of the client
        request_id: Correlation ID for tracing requests
        created_at: Timestamp of the action
    """

    id: UUID = Field(description="Audit log entry ID")
    user_id: UUID | None = Field(default=None, description="ID of user who performed the action")
    action: AuditAction = Field(description="Action performed")
    resource_type: str = Field(description="Type of resource affected")
    resource_id: str | None = Field(default=None, description="ID of the affected resource")
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    ip_address: str | None = Field(default=None, description="Client IP address")
    user_agent: str | None = Field(default=None, description="Client user agent")
    request_id: str | None = Field(default=None, description="Correlation ID")
    created_at: datetime = Field(description="Timestamp of the action")


class AuditLogFilterParams(CamelModel):
    """
    Query parameters for filtering audit logs.

    Attributes:
        user_id: Filter by acting user
        action: Filter by action type
        resource_type: Filter by resource type
        resource_id: Filter by resource ID
        start_date: Only entries created at or after this instant
        end_date: Only entries created at or before this instant
    """

    user_id: UUID | None = None
    action: AuditAction | None = None
    resource_type: str | None = Field(default=None, max_length=50)
    resource_id: str | None = Field(default=None, max_length=255)
    start_date: datetime | None = None
    end_date: datetime | None = None


class AuditLogListData(CamelModel):
    """Payload of GET /api/audit-logs."""

    logs: list[AuditLogResponse]
    pagination: Pagination
