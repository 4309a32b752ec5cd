"""
AuditLog model for the append-only audit trail.

This module records who did what to which resource:
- Authentication events (login, logout, password changes)
- Data modifications with before/after snapshots
- Request context (IP address, user agent, request ID)

Audit logs are WRITE-ONCE. The repository layer exposes no update or
delete operation for this table.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, JSONType, enum_column
from models.enums import AuditAction
from models.mixins import utcnow


class AuditLog(Base):
    """
    AuditLog model for tracking security-relevant actions.

    Attributes:
        id: UUID primary key
        user_id: User who performed the action (NULL for anonymous or deleted users)
        action: Type of action performed (AuditAction)
        resource_type: Kind of resource affected ("user", "message", ...)
        resource_id: Identifier of the affected resource, stored as text
        old_values: JSON snapshot before the action
        new_values: JSON snapshot after the action
        ip_address: Client IP address
        user_agent: Client User-Agent header
        request_id: Correlation ID of the HTTP request
        created_at: When the action occurred

    Example:
        audit_log = AuditLog(
            user_id=current_user.id,
            action=AuditAction.UPDATE,
            resource_type="user",
            resource_id=str(target_user.id),
            old_values={"first_name": "Old"},
            new_values={"first_name": "New"},
            ip_address=request.client.host,
            request_id=request.state.request_id,
        )
    """

    __tablename__ = "audit_logs"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    action: Mapped[AuditAction] = mapped_column(
        enum_column(AuditAction, "audit_action"),
        nullable=False,
        index=True,
    )

    resource_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    resource_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    old_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    new_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    # Request context
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )

    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    request_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    user: Mapped[Optional["User"]] = relationship(  # noqa: F821
        "User",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_audit_logs_user_date", "user_id", "created_at"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id", "created_at"),
        Index("ix_audit_logs_action_date", "action", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"AuditLog(id={self.id}, user_id={self.user_id}, action={self.action}, "
            f"resource_type={self.resource_type}, resource_id={self.resource_id})"
        )
