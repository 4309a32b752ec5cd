"""
Reusable mixins for database models.

This module provides mixins for common model patterns:
- TimestampMixin: created_at and updated_at timestamps
- SoftDeleteMixin: soft delete with deleted_at timestamp
"""

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """
    Mixin to add timestamp columns to models.

    Adds:
    - created_at: Timestamp when record was created (auto-set)
    - updated_at: Timestamp when record was last updated (auto-updated)

    Both timestamps use UTC timezone.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class SoftDeleteMixin:
    """
    Mixin to add soft delete functionality to models.

    Adds:
    - deleted_at: Timestamp when record was soft-deleted (NULL if not deleted)

    Soft deleted rows stay in the table so audit entries keep pointing at
    something, but repositories filter them out of every query. Unique
    columns on such tables use partial unique indexes (WHERE deleted_at IS
    NULL) so a deleted account's email can be registered again.
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )

    @property
    def is_deleted(self) -> bool:
        """True once deleted_at has been set."""
        return self.deleted_at is not None
