"""
Base model class for all database models.

This module provides the declarative base and common model configuration.
All SQLAlchemy models should inherit from Base.
"""

import enum
import uuid
from typing import Any

from sqlalchemy import JSON, Enum, MetaData, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Naming convention for constraints
# This ensures consistent naming across all database objects
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# JSONB on Postgres, plain JSON elsewhere (the test suite runs on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    """
    Column type for a str enum stored by value ("admin"), not by name ("ADMIN").
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """
    Base class for all database models.

    Provides:
    - UUID primary key (id column)
    - Naming convention for constraints
    - to_dict() used for audit snapshots

    Usage:
        class User(Base):
            __tablename__ = "users"
            username: Mapped[str] = mapped_column(String(50))
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    # Columns never copied into audit snapshots
    __audit_exclude__: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """
        Snapshot of column values with JSON-friendly types.

        Columns listed in ``__audit_exclude__`` are omitted.
        """
        snapshot: dict[str, Any] = {}
        for column in self.__table__.columns:
            if column.key in self.__audit_exclude__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, enum.Enum):
                value = value.value
            elif hasattr(value, "isoformat"):
                value = value.isoformat()
            snapshot[column.key] = value
        return snapshot

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"
