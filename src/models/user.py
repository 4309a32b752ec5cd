"""
User model.

A user is the principal every token, audit entry and message refers to.
Role and status are closed enums; only ACTIVE users may authenticate.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, enum_column
from models.enums import ADMIN_ROLES, ELEVATED_ROLES, UserRole, UserStatus
from models.mixins import SoftDeleteMixin, TimestampMixin, utcnow


class User(Base, TimestampMixin, SoftDeleteMixin):
    """
    User model for authentication and profile management.

    Attributes:
        id: UUID primary key
        email: Lowercased email, unique among non-deleted users
        username: Unique among non-deleted users ([A-Za-z0-9_], 3-30 chars)
        password_hash: Argon2id hash, never serialized outward
        first_name / last_name: Display name parts
        bio / avatar_url: Optional profile fields
        role: UserRole
        status: UserStatus
        email_verified / email_verified_at: Verification state
        last_login / login_count: Updated on every successful login
        password_changed_at: Last password change
        created_at / updated_at / deleted_at: Lifecycle timestamps
    """

    __tablename__ = "users"
    __audit_exclude__ = frozenset({"password_hash"})

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    username: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Profile fields
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Access control
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole, "user_role"),
        nullable=False,
        default=UserRole.USER,
        index=True,
    )

    status: Mapped[UserStatus] = mapped_column(
        enum_column(UserStatus, "user_status"),
        nullable=False,
        default=UserStatus.ACTIVE,
        index=True,
    )

    # Verification
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Activity tracking
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    login_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    password_changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE and self.deleted_at is None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_elevated(self) -> bool:
        """Moderator or above."""
        return self.role in ELEVATED_ROLES

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, role={self.role})"
