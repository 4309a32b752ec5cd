"""
RefreshToken model for persisted refresh tokens.

A refresh token is honored only while BOTH its signature is unexpired and
this row says it is neither revoked nor past ``expires_at``.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import utcnow


class RefreshToken(Base):
    """
    Persisted refresh token.

    Attributes:
        id: UUID primary key
        token_hash: SHA-256 of the token string (the token itself is never stored)
        user_id: Owning user
        expires_at: Absolute expiry, set at issue time
        is_revoked: Set on logout, password change or account deletion
        revoked_at: When the token was revoked
        ip_address / user_agent: Origin of the request that minted it
        created_at: Issue time

    Token Lifecycle:
        1. Register/login: row created, is_revoked=False
        2. Refresh: row read, never modified (the refresh token is not rotated)
        3. Logout: that row revoked
        4. Password change / account deletion: every row of the user revoked
    """

    __tablename__ = "refresh_tokens"

    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    is_revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_refresh_tokens_user_valid", "user_id", "is_revoked", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"RefreshToken(id={self.id}, user_id={self.user_id}, "
            f"revoked={self.is_revoked})"
        )
