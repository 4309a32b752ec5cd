"""
Message (content) model and its tag junction table.

Messages follow the MessageStatus lifecycle. Only PUBLISHED messages are
publicly visible; deletion is soft (deleted_at plus status DELETED).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, enum_column
from models.category import Category
from models.enums import MessageStatus
from models.mixins import SoftDeleteMixin, TimestampMixin, utcnow
from models.tag import Tag
from models.user import User


class Message(Base, TimestampMixin, SoftDeleteMixin):
    """
    Authored content item.

    Attributes:
        id: UUID primary key
        title: 5-255 characters, sanitized
        slug: URL-safe unique slug derived from the title
        content: Body, at least 10 characters, sanitized
        excerpt: Optional summary, at most 500 characters
        author_id: Author (NULL once the author row is gone)
        category_id: Optional category
        status: MessageStatus
        is_featured / is_pinned: Editorial flags, moderators and admins only
        view_count / like_count / comment_count: Counters
        published_at: Set the first time the message becomes PUBLISHED
        created_at / updated_at / deleted_at: Lifecycle timestamps
        author / category / tags: Eager-loaded relationships
    """

    __tablename__ = "messages"
    __audit_exclude__ = frozenset({"content"})

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    slug: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        unique=True,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[MessageStatus] = mapped_column(
        enum_column(MessageStatus, "message_status"),
        nullable=False,
        default=MessageStatus.DRAFT,
        index=True,
    )

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    # Relationships
    author: Mapped[Optional[User]] = relationship(User, lazy="selectin")
    category: Mapped[Optional[Category]] = relationship(Category, lazy="selectin")
    tags: Mapped[list[Tag]] = relationship(
        Tag,
        secondary="message_tags",
        lazy="selectin",
        viewonly=True,
    )

    __table_args__ = (
        Index("ix_messages_status_published", "status", "published_at"),
    )

    def __repr__(self) -> str:
        return f"Message(id={self.id}, slug={self.slug}, status={self.status})"


class MessageTag(Base):
    """Association between a message and a tag."""

    __tablename__ = "message_tags"

    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("message_id", "tag_id", name="uq_message_tags_message_tag"),
    )
