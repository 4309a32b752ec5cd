"""
Message Pydantic schemas for API request/response handling.

This module provides:
- Message creation and update schemas (with tag side channel)
- Message response schemas with author, category and tags
- Message filtering schema
"""

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from core.sanitizer import sanitize_html, sanitize_text
from models.enums import MessageStatus
from schemas.common import CamelModel, Pagination


def clean_plain_text(value: object) -> object:
    """Strip markup from a title or excerpt before its length is checked."""
    return sanitize_text(value) if isinstance(value, str) else value


def clean_body(value: object) -> object:
    """Sanitize a message body before its length is checked."""
    return sanitize_html(value) if isinstance(value, str) else value


class MessageCreate(CamelModel):
    """
    Schema for creating a message.

    Attributes:
        title: 5-255 characters of plain text (markup stripped first)
        content: At least 10 characters once sanitized (formatting tags only)
        excerpt: Optional, at most 500 characters
        category_id: Optional category reference
        tags: Tag ids; malformed or unknown ids are skipped
        status: Honored for moderators and admins; regular users always publish
        is_featured / is_pinned: Honored for moderators and admins only
    """

    title: str = Field(min_length=5, max_length=255)
    content: str = Field(min_length=10)
    excerpt: str | None = Field(default=None, max_length=500)
    category_id: uuid.UUID | None = None
    tags: list[str] | None = None
    status: MessageStatus | None = None
    is_featured: bool = False
    is_pinned: bool = False

    @field_validator("title", "excerpt", mode="before")
    @classmethod
    def sanitize_plain_fields(cls, value: object) -> object:
        return clean_plain_text(value)

    @field_validator("content", mode="before")
    @classmethod
    def sanitize_content(cls, value: object) -> object:
        return clean_body(value)


class MessageUpdate(CamelModel):
    """
    Schema for updating a message.

    Only fields present in the request body are applied. Text fields are
    sanitized before their length limits apply, as on create. ``tags`` replaces
    the whole tag set and counts as an update on its own.
    """

    title: str | None = Field(default=None, min_length=5, max_length=255)
    content: str | None = Field(default=None, min_length=10)
    excerpt: str | None = Field(default=None, max_length=500)
    category_id: uuid.UUID | None = None
    tags: list[str] | None = None
    status: MessageStatus | None = None
    is_featured: bool | None = None
    is_pinned: bool | None = None

    @field_validator("title", "excerpt", mode="before")
    @classmethod
    def sanitize_plain_fields(cls, value: object) -> object:
        return clean_plain_text(value)

    @field_validator("content", mode="before")
    @classmethod
    def sanitize_content(cls, value: object) -> object:
        return clean_body(value)


class MessageAuthor(CamelModel):
    id: uuid.UUID
    username: str
    first_name: str
    last_name: str
    avatar_url: str | None = None


class MessageCategory(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    color: str


class MessageTagItem(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    color: str


class MessageResponse(CamelModel):
    """Message as returned by the API."""

    id: uuid.UUID
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    status: MessageStatus
    is_featured: bool
    is_pinned: bool
    view_count: int
    like_count: int
    comment_count: int
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    author: MessageAuthor | None = None
    category: MessageCategory | None = None
    tags: list[MessageTagItem] = Field(default_factory=list)


class MessageFilterParams(CamelModel):
    """
    Query filters for message lists.

    Attributes:
        search: Case-insensitive match on title or content
        category: Category slug
        status: Exact status (non-elevated callers only ever see published)
        author: Author username
    """

    search: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=100)
    status: MessageStatus | None = None
    author: str | None = Field(default=None, max_length=30)


class MessageData(CamelModel):
    """Payload wrapping a single message."""

    message: MessageResponse


class MessageListData(CamelModel):
    """Payload of GET /api/messages."""

    messages: list[MessageResponse]
    pagination: Pagination
