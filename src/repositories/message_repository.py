"""
Message repository for content database operations.

This module provides database operations for the Message model:
- Lookups by id or slug
- Slug uniqueness checks
- Filtered, sorted, paginated listing
- View counter increments
- Tag assignment through the message_tags junction table
"""

import uuid
from typing import Any

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.query_builder import SortSpec, apply_pagination, apply_sort
from models.category import Category
from models.enums import MessageStatus
from models.message import Message, MessageTag
from models.tag import Tag
from models.user import User
from repositories.base import BaseRepository
from schemas.common import PaginationParams
from schemas.message import MessageFilterParams


class MessageRepository(BaseRepository[Message]):
    """
    Repository for Message model operations.

    Extends BaseRepository with content-specific queries. Soft-deleted
    messages are never returned, but their slugs stay reserved.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Message, session)

    async def get_by_slug(self, slug: str) -> Message | None:
        """Get a non-deleted message by its slug."""
        query = select(Message).where(Message.slug == slug)
        query = self._apply_soft_delete_filter(query)

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
        """
        Check whether a slug is taken.

        Soft-deleted messages are included because the unique constraint
        covers every row.

        Args:
            slug: Candidate slug
            exclude_id: Message to ignore (the one being renamed)
        """
        query = select(Message.id).where(Message.slug == slug)
        if exclude_id:
            query = query.where(Message.id != exclude_id)

        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    def _apply_filters(
        self,
        query: Select[Any],
        filters: MessageFilterParams,
        status: MessageStatus | None,
    ) -> Select[Any]:
        query = self._apply_soft_delete_filter(query)

        if filters.search:
            search_pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    Message.title.ilike(search_pattern),
                    Message.content.ilike(search_pattern),
                )
            )

        if filters.category:
            query = query.where(
                Message.category_id.in_(
                    select(Category.id).where(Category.slug == filters.category)
                )
            )

        if filters.author:
            query = query.where(
                Message.author_id.in_(select(User.id).where(User.username == filters.author))
            )

        if status:
            query = query.where(Message.status == status)

        return query

    async def filter_messages(
        self,
        filters: MessageFilterParams,
        status: MessageStatus | None,
        sort: SortSpec,
        pagination: PaginationParams,
    ) -> list[Message]:
        """
        List messages matching filters.

        Args:
            filters: Search, category slug and author username filters
            status: Effective status filter decided by the caller's visibility
            sort: Whitelisted sort column and direction
            pagination: Clamped page and limit
        """
        query = self._apply_filters(select(Message), filters, status)
        query = apply_sort(query, Message, sort)
        query = apply_pagination(query, pagination)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_filtered(
        self,
        filters: MessageFilterParams,
        status: MessageStatus | None,
    ) -> int:
        query = self._apply_filters(select(func.count()).select_from(Message), filters, status)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def increment_view_count(self, message_id: uuid.UUID) -> None:
        """
        Increment view_count with a standalone UPDATE.

        In-memory instances are left untouched; callers that need the new
        value compute it from the count they already loaded.
        """
        await self.session.execute(
            update(Message)
            .where(Message.id == message_id)
            .values(view_count=Message.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    async def category_exists(self, category_id: uuid.UUID) -> bool:
        """True if an active category with this id exists."""
        query = select(Category.id).where(
            Category.id == category_id,
            Category.is_active.is_(True),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none() is not None

    async def existing_tag_ids(self, tag_ids: list[uuid.UUID]) -> list[uuid.UUID]:
        """Filter tag ids down to those of existing, active tags."""
        if not tag_ids:
            return []
        query = select(Tag.id).where(Tag.id.in_(tag_ids), Tag.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def replace_tags(self, message: Message, tag_ids: list[uuid.UUID]) -> int:
        """
        Replace the tag set of a message.

        Unknown tag ids are skipped. Duplicates are collapsed.

        Returns:
            Number of tags attached
        """
        await self.session.execute(delete(MessageTag).where(MessageTag.message_id == message.id))

        existing = await self.existing_tag_ids(list(dict.fromkeys(tag_ids)))
        for tag_id in existing:
            self.session.add(MessageTag(message_id=message.id, tag_id=tag_id))

        await self.session.flush()
        await self.session.refresh(message, attribute_names=["tags"])
        return len(existing)
