"""
Message service for content operations.

This module provides:
- Message listing with visibility rules (non-elevated callers see published only)
- Single message lookup by slug or id, with a view counter side effect
- Creation and updates with unique slug allocation
- Tag assignment through a side channel
- Soft deletion by owner, moderators and admins
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from core.exceptions import (
    ConflictError,
    InsufficientPermissionsError,
    InvalidInputError,
    NotFoundError,
)
from core.query_builder import (
    ALLOWED_MESSAGE_UPDATE_FIELDS,
    MESSAGE_PRIVILEGED_FIELDS,
    SortSpec,
    filter_update_fields,
)
from core.sanitizer import generate_slug, suffixed_slug
from models.enums import AuditAction, MessageStatus
from models.message import Message
from models.user import User
from repositories.message_repository import MessageRepository
from schemas.common import PaginationParams, SearchResult
from schemas.message import MessageCreate, MessageFilterParams, MessageUpdate
from services.audit_service import AuditService, RequestContext

logger = logging.getLogger(__name__)

# Insert attempts that may lose a slug race before giving up with 409
MAX_SLUG_ATTEMPTS = 5

NON_NULLABLE_UPDATE_FIELDS = frozenset({"title", "content", "status", "is_featured", "is_pinned"})


def parse_tag_ids(raw_tags: list[str] | None) -> list[uuid.UUID]:
    """Parse tag ids, skipping malformed entries and duplicates."""
    tag_ids: list[uuid.UUID] = []
    for raw in raw_tags or []:
        try:
            tag_id = uuid.UUID(str(raw))
        except ValueError:
            logger.debug(f"Skipping malformed tag id: {raw!r}")
            continue
        if tag_id not in tag_ids:
            tag_ids.append(tag_id)
    return tag_ids


def _is_slug_conflict(error: IntegrityError) -> bool:
    return "slug" in str(error.orig).lower()


class MessageService:
    """
    Service class for message operations.

    Permission model:
    - Published messages are public
    - Other statuses are visible to the author, moderators and admins
    - Update/delete: author, moderators and admins
    - status, is_featured and is_pinned: moderators and admins only
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize MessageService.

        Args:
            session: Async database session
        """
        self.session = session
        self.message_repo = MessageRepository(session)
        self.audit_service = AuditService(session)

    async def list_messages(
        self,
        filters: MessageFilterParams,
        sort: SortSpec,
        pagination: PaginationParams,
        viewer: User | None = None,
    ) -> SearchResult[Message]:
        """
        List messages visible to the viewer.

        Anonymous and regular callers only ever see published messages; a
        ``status`` filter from them is ignored. Moderators and admins see
        every non-deleted message, optionally narrowed by ``status``.

        Args:
            filters: Search, category, status and author filters
            sort: Whitelisted sort column and direction
            pagination: Clamped page and limit
            viewer: Authenticated caller, if any

        Returns:
            SearchResult with the page of messages and the total count
        """
        if viewer is not None and viewer.is_elevated:
            status = filters.status
        else:
            status = MessageStatus.PUBLISHED

        messages = await self.message_repo.filter_messages(filters, status, sort, pagination)
        total = await self.message_repo.count_filtered(filters, status)
        return SearchResult(items=messages, total=total)

    async def get_message(self, slug_or_id: str, viewer: User | None = None) -> Message:
        """
        Get a message by id or slug and count the view.

        Viewing a published message increments its stored view count. The
        returned instance carries the incremented value without re-reading
        the row.

        Raises:
            NotFoundError: Message missing, deleted, or not visible to the viewer
        """
        message = None
        try:
            message = await self.message_repo.get_by_id(uuid.UUID(slug_or_id))
        except ValueError:
            pass
        if message is None:
            message = await self.message_repo.get_by_slug(slug_or_id)

        if message is None or not self._can_view(message, viewer):
            raise NotFoundError("Message")

        if message.status == MessageStatus.PUBLISHED:
            stored_count = message.view_count
            await self.message_repo.increment_view_count(message.id)
            await self.session.commit()
            set_committed_value(message, "view_count", stored_count + 1)

        return message

    @staticmethod
    def _can_view(message: Message, viewer: User | None) -> bool:
        if message.status == MessageStatus.PUBLISHED:
            return True
        if viewer is None:
            return False
        return viewer.is_elevated or message.author_id == viewer.id

    @staticmethod
    def _can_modify(message: Message, user: User) -> bool:
        return user.is_elevated or message.author_id == user.id

    async def create_message(
        self,
        data: MessageCreate,
        author: User,
        context: RequestContext | None = None,
    ) -> Message:
        """
        Create a message with a unique slug.

        Regular users always publish and cannot feature or pin. Moderators
        and admins may choose the status (published by default) and flags.

        Args:
            data: Validated message payload, text already sanitized by the schema
            author: Authenticated caller
            context: Request origin for the audit trail

        Returns:
            Created Message with author, category and tags loaded

        Raises:
            InvalidInputError: Unknown or inactive category
            ConflictError: Slug allocation kept losing races
        """
        if data.category_id is not None:
            await self._check_category(data.category_id)

        if author.is_elevated:
            status = data.status or MessageStatus.PUBLISHED
            is_featured, is_pinned = data.is_featured, data.is_pinned
        else:
            status = MessageStatus.PUBLISHED
            is_featured, is_pinned = False, False

        fields = {
            "title": data.title,
            "content": data.content,
            "excerpt": data.excerpt,
            "author_id": author.id,
            "category_id": data.category_id,
            "status": status,
            "is_featured": is_featured,
            "is_pinned": is_pinned,
            "published_at": datetime.now(UTC) if status == MessageStatus.PUBLISHED else None,
        }

        async def insert(slug: str) -> Message:
            # A fresh instance per attempt; a rolled back savepoint expunges the old one
            return await self.message_repo.add(Message(slug=slug, **fields))

        message = await self._write_with_unique_slug(generate_slug(data.title), insert)

        if data.tags:
            await self.message_repo.replace_tags(message, parse_tag_ids(data.tags))

        await self.session.commit()

        logger.info(f"Message created: {message.id} ({message.slug}) by {author.id}")

        await self.audit_service.log_data_change(
            user_id=author.id,
            action=AuditAction.CREATE,
            resource_type="message",
            resource_id=message.id,
            new_values=message.to_dict(),
            context=context,
        )

        return message

    async def update_message(
        self,
        message_id: uuid.UUID,
        data: MessageUpdate,
        current_user: User,
        context: RequestContext | None = None,
    ) -> Message:
        """
        Apply a whitelisted partial update.

        A title change regenerates the slug. ``tags`` replaces the whole tag
        set and is enough on its own to make the update non-empty.

        Raises:
            NotFoundError: Message doesn't exist
            InsufficientPermissionsError: Caller is neither author nor elevated
            EmptyUpdateError: Nothing left to update after whitelisting
            InvalidInputError: Unknown or inactive category
            ConflictError: Slug allocation kept losing races
        """
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message")

        if not self._can_modify(message, current_user):
            logger.warning(
                f"Unauthorized message update attempt: requester={current_user.id}, "
                f"message={message_id}"
            )
            raise InsufficientPermissionsError()

        payload = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field not in NON_NULLABLE_UPDATE_FIELDS
        }
        updates = filter_update_fields(
            payload,
            ALLOWED_MESSAGE_UPDATE_FIELDS,
            MESSAGE_PRIVILEGED_FIELDS,
            caller_is_privileged=current_user.is_elevated,
            has_side_channel=data.tags is not None,
        )

        if updates.get("category_id") is not None:
            await self._check_category(updates["category_id"])

        if (
            updates.get("status") == MessageStatus.PUBLISHED
            and message.status != MessageStatus.PUBLISHED
            and message.published_at is None
        ):
            updates["published_at"] = datetime.now(UTC)

        before = message.to_dict()
        old_values = {field: before.get(field) for field in updates}
        old_tags = [str(tag.id) for tag in message.tags]
        current_slug = message.slug

        async def apply(slug: str | None) -> Message:
            # Re-applied on every attempt; a rolled back savepoint expires the changes
            for field, value in updates.items():
                setattr(message, field, value)
            if slug is not None:
                message.slug = slug
            await self.session.flush()
            return message

        if "title" in updates and updates["title"] != before.get("title"):
            await self._write_with_unique_slug(
                generate_slug(updates["title"]),
                apply,
                exclude_id=message_id,
            )
        else:
            await apply(None)

        if data.tags is not None:
            await self.message_repo.replace_tags(message, parse_tag_ids(data.tags))

        message = await self.message_repo.update(message)
        await self.session.commit()

        after = message.to_dict()
        new_values = {field: after.get(field) for field in updates}
        if message.slug != current_slug:
            old_values["slug"] = current_slug
            new_values["slug"] = message.slug
        if data.tags is not None:
            old_values["tags"] = old_tags
            new_values["tags"] = [str(tag.id) for tag in message.tags]

        logger.info(f"Message {message_id} updated by {current_user.id}: fields={sorted(new_values)}")

        await self.audit_service.log_data_change(
            user_id=current_user.id,
            action=AuditAction.UPDATE,
            resource_type="message",
            resource_id=message_id,
            old_values=old_values,
            new_values=new_values,
            context=context,
        )

        return message

    async def delete_message(
        self,
        message_id: uuid.UUID,
        current_user: User,
        context: RequestContext | None = None,
    ) -> None:
        """
        Soft delete a message (deleted_at plus status DELETED).

        Raises:
            NotFoundError: Message doesn't exist
            InsufficientPermissionsError: Caller is neither author nor elevated
        """
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message")

        if not self._can_modify(message, current_user):
            logger.warning(
                f"Unauthorized message delete attempt: requester={current_user.id}, "
                f"message={message_id}"
            )
            raise InsufficientPermissionsError()

        old_values = message.to_dict()

        message.status = MessageStatus.DELETED
        await self.message_repo.soft_delete(message)
        await self.session.commit()

        logger.info(f"Message {message_id} deleted by {current_user.id}")

        await self.audit_service.log_data_change(
            user_id=current_user.id,
            action=AuditAction.DELETE,
            resource_type="message",
            resource_id=message_id,
            old_values=old_values,
            context=context,
        )

    async def _check_category(self, category_id: uuid.UUID) -> None:
        if not await self.message_repo.category_exists(category_id):
            raise InvalidInputError("categoryId", "Category not found")

    async def _write_with_unique_slug(
        self,
        base_slug: str,
        write: Callable[[str], Awaitable[Message]],
        exclude_id: uuid.UUID | None = None,
    ) -> Message:
        """
        Run ``write(slug)`` with the first free slug in ``base``, ``base-1``, ...

        Each write runs in a savepoint. A unique violation on the slug means
        a concurrent writer took the candidate between the check and the
        write; the next suffix is tried instead.

        Raises:
            ConflictError: After MAX_SLUG_ATTEMPTS lost races
        """
        attempt = 0
        for _ in range(MAX_SLUG_ATTEMPTS):
            while await self.message_repo.slug_exists(
                suffixed_slug(base_slug, attempt), exclude_id=exclude_id
            ):
                attempt += 1
            slug = suffixed_slug(base_slug, attempt)

            try:
                async with self.session.begin_nested():
                    message = await write(slug)
            except IntegrityError as e:
                if not _is_slug_conflict(e):
                    raise
                logger.info(f"Slug '{slug}' taken concurrently, retrying with next suffix")
                attempt += 1
                continue

            return message

        logger.error(f"Could not allocate a unique slug for '{base_slug}'")
        raise ConflictError("Could not allocate a unique slug, please retry")
