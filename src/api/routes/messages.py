"""
Message API routes.

This module provides:
- GET /api/messages - List messages (public; elevated callers see every status)
- GET /api/messages/{slug_or_id} - Get one message and count the view
- POST /api/messages - Create a message
- PUT /api/messages/{message_id} - Update a message (author, moderator or admin)
- DELETE /api/messages/{message_id} - Soft delete a message (author, moderator or admin)
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from api.dependencies import (
    CurrentUser,
    MessageServiceDep,
    OptionalUser,
    PaginationDep,
    RequestContextDep,
)
from core.query_builder import resolve_sort
from models.enums import MessageStatus
from schemas.common import ApiResponse, Pagination, StatusResponse
from schemas.enums import MessageSortField
from schemas.message import (
    MessageCreate,
    MessageData,
    MessageFilterParams,
    MessageListData,
    MessageResponse,
    MessageUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get(
    "",
    response_model=ApiResponse[MessageListData],
    summary="List messages",
    description="Published messages for everyone; moderators and admins may filter by any status",
)
async def list_messages(
    viewer: OptionalUser,
    message_service: MessageServiceDep,
    pagination: PaginationDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
    category: Annotated[str | None, Query(max_length=100, description="Category slug")] = None,
    message_status: Annotated[MessageStatus | None, Query(alias="status")] = None,
    author: Annotated[str | None, Query(max_length=30, description="Author username")] = None,
    sort: str | None = None,
    order: str | None = None,
) -> ApiResponse[MessageListData]:
    """
    List messages.

    Query parameters:
        - page / limit: Clamped to 1..1000 and 1..100
        - search: Matches title or content
        - category: Category slug
        - status: Honored for moderators and admins only
        - author: Author username
        - sort: created_at, updated_at, title, view_count, like_count or
          published_at; anything else falls back to created_at
        - order: asc, otherwise desc
    """
    filters = MessageFilterParams(
        search=search,
        category=category,
        status=message_status,
        author=author,
    )
    sort_spec = resolve_sort(sort, MessageSortField, MessageSortField.CREATED_AT, order)

    result = await message_service.list_messages(filters, sort_spec, pagination, viewer=viewer)

    return ApiResponse(
        data=MessageListData(
            messages=[MessageResponse.model_validate(message) for message in result.items],
            pagination=Pagination.build(pagination, result.total),
        )
    )


@router.get(
    "/{slug_or_id}",
    response_model=ApiResponse[MessageData],
    summary="Get message",
    description="Get a message by slug or id; viewing a published message counts a view",
)
async def get_message(
    slug_or_id: str,
    viewer: OptionalUser,
    message_service: MessageServiceDep,
) -> ApiResponse[MessageData]:
    """
    Get one message.

    Raises:
        - 404 Not Found: Missing, deleted, or not visible to the caller
    """
    message = await message_service.get_message(slug_or_id, viewer=viewer)
    return ApiResponse(data=MessageData(message=MessageResponse.model_validate(message)))


@router.post(
    "",
    response_model=ApiResponse[MessageData],
    status_code=status.HTTP_201_CREATED,
    summary="Create message",
)
async def create_message(
    message_data: MessageCreate,
    current_user: CurrentUser,
    message_service: MessageServiceDep,
    context: RequestContextDep,
) -> ApiResponse[MessageData]:
    """
    Create a message.

    Regular users always publish; status and the featured/pinned flags are
    honored for moderators and admins only.

    Raises:
        - 400 Bad Request: Validation failure or unknown category
        - 409 Conflict: Slug allocation lost repeated races; retry
    """
    message = await message_service.create_message(message_data, current_user, context=context)
    return ApiResponse(
        message="Message created successfully",
        data=MessageData(message=MessageResponse.model_validate(message)),
    )


@router.put(
    "/{message_id}",
    response_model=ApiResponse[MessageData],
    summary="Update message",
)
async def update_message(
    message_id: uuid.UUID,
    update_data: MessageUpdate,
    current_user: CurrentUser,
    message_service: MessageServiceDep,
    context: RequestContextDep,
) -> ApiResponse[MessageData]:
    """
    Update a message.

    Raises:
        - 400 Bad Request: No updatable fields or unknown category
        - 403 Forbidden: Not the author, a moderator or an admin
        - 404 Not Found: Message not found
        - 409 Conflict: Slug allocation lost repeated races; retry
    """
    message = await message_service.update_message(
        message_id, update_data, current_user, context=context
    )
    return ApiResponse(
        message="Message updated successfully",
        data=MessageData(message=MessageResponse.model_validate(message)),
    )


@router.delete(
    "/{message_id}",
    response_model=StatusResponse,
    summary="Delete message",
)
async def delete_message(
    message_id: uuid.UUID,
    current_user: CurrentUser,
    message_service: MessageServiceDep,
    context: RequestContextDep,
) -> StatusResponse:
    """
    Soft delete a message.

    Raises:
        - 403 Forbidden: Not the author, a moderator or an admin
        - 404 Not Found: Message not found
    """
    await message_service.delete_message(message_id, current_user, context=context)
    return StatusResponse(message="Message deleted successfully")
