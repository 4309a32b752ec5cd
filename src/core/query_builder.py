"""
Field whitelisting and list-query building.

This module keeps client input away from SQL identifiers:
- Update payloads are reduced to allow-listed fields, with role-gated
  fields silently dropped for unprivileged callers
- Sort keys come only from closed enums; anything else falls back to
  ``created_at`` descending
- Pagination is clamped (see ``schemas.common.PaginationParams``)

Filter values never reach SQL text. Repositories build WHERE clauses with
SQLAlchemy column expressions so every value is a bound parameter.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, TypeVar

from sqlalchemy import Select

from core.exceptions import EmptyUpdateError
from models.base import Base
from schemas.common import PaginationParams
from schemas.enums import SortOrder

logger = logging.getLogger(__name__)

SortFieldT = TypeVar("SortFieldT", bound=Enum)

# =============================================================================
# Update allow-lists
# =============================================================================

ALLOWED_USER_UPDATE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "username",
        "bio",
        "avatar_url",
        "role",
        "status",
    }
)

# Honored only for admin/super_admin callers
USER_PRIVILEGED_FIELDS = frozenset({"role", "status"})

ALLOWED_MESSAGE_UPDATE_FIELDS = frozenset(
    {
        "title",
        "content",
        "excerpt",
        "category_id",
        "status",
        "is_featured",
        "is_pinned",
    }
)

# Honored only for moderator/admin/super_admin callers
MESSAGE_PRIVILEGED_FIELDS = frozenset({"status", "is_featured", "is_pinned"})


def filter_update_fields(
    payload: Mapping[str, Any],
    allowed: frozenset[str],
    privileged: frozenset[str] = frozenset(),
    caller_is_privileged: bool = False,
    has_side_channel: bool = False,
) -> dict[str, Any]:
    """
    Reduce an update payload to the fields the caller may write.

    Only keys that are both present in ``payload`` and in ``allowed`` are
    kept. Keys in ``privileged`` are dropped unless ``caller_is_privileged``.
    Unknown or disallowed keys are ignored, never rejected.

    Args:
        payload: Fields explicitly sent by the client (``exclude_unset`` dump)
        allowed: Allow-list for the entity
        privileged: Subset of ``allowed`` reserved for elevated roles
        caller_is_privileged: Whether the caller holds an elevated role
        has_side_channel: True when the request carries non-column updates
            (e.g. a tag list), which makes an empty column set acceptable

    Returns:
        Dictionary of column name to new value

    Raises:
        EmptyUpdateError: If nothing remains and there is no side channel

    Example:
        >>> filter_update_fields({"bio": "hi", "password_hash": "x"}, ALLOWED_USER_UPDATE_FIELDS)
        {'bio': 'hi'}
    """
    updates: dict[str, Any] = {}
    for field, value in payload.items():
        if field not in allowed:
            continue
        if field in privileged and not caller_is_privileged:
            logger.debug(f"Dropping privileged field '{field}' from unprivileged update")
            continue
        updates[field] = value

    if not updates and not has_side_channel:
        raise EmptyUpdateError()

    return updates


# =============================================================================
# Sorting
# =============================================================================


@dataclass(frozen=True)
class SortSpec:
    """Resolved sort: a whitelisted column and a direction."""

    field: Enum
    order: SortOrder


def resolve_sort(
    raw_field: str | None,
    enum_cls: type[SortFieldT],
    default: SortFieldT,
    raw_order: str | None = None,
) -> SortSpec:
    """
    Map raw ``sort``/``order`` query values to a safe SortSpec.

    Unknown sort keys (``password_hash``, ``1; DROP TABLE``) resolve to
    ``default``. Order is ascending only for the literal ``asc``.

    Example:
        >>> resolve_sort("password_hash", UserSortField, UserSortField.CREATED_AT)
        SortSpec(field=<UserSortField.CREATED_AT: 'created_at'>, order=<SortOrder.DESC: 'desc'>)
    """
    try:
        field = enum_cls(raw_field) if raw_field is not None else default
    except ValueError:
        logger.debug(f"Ignoring unknown sort field '{raw_field}'")
        field = default

    order = SortOrder.ASC if raw_order == SortOrder.ASC.value else SortOrder.DESC
    return SortSpec(field=field, order=order)


def apply_sort(statement: Select[Any], model: type[Base], sort: SortSpec) -> Select[Any]:
    """
    Add ORDER BY for a resolved sort, with ``id`` as a stable tiebreaker.

    The column name comes from the enum value, never from client text.
    """
    column = getattr(model, sort.field.value)
    ordered = column.asc() if sort.order == SortOrder.ASC else column.desc()
    return statement.order_by(ordered, model.id.asc())


# =============================================================================
# Pagination
# =============================================================================


def apply_pagination(statement: Select[Any], pagination: PaginationParams) -> Select[Any]:
    """Add OFFSET/LIMIT from already-clamped pagination parameters."""
    return statement.offset(pagination.offset).limit(pagination.limit)
