"""
Common Pydantic schemas for API request/response handling.

This module provides:
- CamelModel, the base for every wire schema (camelCase JSON, snake_case accepted)
- Pagination parameters (clamped) and response metadata
- The success envelope returned by every endpoint
- Search result containers for service-to-route communication
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.config import settings

# Type variable for generic responses
DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """
    Base schema serializing to camelCase.

    Input is accepted both as camelCase (``firstName``) and snake_case
    (``first_name``). Responses are dumped with ``by_alias=True`` by FastAPI.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _coerce_int(value: Any, default: int) -> int:
    """Parse a query-string number, falling back to ``default`` on garbage."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class PaginationParams(BaseModel):
    """
    Pagination for list endpoints.

    Values are clamped rather than rejected: ``page`` to 1..max_page and
    ``limit`` to 1..max_page_size. Missing or non-numeric values fall back to
    the defaults.

    Attributes:
        page: Page number (1-indexed)
        limit: Number of items per page

    Example:
        >>> PaginationParams(page="0", limit="99999")
        PaginationParams(page=1, limit=100)
    """

    page: int = Field(default=1, description="Page number (1-indexed)")
    limit: int = Field(
        default=settings.default_page_size,
        description="Number of items per page (max 100)",
    )

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, value: Any) -> int:
        page = _coerce_int(value, 1)
        return min(max(page, 1), settings.max_page)

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, value: Any) -> int:
        limit = _coerce_int(value, settings.default_page_size)
        return min(max(limit, 1), settings.max_page_size)

    @property
    def offset(self) -> int:
        """
        Calculate SQL OFFSET from page number.

        Example:
            >>> PaginationParams(page=2, limit=20).offset
            20
        """
        return (self.page - 1) * self.limit

    @staticmethod
    def calculate_total_pages(total: int, limit: int) -> int:
        """
        Calculate total pages from total count.

        Example:
            >>> PaginationParams.calculate_total_pages(95, 20)
            5
            >>> PaginationParams.calculate_total_pages(0, 20)
            0
        """
        return (total + limit - 1) // limit if total > 0 else 0


class Pagination(CamelModel):
    """Pagination metadata included in list responses."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, params: PaginationParams, total: int) -> "Pagination":
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            pages=PaginationParams.calculate_total_pages(total, params.limit),
        )


class SearchResult(BaseModel, Generic[DataT]):
    """
    Internal search result container.

    Used for service-to-route communication. Not exposed directly to API.

    Attributes:
        items: Model instances for the current page
        total: Total count of items matching filters (without pagination)
    """

    items: list[DataT]
    total: int

    model_config = ConfigDict(from_attributes=True, arbitrary_types_allowed=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """
    Success envelope: ``{"success": true, "message"?: str, "data": ...}``.
    """

    success: bool = True
    message: str | None = None
    data: DataT | None = None


class StatusResponse(CamelModel):
    """Envelope for endpoints that only report an outcome."""

    success: bool = True
    message: str


class FieldError(BaseModel):
    """Field-level validation detail."""

    field: str | None = Field(default=None, description="Field with error")
    message: str = Field(description="Error message")
    type: str | None = Field(default=None, description="Error type")


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Attributes:
        success: Always false
        message: Human-readable message
        error: Machine-readable error code
        errors: Field-level details for validation failures
    """

    success: bool = False
    message: str
    error: str | None = None
    errors: list[FieldError] | None = None
