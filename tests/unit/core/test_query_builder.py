"""
Unit tests for field whitelisting, sort resolution and pagination clamping.
"""

import pytest
from sqlalchemy import select

from core.exceptions import EmptyUpdateError
from core.query_builder import (
    ALLOWED_MESSAGE_UPDATE_FIELDS,
    ALLOWED_USER_UPDATE_FIELDS,
    MESSAGE_PRIVILEGED_FIELDS,
    USER_PRIVILEGED_FIELDS,
    apply_pagination,
    apply_sort,
    filter_update_fields,
    resolve_sort,
)
from models.user import User
from schemas.common import Pagination, PaginationParams
from schemas.enums import MessageSortField, SortOrder, UserSortField


class TestFilterUpdateFields:
    """Test allow-list filtering of update payloads."""

    def test_unknown_fields_are_dropped(self):
        payload = {"bio": "hello", "password_hash": "x", "email": "a@b.c", "id": "123"}

        assert filter_update_fields(payload, ALLOWED_USER_UPDATE_FIELDS) == {"bio": "hello"}

    def test_privileged_fields_dropped_for_unprivileged_caller(self):
        payload = {"first_name": "Ann", "role": "admin", "status": "active"}

        updates = filter_update_fields(
            payload,
            ALLOWED_USER_UPDATE_FIELDS,
            privileged=USER_PRIVILEGED_FIELDS,
            caller_is_privileged=False,
        )

        assert updates == {"first_name": "Ann"}

    def test_privileged_fields_kept_for_privileged_caller(self):
        payload = {"role": "moderator", "status": "suspended"}

        updates = filter_update_fields(
            payload,
            ALLOWED_USER_UPDATE_FIELDS,
            privileged=USER_PRIVILEGED_FIELDS,
            caller_is_privileged=True,
        )

        assert updates == payload

    def test_only_disallowed_fields_raises_empty_update(self):
        with pytest.raises(EmptyUpdateError) as exc_info:
            filter_update_fields({"password_hash": "x"}, ALLOWED_USER_UPDATE_FIELDS)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "No valid fields to update"

    def test_only_privileged_fields_from_unprivileged_caller_raises(self):
        """Dropping everything still counts as an empty update."""
        with pytest.raises(EmptyUpdateError):
            filter_update_fields(
                {"is_pinned": True},
                ALLOWED_MESSAGE_UPDATE_FIELDS,
                privileged=MESSAGE_PRIVILEGED_FIELDS,
            )

    def test_side_channel_allows_empty_column_set(self):
        updates = filter_update_fields(
            {"view_count": 10},
            ALLOWED_MESSAGE_UPDATE_FIELDS,
            has_side_channel=True,
        )

        assert updates == {}


class TestResolveSort:
    """Test mapping of raw sort/order values to whitelisted columns."""

    def test_known_field_and_ascending_order(self):
        sort_spec = resolve_sort("username", UserSortField, UserSortField.CREATED_AT, "asc")

        assert sort_spec.field == UserSortField.USERNAME
        assert sort_spec.order == SortOrder.ASC

    @pytest.mark.parametrize("raw", ["password_hash", "1; DROP TABLE users", "", "EMAIL"])
    def test_unknown_field_falls_back_to_default(self, raw: str):
        sort_spec = resolve_sort(raw, UserSortField, UserSortField.CREATED_AT)

        assert sort_spec.field == UserSortField.CREATED_AT
        assert sort_spec.order == SortOrder.DESC

    def test_missing_field_uses_default(self):
        sort_spec = resolve_sort(None, MessageSortField, MessageSortField.CREATED_AT)

        assert sort_spec.field == MessageSortField.CREATED_AT

    @pytest.mark.parametrize("raw_order", [None, "desc", "ASC", "random"])
    def test_order_is_descending_unless_literal_asc(self, raw_order):
        sort_spec = resolve_sort("email", UserSortField, UserSortField.CREATED_AT, raw_order)

        assert sort_spec.order == SortOrder.DESC

    def test_apply_sort_orders_by_column_then_id(self):
        sort_spec = resolve_sort("email", UserSortField, UserSortField.CREATED_AT, "asc")

        statement = apply_sort(select(User), User, sort_spec)
        sql = str(statement.compile())

        assert "ORDER BY users.email ASC, users.id ASC" in sql


class TestPaginationParams:
    """Test clamping of page and limit."""

    def test_defaults(self):
        params = PaginationParams()

        assert params.page == 1
        assert params.limit == 10

    def test_limit_above_maximum_is_clamped(self):
        assert PaginationParams(limit="99999").limit == 100

    def test_page_above_maximum_is_clamped(self):
        assert PaginationParams(page=5000).page == 1000

    @pytest.mark.parametrize("raw", ["0", "-5", -1])
    def test_values_below_one_are_clamped(self, raw):
        params = PaginationParams(page=raw, limit=raw)

        assert params.page == 1
        assert params.limit == 1

    def test_non_numeric_values_fall_back_to_defaults(self):
        params = PaginationParams(page="abc", limit="ten")

        assert params.page == 1
        assert params.limit == 10

    def test_offset(self):
        assert PaginationParams(page=3, limit=20).offset == 40

    def test_apply_pagination(self):
        statement = apply_pagination(select(User), PaginationParams(page=2, limit=5))

        assert statement._offset_clause.value == 5
        assert statement._limit_clause.value == 5


class TestPaginationMetadata:
    def test_build_computes_pages(self):
        meta = Pagination.build(PaginationParams(page=1, limit=20), total=95)

        assert meta.pages == 5
        assert meta.total == 95

    def test_no_results_means_zero_pages(self):
        assert Pagination.build(PaginationParams(), total=0).pages == 0
