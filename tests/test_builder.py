"""Tests for QueryBuilder construction and registration order."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select

from sqla_query_builder import (
    AllowListConflictError,
    InvalidFilterQuery,
    InvalidSortQuery,
    QueryBuilder,
    QueryBuilderSettings,
    RequestParameters,
)
from tests.models import PostRecord, UserRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    Render = Callable[[Select[Any]], str]


class TestConstruction:
    def test_from_model(self, sql: Render) -> None:
        qb = QueryBuilder(UserRecord, {})
        assert qb.model is UserRecord
        assert sql(qb.statement).startswith("SELECT users.id")

    def test_from_select_keeps_existing_structure(self, sql: Render) -> None:
        base = select(PostRecord).where(PostRecord.user_id == 1).limit(5)
        qb = QueryBuilder(base, {})
        assert qb.model is PostRecord
        rendered = sql(qb.statement)
        assert "posts.user_id = 1" in rendered
        assert "LIMIT 5" in rendered

    def test_from_request_alias(self) -> None:
        params = RequestParameters(sort="name")
        qb = QueryBuilder.from_request(UserRecord, params)
        assert isinstance(qb, QueryBuilder)
        assert qb.request is params

    def test_mapping_request_uses_settings(self, sql: Render) -> None:
        settings = QueryBuilderSettings(sort_parameter="order")
        qb = QueryBuilder(UserRecord, {"order": "-age"}, settings=settings)
        qb.allowed_sorts("age")
        assert qb.settings is settings
        assert "ORDER BY users.age DESC" in sql(qb.statement)


class TestRegistration:
    def test_chained_configuration(self, sql: Render) -> None:
        qb = (
            QueryBuilder(
                UserRecord,
                RequestParameters.from_query_string(
                    "filter[name]=ali&filter[status]=active&sort=-age"
                ),
            )
            .allowed_filters(["name", "status"])
            .allowed_sorts("age")
            .allowed_includes("posts")
            .allowed_appends("fullName")
        )
        rendered = sql(qb.statement)
        assert "lower(users.name) LIKE lower('%ali%')" in rendered
        assert "lower(users.status) LIKE lower('%active%')" in rendered
        assert "ORDER BY users.age DESC" in rendered

    def test_first_failing_category_stops_configuration(self, sql: Render) -> None:
        qb = QueryBuilder(
            UserRecord, {"filter": {"name": "a"}, "sort": "secret"}
        ).allowed_filters("name")
        with pytest.raises(InvalidSortQuery):
            qb.allowed_sorts("age")
        rendered = sql(qb.statement)
        assert "LIKE" in rendered
        assert "ORDER BY" not in rendered

    def test_error_raised_before_any_application(self, sql: Render) -> None:
        qb = QueryBuilder(UserRecord, {"filter": {"secret": "x"}, "sort": "age"})
        with pytest.raises(InvalidFilterQuery):
            qb.allowed_filters("name")
        assert "WHERE" not in sql(qb.statement)

    def test_registration_cannot_change(self) -> None:
        qb = QueryBuilder(UserRecord, {}).allowed_sorts("name")
        with pytest.raises(AllowListConflictError):
            qb.allowed_sorts("age")

    def test_identical_reapplication_is_stable(self, sql: Render) -> None:
        request = {"filter": {"name": "a"}, "sort": "-age,name"}
        once = QueryBuilder(UserRecord, request).allowed_sorts("age", "name")
        twice = (
            QueryBuilder(UserRecord, request)
            .allowed_sorts("age", "name")
            .allowed_sorts("age", "name")
        )
        assert sql(once.statement) == sql(twice.statement)

    def test_filters_applied_once_when_repeated(self, sql: Render) -> None:
        request = {"filter": {"name": "a", "status": "active"}}
        once = QueryBuilder(UserRecord, request).allowed_filters("name", "status")
        twice = (
            QueryBuilder(UserRecord, request)
            .allowed_filters("name", "status")
            .allowed_filters("name", "status")
        )
        rendered = sql(twice.statement)
        assert rendered == sql(once.statement)
        assert rendered.count("lower(users.name) LIKE lower('%a%')") == 1

    def test_includes_applied_once_when_repeated(self, sql: Render) -> None:
        settings = QueryBuilderSettings(eager_loader="joined")
        request = {"include": "posts.comments"}
        once = QueryBuilder(UserRecord, request, settings=settings).allowed_includes(
            "posts.comments"
        )
        twice = (
            QueryBuilder(UserRecord, request, settings=settings)
            .allowed_includes("posts.comments")
            .allowed_includes("posts.comments")
        )
        rendered = sql(twice.statement)
        assert rendered == sql(once.statement)
        assert rendered.count("LEFT OUTER JOIN posts") == 1


@pytest.mark.asyncio
class TestExecution:
    async def test_get_with_limit(self, session: AsyncSession) -> None:
        users = await (
            QueryBuilder(UserRecord, {"sort": "age"})
            .allowed_sorts("age")
            .get(session, limit=2)
        )
        assert [u.name for u in users] == ["Bob", "Alice"]

    async def test_first_returns_the_leading_record(
        self, session: AsyncSession
    ) -> None:
        user = await (
            QueryBuilder(UserRecord, {"sort": "-age"})
            .allowed_sorts("age")
            .first(session)
        )
        assert user is not None
        assert user.name == "Carol"

    async def test_statement_is_not_limited_by_first(
        self, session: AsyncSession, sql: Render
    ) -> None:
        qb = QueryBuilder(UserRecord, {})
        await qb.first(session)
        assert "LIMIT" not in sql(qb.statement)
