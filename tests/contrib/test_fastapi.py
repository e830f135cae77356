"""Tests for the FastAPI integration (optional; requires the fastapi extra)."""

from __future__ import annotations

from typing import Any

import pytest

fastapi = pytest.importorskip("fastapi")

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.dialects import sqlite

from sqla_query_builder import QueryBuilder, QueryBuilderSettings, RequestParameters
from sqla_query_builder.contrib.fastapi import (
    register_exception_handlers,
    request_parameters,
    with_settings,
)
from tests.models import UserRecord


def _render(builder: QueryBuilder[Any]) -> str:
    return str(
        builder.statement.compile(
            dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}
        )
    )


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    custom = with_settings(QueryBuilderSettings(filter_parameter="where"))

    @app.get("/users")
    def list_users(
        params: RequestParameters = Depends(request_parameters),
    ) -> dict[str, Any]:
        builder = (
            QueryBuilder(UserRecord, params)
            .allowed_filters("name")
            .allowed_sorts("age")
        )
        return {"sql": _render(builder)}

    @app.get("/custom")
    def list_custom(params: RequestParameters = Depends(custom)) -> dict[str, Any]:
        builder = QueryBuilder(UserRecord, params).allowed_filters("name")
        return {"sql": _render(builder)}

    return TestClient(app)


class TestRequestParameters:
    def test_bracket_filters_are_applied(self, client: TestClient) -> None:
        response = client.get("/users", params={"filter[name]": "ali", "sort": "-age"})
        assert response.status_code == 200
        sql = response.json()["sql"]
        assert "lower(users.name) LIKE lower('%ali%')" in sql
        assert "ORDER BY users.age DESC" in sql

    def test_no_parameters(self, client: TestClient) -> None:
        response = client.get("/users")
        assert response.status_code == 200
        assert "WHERE" not in response.json()["sql"]

    def test_custom_parameter_names(self, client: TestClient) -> None:
        response = client.get("/custom", params={"where[name]": "bo"})
        assert response.status_code == 200
        assert "lower('%bo%')" in response.json()["sql"]


class TestErrorResponses:
    def test_invalid_filter_is_a_400(self, client: TestClient) -> None:
        response = client.get("/users", params={"filter[secret]": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_FILTER_QUERY"
        assert body["unknown"] == ["secret"]
        assert body["allowed"] == ["name"]

    def test_invalid_sort_is_a_400(self, client: TestClient) -> None:
        response = client.get("/users", params={"sort": "email"})
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_SORT_QUERY"
