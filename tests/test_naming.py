"""Tests for relation and property naming conventions."""

from __future__ import annotations

import pytest

from sqla_query_builder.naming import RelationNaming, convert_case, to_camel, to_snake
from sqla_query_builder.settings import QueryBuilderSettings


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("fullName", "full_name"),
        ("full_name", "full_name"),
        ("blog-posts", "blog_posts"),
        ("userProfile", "user_profile"),
        ("HTTPStatus", "http_status"),
    ],
)
def test_to_snake(name: str, expected: str) -> None:
    assert to_snake(name) == expected


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("full_name", "fullName"),
        ("blog-posts", "blogPosts"),
        ("fullName", "fullName"),
    ],
)
def test_to_camel(name: str, expected: str) -> None:
    assert to_camel(name) == expected


def test_preserve_case() -> None:
    assert convert_case("userProfile", "preserve") == "userProfile"


class TestRelationNaming:
    def test_defaults_convert_last_segment(self) -> None:
        naming = RelationNaming(QueryBuilderSettings())
        assert naming.attribute_name("userProfile") == "user_profile"
        assert naming.fields_key("posts.postComments") == "post_comments"

    def test_path_key_converts_every_segment(self) -> None:
        naming = RelationNaming(QueryBuilderSettings(relation_fields_key="path"))
        assert naming.fields_key("blogPosts.postComments") == "blog_posts.post_comments"

    def test_preserved_relation_names(self) -> None:
        naming = RelationNaming(
            QueryBuilderSettings(relation_case="preserve", fields_key_case="camel")
        )
        assert naming.attribute_name("userProfile") == "userProfile"
        assert naming.fields_key("user_profile") == "userProfile"
