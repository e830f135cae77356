"""Guards — reject requested names that are missing from the allow-list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .allowlist import Category
from .exceptions import (
    InvalidAppendQuery,
    InvalidFieldQuery,
    InvalidFilterQuery,
    InvalidIncludeQuery,
    InvalidQuery,
    InvalidSortQuery,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .allowlist import AllowList

_logger = logging.getLogger(__name__)

_ERRORS: dict[Category, type[InvalidQuery]] = {
    Category.FILTER: InvalidFilterQuery,
    Category.SORT: InvalidSortQuery,
    Category.INCLUDE: InvalidIncludeQuery,
    Category.FIELD: InvalidFieldQuery,
    Category.APPEND: InvalidAppendQuery,
}

# Categories where a registered "*" turns the guard off.
_WILDCARD_CATEGORIES = frozenset({Category.FILTER, Category.SORT, Category.FIELD})


def unknown_names(requested: Iterable[str], allowed: Iterable[str]) -> list[str]:
    """Requested names not in ``allowed``, first-seen order, without repeats."""
    allowed_set = set(allowed)
    return [name for name in dict.fromkeys(requested) if name not in allowed_set]


def guard(category: Category, requested: Iterable[str], allow_list: AllowList) -> None:
    """Raise the category's :class:`InvalidQuery` for names not allowed."""
    if category in _WILDCARD_CATEGORIES and allow_list.is_wildcard(category):
        return
    allowed = allow_list.names(category)
    unknown = unknown_names(requested, allowed)
    if unknown:
        _logger.info("Rejected %s(s) %s; allowed: %s", category.value, unknown, allowed)
        raise _ERRORS[category](unknown, allowed)


def guard_filters(requested: Iterable[str], allow_list: AllowList) -> None:
    guard(Category.FILTER, requested, allow_list)


def guard_sorts(requested: Iterable[str], allow_list: AllowList) -> None:
    guard(Category.SORT, requested, allow_list)


def guard_includes(requested: Iterable[str], allow_list: AllowList) -> None:
    guard(Category.INCLUDE, requested, allow_list)


def guard_fields(requested: Iterable[str], allow_list: AllowList) -> None:
    guard(Category.FIELD, requested, allow_list)


def guard_appends(requested: Iterable[str], allow_list: AllowList) -> None:
    guard(Category.APPEND, requested, allow_list)
