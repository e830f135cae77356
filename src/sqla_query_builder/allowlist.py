"""AllowList — per-builder registry of permitted names for each category."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import AllowListConflictError
from .filters import AllowedFilter
from .parser import expand_includes

if TYPE_CHECKING:
    from collections.abc import Iterable

_logger = logging.getLogger(__name__)

WILDCARD = "*"


class Category(str, Enum):
    FILTER = "filter"
    SORT = "sort"
    INCLUDE = "include"
    FIELD = "field"
    APPEND = "append"


def normalize_items(items: Iterable[Any]) -> list[Any]:
    """Flatten ``("a", ["b", "c"])`` -> ``["a", "b", "c"]``; keeps order."""
    out: list[Any] = []
    for item in items:
        if isinstance(item, (list, tuple, set, frozenset)):
            out.extend(item)
        else:
            out.append(item)
    return out


class AllowList:
    """
    Allow-lists registered on one query builder.

    A category is unregistered until its ``register_*`` method is called.
    Once registered it cannot change: registering the same names again is a
    no-op, registering different names raises :class:`AllowListConflictError`.
    """

    def __init__(self, root_table: str) -> None:
        self._root_table = root_table
        self._entries: dict[Category, tuple[Any, ...]] = {}

    # -- registration --------------------------------------------------------

    def register_filters(self, items: Iterable[Any]) -> None:
        filters: list[Any] = []
        seen: set[str] = set()
        for item in normalize_items(items):
            if item == WILDCARD:
                filters.append(WILDCARD)
                continue
            if isinstance(item, str):
                item = AllowedFilter.partial(item)
            if not isinstance(item, AllowedFilter):
                raise TypeError(
                    f"Expected a filter name or AllowedFilter, got {item!r}"
                )
            if item.name in seen:
                raise ValueError(f"Filter {item.name!r} is registered more than once")
            seen.add(item.name)
            filters.append(item)
        self._register(Category.FILTER, filters)

    def register_sorts(self, items: Iterable[Any]) -> None:
        sorts = [str(item).lstrip("-") for item in normalize_items(items)]
        self._register(Category.SORT, sorts)

    def register_includes(self, items: Iterable[Any]) -> None:
        includes = expand_includes(map(str, normalize_items(items)))
        self._register(Category.INCLUDE, includes)

    def register_fields(self, items: Iterable[Any]) -> None:
        fields = []
        for name in map(str, normalize_items(items)):
            if name != WILDCARD and "." not in name:
                name = f"{self._root_table}.{name}"
            fields.append(name)
        self._register(Category.FIELD, fields)

    def register_appends(self, items: Iterable[Any]) -> None:
        self._register(Category.APPEND, [str(i) for i in normalize_items(items)])

    def _register(self, category: Category, entries: list[Any]) -> None:
        # Filters are unique by name already and may carry unhashable defaults.
        new = (
            tuple(entries)
            if category is Category.FILTER
            else tuple(dict.fromkeys(entries))
        )
        current = self._entries.get(category)
        if current is not None and current != new:
            raise AllowListConflictError(category.value, self._names(current))
        self._entries[category] = new
        _logger.debug("Registered allowed %ss: %s", category.value, self._names(new))

    # -- lookup --------------------------------------------------------------

    def is_registered(self, category: Category) -> bool:
        return category in self._entries

    def is_wildcard(self, category: Category) -> bool:
        return WILDCARD in self._entries.get(category, ())

    def names(self, category: Category) -> tuple[str, ...]:
        return self._names(self._entries.get(category, ()))

    def find_filter(self, name: str) -> AllowedFilter | None:
        for entry in self._entries.get(Category.FILTER, ()):
            if isinstance(entry, AllowedFilter) and entry.is_for(name):
                return entry
        return None

    @staticmethod
    def _names(entries: Iterable[Any]) -> tuple[str, ...]:
        return tuple(e.name if isinstance(e, AllowedFilter) else e for e in entries)
