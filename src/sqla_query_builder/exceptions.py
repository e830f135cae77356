"""
Query builder exception hierarchy.

Every rejected request name raises a subclass of :class:`InvalidQuery`.
These are client errors: they carry the rejected names, the allowed names and
fuzzy-matched suggestions, and expose ``to_dict()`` for API responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterable


class QueryBuilderError(Exception):
    """Root exception for the query builder."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class AllowListConflictError(QueryBuilderError):
    """Raised when an allow-list category is registered twice with different names."""

    def __init__(self, category: str, registered: Iterable[str]) -> None:
        self.category = category
        self.registered = tuple(registered)
        super().__init__(
            f"Allowed {category}s are already registered as "
            f"`{', '.join(self.registered)}` and cannot be changed."
        )


class InvalidQuery(QueryBuilderError):
    """
    A request asked for names outside the endpoint's allow-list.

    Maps to an HTTP 400 response.
    """

    status_code: ClassVar[int] = 400
    category: ClassVar[str] = "parameter"

    def __init__(self, unknown: Iterable[str], allowed: Iterable[str]) -> None:
        self.unknown = tuple(unknown)
        self.allowed = tuple(allowed)
        self.suggestions = tuple(
            dict.fromkeys(
                match
                for name in self.unknown
                for match in get_close_matches(name, self.allowed, n=3, cutoff=0.6)
            )
        )
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        message = (
            f"Requested {self.category}(s) `{', '.join(self.unknown)}` "
            f"are not allowed. "
            f"Allowed {self.category}(s) are `{', '.join(self.allowed)}`."
        )
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": f"INVALID_{self.category.upper()}_QUERY",
            "message": str(self),
            "unknown": list(self.unknown),
            "allowed": sorted(self.allowed),
            "suggestions": list(self.suggestions),
        }


class InvalidFilterQuery(InvalidQuery):
    """Unknown filter requested."""

    category = "filter"

    @classmethod
    def filters_not_allowed(
        cls, unknown: Iterable[str], allowed: Iterable[str]
    ) -> InvalidFilterQuery:
        return cls(unknown, allowed)


class InvalidSortQuery(InvalidQuery):
    """Unknown sort requested."""

    category = "sort"

    @classmethod
    def sorts_not_allowed(
        cls, unknown: Iterable[str], allowed: Iterable[str]
    ) -> InvalidSortQuery:
        return cls(unknown, allowed)


class InvalidIncludeQuery(InvalidQuery):
    """Unknown relation include requested."""

    category = "include"

    @classmethod
    def includes_not_allowed(
        cls, unknown: Iterable[str], allowed: Iterable[str]
    ) -> InvalidIncludeQuery:
        return cls(unknown, allowed)


class InvalidFieldQuery(InvalidQuery):
    """Unknown field requested."""

    category = "field"

    @classmethod
    def fields_not_allowed(
        cls, unknown: Iterable[str], allowed: Iterable[str]
    ) -> InvalidFieldQuery:
        return cls(unknown, allowed)


class InvalidAppendQuery(InvalidQuery):
    """Unknown appended property requested."""

    category = "append"

    @classmethod
    def appends_not_allowed(
        cls, unknown: Iterable[str], allowed: Iterable[str]
    ) -> InvalidAppendQuery:
        return cls(unknown, allowed)


__all__: list[str] = [
    "AllowListConflictError",
    "InvalidAppendQuery",
    "InvalidFieldQuery",
    "InvalidFilterQuery",
    "InvalidIncludeQuery",
    "InvalidQuery",
    "InvalidSortQuery",
    "QueryBuilderError",
]
