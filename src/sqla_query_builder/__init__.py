"""Allow-list driven SQLAlchemy query building from request parameters."""

from __future__ import annotations

from .allowlist import WILDCARD, AllowList, Category
from .appends import AppendsMixin, apply_appends
from .builder import QueryBuilder
from .exceptions import (
    AllowListConflictError,
    InvalidAppendQuery,
    InvalidFieldQuery,
    InvalidFilterQuery,
    InvalidIncludeQuery,
    InvalidQuery,
    InvalidSortQuery,
    QueryBuilderError,
)
from .filters import AllowedFilter, FilterKind
from .parser import FieldSelection, RelationPath, SortField
from .request import RequestParameters
from .settings import DEFAULT_SETTINGS, QueryBuilderSettings

__all__ = [
    "DEFAULT_SETTINGS",
    "WILDCARD",
    "AllowList",
    "AllowListConflictError",
    "AllowedFilter",
    "AppendsMixin",
    "Category",
    "FieldSelection",
    "FilterKind",
    "InvalidAppendQuery",
    "InvalidFieldQuery",
    "InvalidFilterQuery",
    "InvalidIncludeQuery",
    "InvalidQuery",
    "InvalidSortQuery",
    "QueryBuilder",
    "QueryBuilderError",
    "QueryBuilderSettings",
    "RelationPath",
    "RequestParameters",
    "SortField",
    "apply_appends",
]
