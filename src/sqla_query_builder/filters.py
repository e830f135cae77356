"""
Allowed filter definitions and the built-in filter strategies.

An :class:`AllowedFilter` names one request filter and binds it to a strategy:

- ``exact``   -> ``column = value`` (lists become ``IN``)
- ``partial`` -> case-insensitive ``LIKE '%value%'`` (lists become ``OR``)
- ``scope``   -> ``Model.<scope>(stmt, *values)``
- ``custom``  -> ``callback(stmt, value, name)``

A dotted column (``"author.name"``) is compiled through the relationship with
``.any()`` for collections and ``.has()`` for scalar relations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, cast

from sqlalchemy import or_

from .naming import to_snake

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement, Select

_logger = logging.getLogger(__name__)


class CustomFilter(Protocol):
    def __call__(self, stmt: Select[Any], value: Any, name: str) -> Select[Any]: ...


class FilterKind(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    SCOPE = "scope"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AllowedFilter:
    """
    One permitted request filter.

    Attributes:
        name: The request-facing filter key (``filter[name]``).
        kind: Strategy used to apply the filter.
        column: Mapped attribute (or dotted relation path) to filter on;
            defaults to ``name``.
        scope_name: Model classmethod invoked by ``scope`` filters.
        callback: Callable invoked by ``custom`` filters.
        default: Default value advertised for the filter. It is not applied
            when the request omits the filter.
    """

    name: str
    kind: FilterKind = FilterKind.PARTIAL
    column: str | None = None
    scope_name: str | None = None
    callback: CustomFilter | None = None
    default: Any = None

    @classmethod
    def exact(
        cls, name: str, column: str | None = None, *, default: Any = None
    ) -> AllowedFilter:
        return cls(name, FilterKind.EXACT, column=column, default=default)

    @classmethod
    def partial(
        cls, name: str, column: str | None = None, *, default: Any = None
    ) -> AllowedFilter:
        return cls(name, FilterKind.PARTIAL, column=column, default=default)

    @classmethod
    def scope(
        cls, name: str, scope_name: str | None = None, *, default: Any = None
    ) -> AllowedFilter:
        return cls(
            name,
            FilterKind.SCOPE,
            scope_name=scope_name or to_snake(name),
            default=default,
        )

    @classmethod
    def custom(
        cls, name: str, callback: CustomFilter, *, default: Any = None
    ) -> AllowedFilter:
        return cls(name, FilterKind.CUSTOM, callback=callback, default=default)

    @property
    def internal_name(self) -> str:
        return self.column or self.name

    def is_for(self, name: str) -> bool:
        return self.name == name


def apply_filter(
    stmt: Select[Any], model: type[Any], allowed: AllowedFilter, value: Any
) -> Select[Any]:
    """Apply ``allowed`` with the request ``value`` and return the new statement."""
    _logger.debug("Applying %s filter %r", allowed.kind.value, allowed.name)
    if allowed.kind is FilterKind.EXACT:
        return stmt.where(_predicate(model, allowed.internal_name, value, _exact))
    if allowed.kind is FilterKind.PARTIAL:
        return stmt.where(_predicate(model, allowed.internal_name, value, _partial))
    if allowed.kind is FilterKind.SCOPE:
        return _apply_scope(stmt, model, allowed, value)
    if allowed.kind is FilterKind.CUSTOM:
        if allowed.callback is None:
            raise TypeError(f"Custom filter {allowed.name!r} has no callback")
        return allowed.callback(stmt, value, allowed.name)
    raise ValueError(f"Unsupported filter kind: {allowed.kind}")


def _exact(column: Any, value: Any) -> ColumnElement[bool]:
    if isinstance(value, (list, tuple)):
        return cast("ColumnElement[bool]", column.in_(value))
    return cast("ColumnElement[bool]", column == value)


def _partial(column: Any, value: Any) -> ColumnElement[bool]:
    if isinstance(value, (list, tuple)):
        return or_(*(column.ilike(f"%{item}%") for item in value))
    return cast("ColumnElement[bool]", column.ilike(f"%{value}%"))


def _predicate(
    model: type[Any],
    attr: str,
    value: Any,
    compile_leaf: Callable[[Any, Any], ColumnElement[bool]],
) -> ColumnElement[bool]:
    # Relationship traversal (e.g. "posts.title")
    if "." in attr:
        rel_name, nested_attr = attr.split(".", 1)
        rel_attr = getattr(model, rel_name, None)
        if rel_attr is None:
            raise AttributeError(f"Model {model} has no relationship {rel_name}")

        target_model = rel_attr.property.mapper.class_
        inner_expr = _predicate(target_model, nested_attr, value, compile_leaf)
        if rel_attr.property.uselist:
            return cast("ColumnElement[bool]", rel_attr.any(inner_expr))
        return cast("ColumnElement[bool]", rel_attr.has(inner_expr))

    column = getattr(model, attr, None)
    if column is None:
        raise AttributeError(f"Model {model} has no attribute {attr}")
    return compile_leaf(column, value)


def _apply_scope(
    stmt: Select[Any], model: type[Any], allowed: AllowedFilter, value: Any
) -> Select[Any]:
    scope = getattr(model, allowed.scope_name or allowed.name, None)
    if not callable(scope):
        raise TypeError(
            f"Model {model.__name__} has no callable scope {allowed.scope_name!r}"
        )
    values = list(value) if isinstance(value, (list, tuple)) else [value]
    result = scope(stmt, *values)
    if result is None:
        raise TypeError(
            f"Scope {allowed.scope_name!r} on {model.__name__} must return a Select"
        )
    return cast("Select[Any]", result)
