"""
SQLAlchemy mapping helpers used by the builder.

Resolves the root entity of a statement, column and relationship attributes,
and the ``ORDER BY`` entries already present on a statement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import ColumnClause, UnaryExpression

from .parser import SortField

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.orm import Mapper, RelationshipProperty


def entity_of(stmt: Select[Any]) -> type[Any]:
    """Return the mapped class a ``Select`` was built around."""
    descriptions = stmt.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise TypeError(f"Statement does not select a mapped entity: {stmt}")
    return entity  # type: ignore[no-any-return]


def mapper_of(model: type[Any]) -> Mapper[Any]:
    return inspect(model)


def table_name(model: type[Any]) -> str:
    return str(mapper_of(model).local_table.name)


def column_names(model: type[Any]) -> list[str]:
    return [attr.key for attr in mapper_of(model).column_attrs]


def column_attribute(model: type[Any], name: str) -> Any | None:
    """Mapped column attribute ``model.<name>``, or ``None`` if it is not a column."""
    if name not in mapper_of(model).column_attrs:
        return None
    return getattr(model, name)


def relationship_of(model: type[Any], name: str) -> RelationshipProperty[Any]:
    relationships = mapper_of(model).relationships
    if name not in relationships:
        raise AttributeError(f"Model {model.__name__} has no relationship {name!r}")
    return relationships[name]


def existing_orders(stmt: Select[Any]) -> list[SortField]:
    """Sort fields for the plain-column ``ORDER BY`` entries on ``stmt``."""
    orders: list[SortField] = []
    # Select has no public ORDER BY accessor; _order_by_clauses is present
    # throughout SQLAlchemy 1.4 and 2.x (pinned below 3 in pyproject.toml).
    for clause in stmt._order_by_clauses:
        direction = "asc"
        element = clause
        if isinstance(clause, UnaryExpression):
            if clause.modifier is operators.desc_op:
                direction = "desc"
            elif clause.modifier is not operators.asc_op:
                continue
            element = clause.element
        if isinstance(element, ColumnClause):
            orders.append(SortField(element.key, direction))  # type: ignore[arg-type]
    return orders
