"""
QueryBuilder — turns request parameters into a guarded SQLAlchemy ``Select``.

Usage::

    builder = (
        QueryBuilder(User, RequestParameters.from_query_string(qs))
        .allowed_filters("name", AllowedFilter.exact("id"))
        .allowed_sorts("name", "created_at")
        .allowed_includes("posts.comments")
        .allowed_appends("fullName")
    )
    users = await builder.get(session)

Each ``allowed_*`` call registers the allow-list for its category, rejects
any requested name outside it (raising the category's ``InvalidQuery``) and
only then applies the requested values to the statement. Categories that
were never registered are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import Select, asc, desc, select
from sqlalchemy.orm import Load, load_only

from .allowlist import WILDCARD, AllowList, Category
from .appends import apply_appends
from .exceptions import InvalidFieldQuery, InvalidFilterQuery, InvalidSortQuery
from .filters import AllowedFilter, apply_filter
from .guards import (
    guard_appends,
    guard_fields,
    guard_filters,
    guard_includes,
    guard_sorts,
    unknown_names,
)
from .naming import RelationNaming
from .parser import SortField, expand_includes
from .request import RequestParameters
from .settings import DEFAULT_SETTINGS
from .utils import (
    column_attribute,
    column_names,
    entity_of,
    existing_orders,
    relationship_of,
    table_name,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from .settings import QueryBuilderSettings

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOADERS = {
    "selectin": "selectinload",
    "joined": "joinedload",
    "subquery": "subqueryload",
}


class QueryBuilder(Generic[T]):
    """Guarded query construction for one request."""

    def __init__(
        self,
        base: type[T] | Select[Any],
        request: RequestParameters | Mapping[str, Any],
        *,
        settings: QueryBuilderSettings | None = None,
    ) -> None:
        """
        Args:
            base: A mapped class, or a ``Select`` over one whose existing
                criteria, ordering and loader options are kept.
            request: The request parameter snapshot. A plain mapping is
                read with :meth:`RequestParameters.from_mapping`.
            settings: Parameter names and naming conventions; defaults to
                ``DEFAULT_SETTINGS``.
        """
        self._settings = settings or DEFAULT_SETTINGS
        if isinstance(base, Select):
            self._model: type[T] = entity_of(base)
            self._stmt: Select[Any] = base
        else:
            self._model = base
            self._stmt = select(base)

        if not isinstance(request, RequestParameters):
            request = RequestParameters.from_mapping(request, self._settings)
        self._request = request

        self._naming = RelationNaming(self._settings)
        self._allow_list = AllowList(table_name(self._model))
        self._orders: list[SortField] = existing_orders(self._stmt)
        self._default_sorts: list[SortField] = []
        self._fields = request.field_selection()
        self._fields_active = False
        self._root_columns: list[Any] | None = None
        self._appends: list[str] = []
        self._applied_filters: set[str] = set()
        self._includes: list[str] = []

        if request.has_fields and not self._settings.guard_fields:
            self._add_fields()

    @classmethod
    def from_request(
        cls,
        base: type[T] | Select[Any],
        request: RequestParameters | Mapping[str, Any],
        *,
        settings: QueryBuilderSettings | None = None,
    ) -> QueryBuilder[T]:
        return cls(base, request, settings=settings)

    # -- accessors -----------------------------------------------------------

    @property
    def model(self) -> type[T]:
        return self._model

    @property
    def statement(self) -> Select[Any]:
        """The assembled statement."""
        return self._stmt

    @property
    def request(self) -> RequestParameters:
        return self._request

    @property
    def allow_list(self) -> AllowList:
        return self._allow_list

    @property
    def settings(self) -> QueryBuilderSettings:
        return self._settings

    # -- registration --------------------------------------------------------

    def allowed_filters(
        self, *filters: str | AllowedFilter | Iterable[Any]
    ) -> QueryBuilder[T]:
        """
        Allow filters by name (partial match) or as :class:`AllowedFilter`.

        ``"*"`` allows a partial filter on any mapped column.
        """
        self._allow_list.register_filters(filters)
        requested = {
            name: value
            for name, value in self._request.filters().items()
            if value is not None and value != ""
        }
        guard_filters(self._request.filters(), self._allow_list)
        resolved = [
            (self._resolve_filter(name), value)
            for name, value in requested.items()
            if name not in self._applied_filters
        ]
        for allowed, value in resolved:
            self._stmt = apply_filter(self._stmt, self._model, allowed, value)
            self._applied_filters.add(allowed.name)
        return self

    def allowed_sorts(self, *sorts: str | Iterable[str]) -> QueryBuilder[T]:
        """Allow sorting on the given columns; ``"*"`` allows any mapped column."""
        self._allow_list.register_sorts(sorts)
        requested = self._request.sorts()
        if not requested:
            return self
        guard_sorts([sort.field for sort in requested], self._allow_list)
        self._add_sorts(requested, wildcard=self._allow_list.is_wildcard(Category.SORT))
        return self

    def default_sort(self, *sorts: str | SortField) -> QueryBuilder[T]:
        """Sort applied when the request carries no ``sort`` parameter."""
        self._default_sorts = [
            sort if isinstance(sort, SortField) else SortField.parse(sort)
            for sort in sorts
        ]
        if not self._request.has_sort:
            self._add_sorts(self._default_sorts)
        return self

    def allowed_includes(self, *includes: str | Iterable[str]) -> QueryBuilder[T]:
        """
        Allow eager loading of relation paths.

        ``"posts.comments"`` also allows ``"posts"``.
        """
        self._allow_list.register_includes(includes)
        requested = self._request.includes()
        guard_includes(requested, self._allow_list)
        self._add_includes(requested)
        return self

    def allowed_fields(self, *fields: str | Iterable[str]) -> QueryBuilder[T]:
        """
        Allow selecting the given columns (``"name"`` or ``"posts.title"``).

        The request's field selection is only checked against this list when
        ``settings.guard_fields`` is enabled. Relations already included by
        :meth:`allowed_includes` get their column subsets once the guard passes.
        """
        self._allow_list.register_fields(fields)
        if not self._request.has_fields or not self._settings.guard_fields:
            return self
        guard_fields(self._fields.qualified(self._naming), self._allow_list)
        if not self._fields_active:
            self._add_fields()
            self._restrict_includes()
        return self

    def allowed_appends(self, *appends: str | Iterable[str]) -> QueryBuilder[T]:
        """Allow computed properties to be appended to each result record."""
        self._allow_list.register_appends(appends)
        requested = self._request.appends()
        guard_appends(requested, self._allow_list)
        self._appends = requested
        return self

    # -- execution -----------------------------------------------------------

    async def get(
        self,
        session: AsyncSession,
        columns: Sequence[str] | None = None,
        *,
        limit: int | None = None,
    ) -> list[T]:
        """
        Execute the statement and return the records with appends applied.

        ``columns`` restricts the root selection when the request did not.
        """
        stmt = self._stmt if limit is None else self._stmt.limit(limit)
        if columns and WILDCARD not in columns and self._root_columns is None:
            stmt = stmt.options(load_only(*self._resolve_columns(self._model, columns)))
        return await self._execute(session, stmt)

    async def first(self, session: AsyncSession) -> T | None:
        records = await self.get(session, limit=1)
        return records[0] if records else None

    async def _execute(self, session: AsyncSession, stmt: Select[Any]) -> list[T]:
        result = await session.scalars(stmt)
        # unique() is required once joined eager loads are present.
        records: list[T] = list(result.unique().all())
        # Identity-mapped records may carry appends from an earlier query.
        apply_appends(records, self._appends)
        return records

    # -- filters -------------------------------------------------------------

    def _resolve_filter(self, name: str) -> AllowedFilter:
        allowed = self._allow_list.find_filter(name)
        if allowed is not None:
            return allowed
        # Only reachable with a wildcard registration.
        if column_attribute(self._model, name) is None:
            raise InvalidFilterQuery.filters_not_allowed(
                [name], column_names(self._model)
            )
        return AllowedFilter.partial(name)

    # -- sorts ---------------------------------------------------------------

    def _add_sorts(self, sorts: Iterable[SortField], *, wildcard: bool = False) -> None:
        present = set(self._orders)
        new = [sort for sort in sorts if sort not in present]
        if wildcard:
            unknown = unknown_names(
                (sort.field for sort in new), column_names(self._model)
            )
            if unknown:
                raise InvalidSortQuery.sorts_not_allowed(
                    unknown, column_names(self._model)
                )
        clauses = []
        for sort in new:
            column = column_attribute(self._model, sort.field)
            if column is None:
                raise AttributeError(
                    f"Model {self._model.__name__} has no column {sort.field!r}"
                )
            clauses.append(desc(column) if sort.descending else asc(column))
        if clauses:
            _logger.debug("Applying sorts %s", [sort.to_token() for sort in new])
            self._stmt = self._stmt.order_by(*clauses)
            self._orders.extend(new)

    # -- includes ------------------------------------------------------------

    def _add_includes(self, paths: Iterable[str]) -> None:
        new = [path for path in expand_includes(paths) if path not in self._includes]
        loader = _LOADERS[self._settings.eager_loader]
        options = [self._loader_option(path, loader) for path in new]
        if options:
            _logger.debug("Eager loading %d relation path(s)", len(options))
            self._stmt = self._stmt.options(*options)
            self._includes.extend(new)

    def _restrict_includes(self) -> None:
        # defaultload leaves the loader chosen by _add_includes in place.
        options = [
            self._loader_option(path, "defaultload") for path in self._includes
        ]
        if options:
            self._stmt = self._stmt.options(*options)

    def _loader_option(self, path: str, loader: str) -> Load:
        segments = path.split(".")
        model: type[Any] = self._model
        option = Load(self._model)
        for index, segment in enumerate(segments):
            relationship = relationship_of(model, self._naming.attribute_name(segment))
            attribute = getattr(model, relationship.key)
            # Intermediate levels keep their own loader; only the last is set here.
            method = loader if index == len(segments) - 1 else "defaultload"
            option = getattr(option, method)(attribute)
            model = relationship.mapper.class_

        columns = self._relation_columns(path, model)
        if columns:
            option = option.load_only(*columns)
        return option

    def _relation_columns(self, path: str, model: type[Any]) -> list[Any] | None:
        if not self._fields_active:
            return None
        names = self._fields.columns_for(self._naming.fields_key(path))
        if names is None:
            names = self._fields.columns_for(table_name(model))
        if not names or WILDCARD in names:
            return None
        return self._resolve_columns(model, names)

    # -- fields --------------------------------------------------------------

    def _add_fields(self) -> None:
        self._fields_active = True
        names = self._fields.columns_for(table_name(self._model))
        if not names or WILDCARD in names:
            return
        self._root_columns = self._resolve_columns(self._model, names)
        _logger.debug("Selecting %s columns %s", table_name(self._model), list(names))
        self._stmt = self._stmt.options(load_only(*self._root_columns))

    def _resolve_columns(self, model: type[Any], names: Iterable[str]) -> list[Any]:
        table = table_name(model)
        attributes: list[Any] = []
        unknown: list[str] = []
        for name in names:
            attribute = column_attribute(model, self._naming.property_name(name))
            if attribute is None:
                unknown.append(f"{table}.{name}")
            else:
                attributes.append(attribute)
        if unknown:
            raise InvalidFieldQuery.fields_not_allowed(
                unknown, [f"{table}.{column}" for column in column_names(model)]
            )
        return attributes
