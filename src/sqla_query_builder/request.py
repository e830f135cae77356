"""RequestParameters — immutable snapshot of the query-shaping request parameters."""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict, field_validator

from .parser import (
    FieldSelection,
    SortField,
    parse_appends,
    parse_fields,
    parse_filters,
    parse_includes,
    parse_sorts,
)
from .settings import DEFAULT_SETTINGS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .settings import QueryBuilderSettings

_BRACKETS = re.compile(r"\[([^\]]*)\]")


class RequestParameters(BaseModel):
    """
    The five request parameters a query builder reads, captured once.

    Raw values are kept as received; the accessor methods return parsed
    values and never raise on malformed input.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    filter: Any = None
    sort: Any = None
    include: Any = None
    fields: Any = None
    append: Any = None

    @field_validator("*", mode="before")
    @classmethod
    def _snapshot(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: copy.deepcopy(v) for k, v in value.items()}
        return copy.deepcopy(value)

    # -- construction --------------------------------------------------------

    @classmethod
    def from_mapping(
        cls,
        params: Mapping[str, Any],
        settings: QueryBuilderSettings | None = None,
    ) -> RequestParameters:
        """
        Read the configured parameter names out of ``params``.

        Accepts nested values (``{"filter": {"name": "x"}}``) as well as
        flattened bracket keys (``{"filter[name]": "x"}``).
        """
        return cls._from_nested(_nest(params.items()), settings)

    @classmethod
    def from_query_string(
        cls,
        query_string: str,
        settings: QueryBuilderSettings | None = None,
    ) -> RequestParameters:
        """Parse ``filter[name]=foo&sort=-name&fields[posts]=id,title``."""
        pairs = parse_qsl(query_string.lstrip("?"), keep_blank_values=True)
        return cls._from_nested(_nest(pairs), settings)

    @classmethod
    def _from_nested(
        cls,
        data: Mapping[str, Any],
        settings: QueryBuilderSettings | None,
    ) -> RequestParameters:
        s = settings or DEFAULT_SETTINGS
        return cls(
            filter=data.get(s.filter_parameter),
            sort=data.get(s.sort_parameter),
            include=data.get(s.include_parameter),
            fields=data.get(s.fields_parameter),
            append=data.get(s.append_parameter),
        )

    def to_query_string(self, settings: QueryBuilderSettings | None = None) -> str:
        """Rebuild a query string (e.g. for pagination links)."""
        s = settings or DEFAULT_SETTINGS
        params: list[tuple[str, str]] = []
        for name, value in self.filters().items():
            params.append((f"{s.filter_parameter}[{name}]", _format_value(value)))
        if self.sorts():
            params.append(
                (s.sort_parameter, ",".join(f.to_token() for f in self.sorts()))
            )
        if self.includes():
            params.append((s.include_parameter, ",".join(self.includes())))
        for key, columns in self.field_selection().items():
            params.append((f"{s.fields_parameter}[{key}]", ",".join(columns)))
        if self.appends():
            params.append((s.append_parameter, ",".join(self.appends())))
        return urlencode(params, safe="[],") if params else ""

    # -- parsed accessors ----------------------------------------------------

    def filters(self) -> dict[str, Any]:
        return parse_filters(self.filter)

    def sorts(self) -> list[SortField]:
        return parse_sorts(self.sort)

    def includes(self) -> list[str]:
        return parse_includes(self.include)

    def field_selection(self) -> FieldSelection:
        return parse_fields(self.fields)

    def appends(self) -> list[str]:
        return parse_appends(self.append)

    @property
    def has_sort(self) -> bool:
        return bool(self.sorts())

    @property
    def has_fields(self) -> bool:
        return bool(self.fields)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value)
    return str(value)


def _nest(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Decode bracket keys: ``filter[name]`` -> ``{"filter": {"name": ...}}``."""
    out: dict[str, Any] = {}
    for key, value in items:
        head = key.split("[", 1)[0]
        path = _BRACKETS.findall(key[len(head) :])
        if not path:
            out[head] = value
            continue
        node = out.setdefault(head, {} if path[0] else [])
        if not isinstance(node, (dict, list)):
            node = out[head] = {} if path[0] else []
        _assign(node, path, value)
    return out


def _assign(node: dict[str, Any] | list[Any], path: list[str], value: Any) -> None:
    if isinstance(node, list):
        node.append(value)
        return
    key, rest = path[0], path[1:]
    if not key:
        return
    if not rest:
        node[key] = value
        return
    child = node.get(key)
    if not isinstance(child, (dict, list)):
        child = node[key] = {} if rest[0] else []
    _assign(child, rest, value)
