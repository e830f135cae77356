"""Request parameter parsing — lists, sorts, include paths, field maps, filter values.

Nothing here validates names; malformed input degrades to empty values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .naming import RelationNaming

Direction = Literal["asc", "desc"]


def split_list(raw: Any) -> list[str]:
    """Split a comma-joined string (or a list of them) into trimmed tokens."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if isinstance(raw, (list, tuple)):
        out: list[str] = []
        for item in raw:
            if isinstance(item, str):
                out.extend(split_list(item))
        return out
    return []


class SortField(NamedTuple):
    """One ``ORDER BY`` entry: column name and direction."""

    field: str
    direction: Direction = "asc"

    @classmethod
    def parse(cls, token: str) -> SortField:
        if token.startswith("-"):
            return cls(token[1:], "desc")
        return cls(token, "asc")

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    def to_token(self) -> str:
        return f"-{self.field}" if self.descending else self.field


def parse_sorts(raw: Any) -> list[SortField]:
    return [SortField.parse(token) for token in split_list(raw) if token != "-"]


@dataclass(frozen=True)
class RelationPath:
    """Dotted relation path, e.g. ``posts.comments.author``."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, path: str) -> RelationPath:
        return cls(tuple(s.strip() for s in path.split(".") if s.strip()))

    def __str__(self) -> str:
        return ".".join(self.segments)

    def prefixes(self) -> list[str]:
        """``a.b.c`` -> ``["a", "a.b", "a.b.c"]``."""
        return [
            ".".join(self.segments[: i + 1]) for i in range(len(self.segments))
        ]


def parse_includes(raw: Any) -> list[str]:
    """Requested include paths, as sent."""
    return [str(p) for p in map(RelationPath.parse, split_list(raw)) if p.segments]


def expand_includes(paths: Iterable[str]) -> list[str]:
    """Expand every path into its prefixes, keeping first-seen order."""
    expanded: dict[str, None] = {}
    for path in paths:
        for prefix in RelationPath.parse(path).prefixes():
            expanded.setdefault(prefix)
    return list(expanded)


class FieldSelection(Mapping[str, tuple[str, ...]]):
    """
    Per-table column lists requested through the ``fields`` parameter.

    A missing key means "all columns" for that table.
    """

    def __init__(self, columns: Mapping[str, Iterable[str]] | None = None) -> None:
        self._columns: dict[str, tuple[str, ...]] = {
            key: tuple(value) for key, value in (columns or {}).items()
        }

    def __getitem__(self, key: str) -> tuple[str, ...]:
        return self._columns[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"FieldSelection({self._columns!r})"

    def columns_for(self, key: str) -> tuple[str, ...] | None:
        return self._columns.get(key)

    def qualified(self, naming: RelationNaming) -> list[str]:
        """``{"blog-posts": ("id",)}`` -> ``["blog_posts.id"]``."""
        out: dict[str, None] = {}
        for key, columns in self._columns.items():
            table = naming.table_key(key)
            for column in columns:
                out.setdefault(f"{table}.{naming.property_name(column)}")
        return list(out)


def parse_fields(raw: Any) -> FieldSelection:
    if not isinstance(raw, Mapping):
        return FieldSelection()
    return FieldSelection({str(key): split_list(value) for key, value in raw.items()})


def parse_filter_value(value: Any) -> Any:
    """
    Normalise a raw filter value.

    ``"a,b"`` -> ``["a", "b"]``, ``"true"``/``"false"`` -> ``bool``;
    mappings and lists are converted item by item.
    """
    if isinstance(value, Mapping):
        return {key: parse_filter_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [parse_filter_value(item) for item in value]
    if isinstance(value, str):
        if "," in value:
            return [part.strip() for part in value.split(",")]
        if value == "true":
            return True
        if value == "false":
            return False
    return value


def parse_filters(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(name): parse_filter_value(value) for name, value in raw.items()}


def parse_appends(raw: Any) -> list[str]:
    return split_list(raw)
