"""Case conversion between request names and mapped attribute names."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import Case, QueryBuilderSettings

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake(name: str) -> str:
    """``fullName`` / ``full-name`` -> ``full_name``."""
    name = name.replace("-", "_").replace(" ", "_")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel(name: str) -> str:
    """``full_name`` / ``full-name`` -> ``fullName``."""
    head, *rest = re.split(r"[_\-\s]+", name)
    return head[:1].lower() + head[1:] + "".join(p[:1].upper() + p[1:] for p in rest)


def convert_case(name: str, case: Case) -> str:
    if case == "snake":
        return to_snake(name)
    if case == "camel":
        return to_camel(name)
    return name


class RelationNaming:
    """Maps requested relation paths onto relationship attributes and field keys."""

    def __init__(self, settings: QueryBuilderSettings) -> None:
        self._relation_case = settings.relation_case
        self._fields_case = settings.fields_key_case
        self._fields_key = settings.relation_fields_key

    def attribute_name(self, segment: str) -> str:
        return convert_case(segment, self._relation_case)

    def property_name(self, name: str) -> str:
        """Appended property name -> Python attribute name."""
        return to_snake(name)

    def fields_key(self, path: str) -> str:
        if self._fields_key == "path":
            return ".".join(
                convert_case(segment, self._fields_case)
                for segment in path.split(".")
            )
        return convert_case(path.rsplit(".", 1)[-1], self._fields_case)

    def table_key(self, key: str) -> str:
        """Normalise a ``fields`` map key to table naming (``blog-posts``)."""
        return to_snake(key)
