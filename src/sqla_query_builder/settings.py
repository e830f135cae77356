"""QueryBuilderSettings — parameter names, naming conventions, loader strategy."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

Case = Literal["snake", "camel", "preserve"]


class QueryBuilderSettings(BaseModel):
    """
    Immutable configuration shared by every builder that uses it.

    Attributes:
        filter_parameter: Request key holding the filter map.
        sort_parameter: Request key holding the comma-joined sort list.
        include_parameter: Request key holding the comma-joined include list.
        fields_parameter: Request key holding the per-table field map.
        append_parameter: Request key holding the appended property names.
        relation_case: Case applied to each requested relation segment to
            find the mapped relationship attribute.
        fields_key_case: Case applied to an include when looking up its
            entry in the field selection map.
        relation_fields_key: ``"segment"`` looks fields up by the last
            segment of an include path (``posts.comments`` -> ``comments``),
            ``"path"`` by the whole converted path.
        eager_loader: Loader strategy used for included relations.
        guard_fields: Validate the ``fields`` parameter against
            ``allowed_fields()``. When enabled, field selection is only
            honoured once ``allowed_fields()`` has passed.
    """

    model_config = ConfigDict(frozen=True)

    filter_parameter: str = "filter"
    sort_parameter: str = "sort"
    include_parameter: str = "include"
    fields_parameter: str = "fields"
    append_parameter: str = "append"

    relation_case: Case = "snake"
    fields_key_case: Case = "snake"
    relation_fields_key: Literal["segment", "path"] = "segment"

    eager_loader: Literal["selectin", "joined", "subquery"] = "selectin"
    guard_fields: bool = False


DEFAULT_SETTINGS = QueryBuilderSettings()
