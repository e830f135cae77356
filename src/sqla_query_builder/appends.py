"""Appended (computed) properties attached to records after execution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect

from .naming import to_snake

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class AppendsMixin:
    """
    Lets a mapped class expose computed properties in its serialised form.

    ``append("fullName")`` evaluates ``self.full_name`` once and keeps the
    value under the requested name; it is never persisted.

    Example:
        ```python
        class User(AppendsMixin, Base):
            __tablename__ = "users"
            first_name: Mapped[str]
            last_name: Mapped[str]

            @property
            def full_name(self) -> str:
                return f"{self.first_name} {self.last_name}"
        ```
    """

    def append(self, *names: str) -> None:
        """Replace the appended values with ``names``; no names clears them."""
        self.__dict__["_appended"] = {
            name: getattr(self, to_snake(name)) for name in names
        }

    @property
    def appended(self) -> dict[str, Any]:
        return dict(self.__dict__.get("_appended", {}))

    def to_dict(self) -> dict[str, Any]:
        """Loaded columns, loaded relationships, then appended values."""
        state = inspect(self)
        data: dict[str, Any] = {
            attr.key: getattr(self, attr.key)
            for attr in state.mapper.column_attrs
            if attr.key not in state.unloaded
        }
        for rel in state.mapper.relationships:
            if rel.key in state.unloaded:
                continue
            value = getattr(self, rel.key)
            if rel.uselist:
                data[rel.key] = [_serialise(item) for item in value]
            else:
                data[rel.key] = _serialise(value) if value is not None else None
        data.update(self.appended)
        return data


def _serialise(value: Any) -> Any:
    return value.to_dict() if isinstance(value, AppendsMixin) else value


def apply_appends(records: Sequence[Any], names: Iterable[str]) -> Sequence[Any]:
    """Set the appended ``names`` on every record in place and return the records."""
    names = list(names)
    for record in records:
        if isinstance(record, AppendsMixin):
            record.append(*names)
        elif names:
            raise TypeError(
                f"{type(record).__name__} does not support appended properties; "
                "mix in AppendsMixin"
            )
    return records
