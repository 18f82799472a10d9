"""Per-table schema descriptor.

A Schema is produced either by static declaration on the Model's Meta or by
introspecting the table (see recordkit.core.introspect). It is shared by every
record of a Model and cached on the Model class for the process lifetime.

    Schema(
        columns={"id": INT(unsigned=True), "name": VARCHAR(255)},
        primaries=["id"],
        autoincrement="id",
    )

A declared schema that passes is_valid() is marked loaded; anything else is
re-derived from the database on first use.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from recordkit.core.types import ColumnType


@dataclass(slots=True)
class Schema:
    """Column descriptors, primary keys and autoincrement column of a table."""

    columns: dict[str, ColumnType] = field(default_factory=dict)
    primaries: list[str] = field(default_factory=list)
    autoincrement: str | None = None
    loaded: bool = False

    def is_valid(self) -> bool:
        """Return True when the schema can be used without introspection."""
        if not isinstance(self.columns, Mapping) or not self.columns:
            return False
        if not isinstance(self.primaries, (list, tuple)):
            return False
        return all(isinstance(name, str) for name in self.primaries)

    def column(self, name: str) -> ColumnType | None:
        return self.columns.get(name)

    @classmethod
    def coerce(cls, value: Schema | Mapping[str, Any] | None) -> Schema | None:
        """Accept a Schema or a plain mapping with the same keys.

        The mapping form is what a Model's Meta usually declares. The result is
        marked loaded only if it validates.
        """
        if value is None:
            return None
        if isinstance(value, Schema):
            schema = value
        elif isinstance(value, Mapping):
            primaries = value.get("primaries")
            schema = cls(
                columns=dict(value.get("columns") or {}),
                primaries=list(primaries) if isinstance(primaries, (list, tuple)) else primaries,  # type: ignore[arg-type]
                autoincrement=value.get("autoincrement") or None,
            )
        else:
            raise TypeError(f"Unsupported schema declaration: {type(value).__name__}")
        schema.loaded = schema.is_valid()
        return schema


__all__ = ["Schema"]
