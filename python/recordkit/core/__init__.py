"""Column types, table schemas and schema discovery."""

from recordkit.core.schema import Schema
from recordkit.core.types import (
    MISSING,
    TYPE_REGISTRY,
    ColumnType,
    compare_values,
    create_type,
    register_type,
    unregister_type,
)

__all__ = [
    "MISSING",
    "TYPE_REGISTRY",
    "ColumnType",
    "Schema",
    "compare_values",
    "create_type",
    "register_type",
    "unregister_type",
]
