"""Value maps for INSERT/UPDATE/DELETE/SELECT statements.

This module turns a record's stored data into the prepared column maps the
statement builders expect. Only columns known to the schema are ever
written; values pass through the column type's prepare() on the way out.

Functions:
    _dump_write_data(record, schema, replace=False) -> dict:
        Every set attribute with a schema column. The autoincrement column is
        left to the database unless replace is requested.

    _primary_key_predicate(record, schema, action) -> dict:
        Primary key column/value pairs read off the record. Raises
        MissingPrimaryKeyError naming ``action`` when a key is unset.

    _column_predicate(record, schema) -> dict:
        Every set attribute with a schema column. Used by delete() on tables
        without primary keys.

    _lookup_predicate(schema, search, table_name) -> dict:
        Normalize and prepare caller supplied lookup values, item by item for
        list or tuple values outside JSON columns. Raises UnknownColumnError
        for columns outside the schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from recordkit.core.schema import Schema
from recordkit.core.types import JsonType
from recordkit.exceptions import MissingPrimaryKeyError, UnknownColumnError

if TYPE_CHECKING:
    from recordkit.models.base import Model


def _dump_write_data(record: Model, schema: Schema, *, replace: bool = False) -> dict[str, Any]:
    """Serialize the record's data for INSERT/UPDATE/REPLACE."""
    write: dict[str, Any] = {}
    for field, value in record.data.items():
        column_type = schema.column(field)
        if column_type is None:
            continue
        if not replace and field == schema.autoincrement:
            continue
        write[field] = column_type.prepare(value)
    return write


def _primary_key_predicate(record: Model, schema: Schema, action: str) -> dict[str, Any]:
    """Build the WHERE map from the record's primary key values."""
    predicate: dict[str, Any] = {}
    for key in schema.primaries:
        if not record.has(key):
            raise MissingPrimaryKeyError(
                f"Could not {action} {record.get_table_name()} record, "
                f"required primary key value was absent: {key}"
            )
        column_type = schema.column(key)
        value = record.data[key]
        predicate[key] = column_type.prepare(value) if column_type is not None else value
    return predicate


def _column_predicate(record: Model, schema: Schema) -> dict[str, Any]:
    """Build a WHERE map from every set attribute that is a schema column."""
    return {
        field: column_type.prepare(record.data[field])
        for field, column_type in schema.columns.items()
        if record.has(field)
    }


def _lookup_predicate(
    schema: Schema,
    search: Mapping[str, Any],
    table_name: str,
) -> dict[str, Any]:
    """Validate caller supplied lookup values against the schema."""
    predicate: dict[str, Any] = {}
    for field, value in search.items():
        column_type = schema.column(field)
        if column_type is None:
            raise UnknownColumnError(
                f"Could not load {table_name} record, {field} does not exist in the table schema."
            )
        if isinstance(value, (list, tuple)) and not isinstance(column_type, JsonType):
            predicate[field] = [column_type.prepare(column_type.normalize(item)) for item in value]
        else:
            predicate[field] = column_type.prepare(column_type.normalize(value))
    return predicate


__all__ = [
    "_dump_write_data",
    "_primary_key_predicate",
    "_column_predicate",
    "_lookup_predicate",
]
