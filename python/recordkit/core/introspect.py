"""Schema discovery from DESCRIBE output.

fetch_table_schema() issues ``DESCRIBE `table``` through the connection and
turns each result row into a column descriptor:

    Field   Type                  Null  Key  Default  Extra
    id      int(10) unsigned      NO    PRI  NULL     auto_increment
    price   decimal(10,2)         YES        NULL
    status  enum('draft','live')  NO         draft
    created datetime(3)           YES        NULL

Type strings are classified by pattern:
    date | datetime | timestamp | time | year   [(fsp)]
    decimal | numeric | float | double         (size,precision)
    [tiny|small|medium|big]int[eger]            (size)
    enum | set                                 ('a','b',...)
    [var]char | [var]binary                    (size)
    anything else                              bare name via the registry

Unrecognised names become UNKNOWN descriptors; a malformed type string never
fails discovery. Errors raised by the connection propagate unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from recordkit.core.schema import Schema
from recordkit.core.types import ColumnType, create_type
from recordkit.db.executor import SupportsExecute, execute_query
from recordkit.queries.builders import build_describe_query

logger = structlog.get_logger(__name__)

_TEMPORAL_RE = re.compile(r"^(date|datetime|timestamp|time|year)(?:\((\d+)\))?(?:\s|$)")
_FRACTIONAL_RE = re.compile(r"^(decimal|numeric|float|double)\((\d+),\s*(\d+)\)")
_INTEGER_RE = re.compile(r"^((?:big|medium|small|tiny)?int(?:eger)?)\((\d+)\)")
_OPTIONS_RE = re.compile(r"^(enum|set)\((.*)\)", re.IGNORECASE)
_SIZED_RE = re.compile(r"^((?:var)?char|(?:var)?binary)\((\d+)\)")
_QUOTED_RE = re.compile(r"'((?:[^']|'')*)'")


class ColumnDescription(BaseModel):
    """One row of ``DESCRIBE <table>``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(validation_alias=AliasChoices("Field", "field", "name"))
    type: str = Field(validation_alias=AliasChoices("Type", "type"))
    null: bool = Field(default=True, validation_alias=AliasChoices("Null", "null"))
    key: str = Field(default="", validation_alias=AliasChoices("Key", "key"))
    default: Any = Field(default=None, validation_alias=AliasChoices("Default", "default"))
    extra: str = Field(default="", validation_alias=AliasChoices("Extra", "extra"))

    @field_validator("type", "key", "extra", mode="before")
    @classmethod
    def _decode(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode()
        return value

    @field_validator("null", mode="before")
    @classmethod
    def _parse_null(cls, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode()
        if isinstance(value, str):
            return value.strip().upper() == "YES"
        return value

    @property
    def is_primary(self) -> bool:
        return self.key.upper() == "PRI"

    @property
    def is_autoincrement(self) -> bool:
        return "auto_increment" in self.extra.lower()


def _parse_options(raw: str) -> tuple[str, ...]:
    return tuple(match.replace("''", "'") for match in _QUOTED_RE.findall(raw))


def parse_column(description: ColumnDescription) -> ColumnType:
    """Build the column descriptor for a single DESCRIBE row."""
    declared = description.type.strip()
    lowered = declared.lower()
    attrs: dict[str, Any] = {"null": description.null}
    unsigned = "unsigned" in lowered
    zerofill = "zerofill" in lowered

    if match := _TEMPORAL_RE.match(lowered):
        kind, fsp = match.groups()
        if fsp is not None and kind in ("datetime", "timestamp", "time"):
            attrs["precision"] = int(fsp)
        return create_type(kind, **attrs)

    if match := _FRACTIONAL_RE.match(lowered):
        kind, size, precision = match.groups()
        return create_type(
            kind,
            size=int(size),
            precision=int(precision),
            unsigned=unsigned,
            zerofill=zerofill,
            **attrs,
        )

    if match := _INTEGER_RE.match(lowered):
        kind, size = match.groups()
        return create_type(kind, size=int(size), unsigned=unsigned, zerofill=zerofill, **attrs)

    if match := _OPTIONS_RE.match(declared):
        kind, raw_options = match.groups()
        return create_type(kind, options=_parse_options(raw_options), **attrs)

    if match := _SIZED_RE.match(lowered):
        kind, size = match.groups()
        return create_type(kind, size=int(size), **attrs)

    head = lowered.split("(")[0].split()
    bare = head[0] if head else "unknown"
    try:
        if bare.endswith("int") or bare in ("integer", "decimal", "numeric", "float", "double"):
            return create_type(bare, unsigned=unsigned, zerofill=zerofill, **attrs)
        return create_type(bare, **attrs)
    except TypeError:
        # Custom factories may not accept the parsed attributes.
        logger.debug("schema.column.unsupported_attributes", type=declared)
        return create_type("unknown", **attrs)


def parse_describe_rows(rows: Iterable[Mapping[str, Any] | ColumnDescription]) -> Schema:
    """Build a loaded Schema from DESCRIBE result rows."""
    schema = Schema(loaded=True)
    for row in rows:
        description = (
            row if isinstance(row, ColumnDescription) else ColumnDescription.model_validate(row)
        )
        schema.columns[description.name] = parse_column(description)
        if description.is_primary:
            schema.primaries.append(description.name)
        if description.is_autoincrement:
            schema.autoincrement = description.name
    return schema


async def fetch_table_schema(table_name: str, client: SupportsExecute) -> Schema:
    """Discover the schema of ``table_name`` using ``client``."""
    rows = await execute_query(client, build_describe_query(table_name))
    schema = parse_describe_rows(rows or [])
    logger.debug(
        "schema.introspected",
        table=table_name,
        columns=len(schema.columns),
        primaries=list(schema.primaries),
        autoincrement=schema.autoincrement,
    )
    return schema


__all__ = [
    "ColumnDescription",
    "parse_column",
    "parse_describe_rows",
    "fetch_table_schema",
]
