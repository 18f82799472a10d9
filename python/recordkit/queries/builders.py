"""Statement builders for record persistence.

Each builder takes already-prepared values and returns a CompiledQuery with
the SQL text and its positional parameters. Values are always bound, never
inlined; table and column names are quoted by the MySQL dialect.

    build_select_query("users", {"id": 16})
    → SELECT * FROM users WHERE users.id = ?            [16]

    build_insert_query("users", {"name": "john"}, replace=True)
    → REPLACE INTO users (name) VALUES (?)              ["john"]

    build_update_query("users", {"name": "jane"}, {"id": 16})
    → UPDATE users SET name=? WHERE users.id = ?        ["jane", 16]

    build_delete_query("users", {"id": 16})
    → DELETE FROM users WHERE users.id = ?              [16]

A None predicate value compiles to IS NULL, a list or tuple to IN:

    build_select_query("users", {"id": [1, 2]})
    → SELECT * FROM users WHERE users.id IN (?, ?)      [1, 2]

An empty list matches no rows. The builders never look at the
type registry or the schema; callers normalize and prepare values first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple

from sqlalchemy import (
    and_,
    column,
    delete,
    false,
    insert,
    literal,
    literal_column,
    select,
    table,
    update,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.dml import Insert

_DIALECT = mysql.dialect(paramstyle="qmark")


class CompiledQuery(NamedTuple):
    sql: str
    params: list[Any]


class Replace(Insert):
    """INSERT construct that renders as MySQL REPLACE."""

    inherit_cache = True


@compiles(Replace)
def _compile_replace(element: Replace, compiler: Any, **kw: Any) -> str:
    rendered = compiler.visit_insert(element, **kw)
    return "REPLACE" + rendered[len("INSERT") :]


def _table(name: str, *column_sets: Iterable[str]):
    names: list[str] = []
    for column_set in column_sets:
        for column_name in column_set:
            if column_name not in names:
                names.append(column_name)
    return table(name, *(column(column_name) for column_name in names))


def _match(target_column, value: Any):
    if isinstance(value, (list, tuple)):
        if not value:
            return false()
        # One bind per item keeps the ? placeholders in the compiled text.
        return target_column.in_([literal(item) for item in value])
    return target_column == value


def _where(target, predicate: Mapping[str, Any]):
    return and_(*(_match(target.c[name], value) for name, value in predicate.items()))


def _compile(statement: Any) -> CompiledQuery:
    compiled = statement.compile(dialect=_DIALECT)
    params = [compiled.params[name] for name in (compiled.positiontup or [])]
    return CompiledQuery(str(compiled), params)


def build_select_query(
    table_name: str,
    predicate: Mapping[str, Any] | None = None,
    columns: Sequence[str] | None = None,
    *,
    order_by: Sequence[str] | None = None,
    limit: int | None = None,
) -> CompiledQuery:
    """SELECT ``columns`` (all when omitted) constrained by ``predicate``."""
    predicate = predicate or {}
    order_by = order_by or ()
    ordering = [name.lstrip("-") for name in order_by]
    target = _table(table_name, columns or (), predicate, ordering)
    if columns:
        statement = select(*(target.c[name] for name in columns))
    else:
        statement = select(literal_column("*"))
    statement = statement.select_from(target)
    if predicate:
        statement = statement.where(_where(target, predicate))
    for name in order_by:
        if name.startswith("-"):
            statement = statement.order_by(target.c[name[1:]].desc())
        else:
            statement = statement.order_by(target.c[name])
    query = _compile(statement)
    if limit is not None:
        query = CompiledQuery(f"{query.sql} LIMIT {int(limit)}", query.params)
    return query


def build_insert_query(
    table_name: str,
    values: Mapping[str, Any],
    replace: bool = False,
) -> CompiledQuery:
    """INSERT ``values`` into the table, or REPLACE when ``replace`` is set."""
    target = _table(table_name, values)
    statement = (Replace(target) if replace else insert(target)).values(dict(values))
    return _compile(statement)


def build_update_query(
    table_name: str,
    values: Mapping[str, Any],
    predicate: Mapping[str, Any],
) -> CompiledQuery:
    """UPDATE the rows matching ``predicate`` with ``values``."""
    target = _table(table_name, values, predicate)
    statement = update(target).values(dict(values)).where(_where(target, predicate))
    return _compile(statement)


def build_delete_query(
    table_name: str,
    predicate: Mapping[str, Any],
) -> CompiledQuery:
    """DELETE the rows matching ``predicate``."""
    target = _table(table_name, predicate)
    statement = delete(target).where(_where(target, predicate))
    return _compile(statement)


def build_describe_query(table_name: str) -> CompiledQuery:
    """Schema discovery statement for ``table_name``."""
    quoted = _DIALECT.identifier_preparer.quote_identifier(table_name)
    return CompiledQuery(f"DESCRIBE {quoted}", [])


__all__ = [
    "CompiledQuery",
    "Replace",
    "build_select_query",
    "build_insert_query",
    "build_update_query",
    "build_delete_query",
    "build_describe_query",
]
