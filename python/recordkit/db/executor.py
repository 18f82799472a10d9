"""Execution seam between records and the database driver.

recordkit does not talk to a database itself. Anything with an async
``execute(sql, params)`` method can serve as the connection:

    class AiomysqlConnection:
        def __init__(self, pool):
            self.pool = pool

        async def execute(self, sql, params):
            async with self.pool.acquire() as conn:
                async with conn.cursor(aiomysql.DictCursor) as cur:
                    await cur.execute(sql.replace("?", "%s"), params)
                    if cur.description is not None:
                        return await cur.fetchall()
                    return WriteResult(insert_id=cur.lastrowid, affected_rows=cur.rowcount)

SELECT-shaped statements must resolve to a sequence of row mappings; write
statements resolve to metadata from which extract_insert_id() can read the
generated key. Driver errors propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

import structlog

if TYPE_CHECKING:
    from recordkit.queries.builders import CompiledQuery

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CompletionCallback = Callable[[BaseException | None, Any], Any]


@runtime_checkable
class SupportsExecute(Protocol):
    async def execute(self, sql: str, params: Sequence[Any]) -> Any: ...


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Metadata of an INSERT/UPDATE/DELETE/REPLACE execution."""

    insert_id: int | None = None
    affected_rows: int = 0


_INSERT_ID_KEYS = ("insert_id", "insertId", "lastrowid", "last_insert_id")


def extract_insert_id(result: Any) -> Any:
    """Return the generated key reported by a write, or None.

    MySQL reports 0 when no key was generated, which is treated as absent.
    """
    if result is None:
        return None
    if isinstance(result, WriteResult):
        insert_id = result.insert_id
    elif isinstance(result, Mapping):
        insert_id = next(
            (result[key] for key in _INSERT_ID_KEYS if result.get(key) is not None),
            None,
        )
    else:
        insert_id = next(
            (
                getattr(result, key)
                for key in _INSERT_ID_KEYS
                if getattr(result, key, None) is not None
            ),
            None,
        )
    if insert_id == 0:
        return None
    return insert_id


async def execute_query(client: SupportsExecute, query: CompiledQuery) -> Any:
    """Run a compiled statement through ``client``."""
    logger.debug("query.execute", sql=query.sql, params=len(query.params))
    return await client.execute(query.sql, query.params)


async def run_with_callback(
    operation: Awaitable[T],
    callback: CompletionCallback | None = None,
) -> T:
    """Await ``operation`` and report the outcome to ``callback`` as (error, result).

    The awaited outcome is the same with or without a callback: a failure is
    passed to the callback and then re-raised.
    """
    try:
        result = await operation
    except Exception as exc:
        if callback is not None:
            callback(exc, None)
        raise
    if callback is not None:
        callback(None, result)
    return result


__all__ = [
    "SupportsExecute",
    "CompletionCallback",
    "run_with_callback",
    "WriteResult",
    "extract_insert_id",
    "execute_query",
]
