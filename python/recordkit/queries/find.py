"""Multi-record lookups built from Model.find().

    users = await User.find({"enabled": 1}).order_by("-id").limit(10).all()
    first = await User.find().where(email="a@example.com").first()

Predicate values are passed to the database as given; no schema is needed.
Every returned record is marked as existing and starts with an empty
changed set.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from recordkit.db.executor import (
    CompletionCallback,
    SupportsExecute,
    execute_query,
    run_with_callback,
)
from recordkit.queries.builders import CompiledQuery, build_select_query

if TYPE_CHECKING:
    from recordkit.models.base import Model


class FindQuery:
    """Chainable SELECT over a Model's table returning records."""

    def __init__(
        self,
        model_class: type[Model],
        where: Mapping[str, Any] | None = None,
    ) -> None:
        self.model_class = model_class
        self._predicate: dict[str, Any] = dict(where or {})
        self._order_by_fields: list[str] = []
        self._limit_value: int | None = None

    def _clone(self) -> FindQuery:
        query = FindQuery(self.model_class, self._predicate)
        query._order_by_fields = list(self._order_by_fields)
        query._limit_value = self._limit_value
        return query

    def where(self, conditions: Mapping[str, Any] | None = None, **kwargs: Any) -> FindQuery:
        """Add equality constraints; later values for a column win."""
        query = self._clone()
        query._predicate.update(conditions or {})
        query._predicate.update(kwargs)
        return query

    def order_by(self, *fields: str) -> FindQuery:
        """Order by columns, descending when prefixed with "-"."""
        query = self._clone()
        query._order_by_fields.extend(fields)
        return query

    def limit(self, value: int) -> FindQuery:
        query = self._clone()
        query._limit_value = value
        return query

    def to_query(self) -> CompiledQuery:
        return build_select_query(
            self.model_class.get_table_name(),
            self._predicate,
            order_by=self._order_by_fields,
            limit=self._limit_value,
        )

    async def fetch_all(self, client: SupportsExecute) -> list[dict[str, Any]]:
        """Execute query and return the raw rows."""
        rows = await execute_query(client, self.to_query())
        return [dict(row) for row in rows or []]

    async def _fetch_models(self, client: SupportsExecute | None) -> list[Model]:
        exec_client = self.model_class._connection_for(client)
        rows = await self.fetch_all(exec_client)
        return [self.model_class._from_row(row, connection=client) for row in rows]

    async def all(
        self,
        *,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> list[Model]:
        """Execute query and return every matching record."""
        return await run_with_callback(self._fetch_models(client), callback)

    async def _fetch_first(self, client: SupportsExecute | None) -> Model | None:
        results = await self.limit(1)._fetch_models(client)
        return results[0] if results else None

    async def first(
        self,
        *,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model | None:
        """
        Return the first matching record or None.

        Examples:
            user = await User.find({"email": "a@example.com"}).first()
        """
        return await run_with_callback(self._fetch_first(client), callback)


__all__ = ["FindQuery"]
