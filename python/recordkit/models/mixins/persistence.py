"""Persistence mixin: load, save, insert, update and delete a single record."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal

import structlog

from recordkit.core.introspect import fetch_table_schema
from recordkit.core.types import MISSING
from recordkit.db.executor import (
    CompletionCallback,
    SupportsExecute,
    execute_query,
    extract_insert_id,
    run_with_callback,
)
from recordkit.exceptions import (
    AmbiguousPrimaryKeyError,
    EmptyPredicateError,
    EmptyWriteError,
    MissingPrimaryKeyError,
    PreconditionError,
    UnknownColumnError,
)
from recordkit.models.serializers import (
    _column_predicate,
    _dump_write_data,
    _lookup_predicate,
    _primary_key_predicate,
)
from recordkit.models.utils import _is_scalar
from recordkit.queries.builders import (
    build_delete_query,
    build_insert_query,
    build_select_query,
    build_update_query,
)

if TYPE_CHECKING:
    from recordkit.core.schema import Schema
    from recordkit.models.base import Model

logger = structlog.get_logger(__name__)


class PersistenceMixin:
    """Mixin providing schema-validated database operations.

    Every operation resolves its connection (call override → record → Model
    → process-wide default), makes sure the Model's schema is known
    (introspecting the table on first use), builds the statement and runs it.
    All of them are coroutines; an optional ``callback`` receives
    ``(error, result)`` and the awaited outcome is unchanged.
    """

    # These attributes are defined by AttributeMixin and the Model class
    data: dict[str, Any]
    changed: dict[str, Any]
    exists: bool | None
    connection: SupportsExecute | None
    _normalized_schema: Schema | None

    def has(self, field: str) -> bool:
        """Must be implemented by AttributeMixin."""
        raise NotImplementedError

    def set(self, field: Any, value: Any = MISSING, **options: Any) -> Any:
        """Must be implemented by AttributeMixin."""
        raise NotImplementedError

    def unset(self, field: str, **options: Any) -> Any:
        """Must be implemented by AttributeMixin."""
        raise NotImplementedError

    def _normalize_data(self, schema: Schema) -> None:
        """Must be implemented by AttributeMixin."""
        raise NotImplementedError

    @classmethod
    def get_table_name(cls) -> str:
        """Must be implemented by the Model class."""
        raise NotImplementedError

    @classmethod
    def _connection_for(cls, client: SupportsExecute | None = None) -> SupportsExecute:
        """Must be implemented by the Model class."""
        raise NotImplementedError

    @classmethod
    def _cache_schema(cls, schema: Schema) -> None:
        """Must be implemented by the Model class."""
        raise NotImplementedError

    @classmethod
    def get_schema(cls) -> Schema | None:
        """Must be implemented by the Model class."""
        raise NotImplementedError

    # --- Connection and schema resolution ---

    def _client_for(self, client: SupportsExecute | None) -> SupportsExecute:
        return self._connection_for(client if client is not None else self.connection)

    async def _ensure_schema(self, client: SupportsExecute) -> Schema:
        """Return a usable schema, introspecting the table when none is valid."""
        schema = self.get_schema()
        if schema is None or not (schema.loaded or schema.is_valid()):
            schema = await fetch_table_schema(self.get_table_name(), client)
            self._cache_schema(schema)
        schema.loaded = True
        if self._normalized_schema is not schema:
            self._normalize_data(schema)
            self._normalized_schema = schema
        return schema

    # --- Loading ---

    async def load(
        self,
        value: Any = MISSING,
        field: str | None = None,
        *,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model | Literal[False]:
        """
        Fetch the record's row from the database.

        Resolution by argument shape:
            load()                 current primary key values
            load({"id": 16})       column/value mapping
            load(16)               the table's single primary key
            load(16, "id")         the named column

        Returns the record, or False when no row matched.

        Examples:
            user = User(id=16)
            if await user.load():
                print(user.get("name"))
        """

        async def resolve() -> Model | Literal[False]:
            if value is MISSING:
                return await self.load_existing(client=client)
            if isinstance(value, Mapping):
                return await self.load_by_predicate(value, client=client)
            if not _is_scalar(value):
                raise PreconditionError(
                    f"Could not load {self.get_table_name()} record using a "
                    f"{type(value).__name__} value."
                )
            if field is None:
                return await self.load_by_primary_key(value, client=client)
            return await self.load_by_column(field, value, client=client)

        return await run_with_callback(resolve(), callback)

    async def load_existing(self, *, client: SupportsExecute | None = None) -> Model | Literal[False]:
        """Load using the primary key values already set on the record."""
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        if not schema.primaries:
            raise MissingPrimaryKeyError(
                f"Could not load {self.get_table_name()} record using existing data; "
                "table has no primary keys."
            )
        predicate = _primary_key_predicate(self, schema, "load")  # type: ignore[arg-type]
        return await self._load_using(predicate, exec_client)

    async def load_by_predicate(
        self,
        search: Mapping[str, Any],
        *,
        client: SupportsExecute | None = None,
    ) -> Model | Literal[False]:
        """Load the first row matching every column/value pair in ``search``."""
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        if not search:
            raise EmptyPredicateError(
                f"Could not load {self.get_table_name()} record; lookup values were empty."
            )
        predicate = _lookup_predicate(schema, search, self.get_table_name())
        return await self._load_using(predicate, exec_client)

    async def load_by_primary_key(
        self,
        value: Any,
        *,
        client: SupportsExecute | None = None,
    ) -> Model | Literal[False]:
        """Load by the value of the table's only primary key."""
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        if len(schema.primaries) != 1:
            raise AmbiguousPrimaryKeyError(
                f"Could not load {self.get_table_name()} record using a single primary key; "
                f"schema declares {len(schema.primaries)} primary keys."
            )
        key = schema.primaries[0]
        return await self._load_using(
            _lookup_predicate(schema, {key: value}, self.get_table_name()), exec_client
        )

    async def load_by_column(
        self,
        field: str,
        value: Any,
        *,
        client: SupportsExecute | None = None,
    ) -> Model | Literal[False]:
        """Load by the value of any single column."""
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        if field not in schema.columns:
            raise UnknownColumnError(
                f"Could not load {self.get_table_name()} record, "
                f"{field} does not exist in the table schema."
            )
        return await self._load_using(
            _lookup_predicate(schema, {field: value}, self.get_table_name()), exec_client
        )

    async def _load_using(
        self,
        predicate: dict[str, Any],
        client: SupportsExecute,
    ) -> Model | Literal[False]:
        rows = await execute_query(client, build_select_query(self.get_table_name(), predicate))
        if rows:
            self.exists = True
            self.set(dict(rows[0]))
            self.changed = {}
            return self  # type: ignore[return-value]
        self.exists = False
        logger.debug("record.not_found", table=self.get_table_name(), predicate=list(predicate))
        return False

    async def _row_exists(self, client: SupportsExecute, schema: Schema) -> bool:
        # Without primary keys a row cannot be identified, so a record is only
        # known to exist if a previous operation said so. New records insert.
        if not schema.primaries:
            return bool(self.exists)

        predicate: dict[str, Any] = {}
        for key in schema.primaries:
            if not self.has(key):
                self.exists = False
                return False
            column_type = schema.column(key)
            value = self.data[key]
            predicate[key] = column_type.prepare(value) if column_type is not None else value

        query = build_select_query(self.get_table_name(), predicate, schema.primaries)
        rows = await execute_query(client, query)
        self.exists = bool(rows)
        return self.exists

    # --- Writing ---

    async def save(
        self,
        *,
        replace: bool = False,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model:
        """
        Insert or update the record depending on whether its row exists.

        Existence is checked by primary key when not already known. With
        ``replace`` the autoincrement value is dropped and a REPLACE is issued.
        """
        return await run_with_callback(self._save(replace, client), callback)

    async def _save(self, replace: bool, client: SupportsExecute | None) -> Model:
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)

        if replace:
            if schema.autoincrement:
                self.unset(schema.autoincrement)
            return await self._insert(True, exec_client)

        exists = self.exists
        if exists is None:
            exists = await self._row_exists(exec_client, schema)
        if exists:
            return await self._update(None, False, exec_client)
        return await self._insert(False, exec_client)

    async def insert(
        self,
        *,
        replace: bool = False,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model:
        """
        Insert the record as a new row (REPLACE when ``replace`` is set).

        The autoincrement column is only written when replacing. A key
        generated by the database is copied back onto the record.
        """
        return await run_with_callback(self._insert(replace, client), callback)

    async def _insert(self, replace: bool, client: SupportsExecute | None) -> Model:
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        table_name = self.get_table_name()

        # An empty map inserts a row of column defaults.
        values = _dump_write_data(self, schema, replace=replace)  # type: ignore[arg-type]
        result = await execute_query(exec_client, build_insert_query(table_name, values, replace))

        if schema.autoincrement:
            insert_id = extract_insert_id(result)
            if insert_id is not None:
                column_type = schema.column(schema.autoincrement)
                self.data[schema.autoincrement] = (
                    column_type.normalize(insert_id) if column_type is not None else insert_id
                )
                logger.debug("record.inserted", table=table_name, insert_id=insert_id)

        self.exists = True
        self.changed = {}
        return self  # type: ignore[return-value]

    async def update(
        self,
        *,
        using: Mapping[str, Any] | None = None,
        replace: bool = False,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model:
        """
        Write the record's current values to its row.

        The row is identified by the primary key values, or by ``using``
        (column/value pairs passed verbatim) which replaces them entirely.
        An UPDATE without a WHERE constraint is never issued.

        Examples:
            await user.update()
            await user.update(using={"email": "old@example.com"})
        """
        return await run_with_callback(self._update(using, replace, client), callback)

    async def _update(
        self,
        using: Mapping[str, Any] | None,
        replace: bool,
        client: SupportsExecute | None,
    ) -> Model:
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        table_name = self.get_table_name()

        if using is not None:
            predicate = dict(using)
        else:
            predicate = _primary_key_predicate(self, schema, "update")  # type: ignore[arg-type]
        if not predicate:
            raise EmptyPredicateError(
                f"Could not update {table_name} record, no primary keys were available to update against."
            )

        values = _dump_write_data(self, schema, replace=replace)  # type: ignore[arg-type]
        if not values:
            raise EmptyWriteError(f"Could not update {table_name} record, no column values were set.")

        await execute_query(exec_client, build_update_query(table_name, values, predicate))
        self.changed = {}
        return self  # type: ignore[return-value]

    async def delete(
        self,
        *,
        using: Mapping[str, Any] | None = None,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> Model:
        """
        Delete the record's row.

        The row is identified by ``using``, else by the primary key values.
        Tables without primary keys match on every set column. A DELETE
        without a WHERE constraint is never issued. The record stays usable
        afterwards, e.g. for inserting it again.
        """
        return await run_with_callback(self._delete(using, client), callback)

    async def _delete(self, using: Mapping[str, Any] | None, client: SupportsExecute | None) -> Model:
        exec_client = self._client_for(client)
        schema = await self._ensure_schema(exec_client)
        table_name = self.get_table_name()

        if using is not None:
            predicate = dict(using)
        elif schema.primaries:
            predicate = _primary_key_predicate(self, schema, "delete")  # type: ignore[arg-type]
        else:
            predicate = _column_predicate(self, schema)  # type: ignore[arg-type]
        if not predicate:
            raise EmptyPredicateError(
                f"Could not delete {table_name} record, no data was available to delete against."
            )

        await execute_query(exec_client, build_delete_query(table_name, predicate))
        self.exists = False
        logger.debug("record.deleted", table=table_name, predicate=list(predicate))
        return self  # type: ignore[return-value]


__all__ = ["PersistenceMixin"]
