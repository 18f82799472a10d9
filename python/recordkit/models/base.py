"""Model base class: one subclass per table, one instance per row.

Declaring a model:

    class User(Model):
        class Meta:
            table_name = "users"
            schema = Schema(
                columns={"id": INT(unsigned=True), "email": VARCHAR(255)},
                primaries=["id"],
                autoincrement="id",
            )
            connection = "default"

        def enable(self) -> "User":
            return self.set("enabled", True)

Meta options:
    table_name   required unless abstract
    schema       Schema or mapping; skips introspection when valid
    connection   connection object or registered connection name
    abstract     base class for other models, no table of its own

Models without a declared schema discover it with DESCRIBE on first use and
keep it on the class for the rest of the process.

define_model("users", schema=..., connection=...) builds the same class
without a class statement.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from recordkit.core.introspect import fetch_table_schema
from recordkit.core.schema import Schema
from recordkit.db.executor import CompletionCallback, SupportsExecute, run_with_callback
from recordkit.db.registry import resolve_connection
from recordkit.exceptions import ConfigurationError
from recordkit.models.mixins.attributes import AttributeMixin
from recordkit.models.mixins.persistence import PersistenceMixin
from recordkit.models.utils import _class_name_for, _meta_options
from recordkit.queries.find import FindQuery


class ModelConfig(BaseModel):
    """Validated form of a Model's inner Meta class."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    table_name: str | None = None
    table_schema: Any = Field(default=None, alias="schema")
    connection: Any = None
    abstract: bool = False

    @field_validator("table_name", mode="before")
    @classmethod
    def _check_table_name(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            raise ValueError("table_name must be a string")
        return value

    @field_validator("table_schema", mode="before")
    @classmethod
    def _coerce_schema(cls, value: Any) -> Schema | None:
        try:
            return Schema.coerce(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @model_validator(mode="after")
    def _require_table_name(self) -> ModelConfig:
        if not self.abstract and not self.table_name:
            raise ValueError("table_name must be a non-empty string")
        return self


class Model(AttributeMixin, PersistenceMixin):
    """A record of a single database table.

    Attributes:
        data: stored attribute values keyed by column name
        changed: attributes changed in the latest set() batch
        exists: True/False once known whether the row exists, None before
        connection: record or Model connection known at creation, else None
    """

    _config: ModelConfig = ModelConfig(abstract=True)
    _schema: Schema | None = None

    exists: bool | None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        parent = cls._config
        meta = cls.__dict__.get("Meta")
        if meta is None and not parent.abstract:
            # Plain subclass of a concrete model: same table, same schema.
            return

        options = _meta_options(meta)
        if parent.connection is not None:
            options.setdefault("connection", parent.connection)
        try:
            cls._config = ModelConfig.model_validate(options)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid Meta for model {cls.__name__}: {exc}") from exc
        cls._schema = cls._config.table_schema

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        /,
        *,
        connection: SupportsExecute | str | None = None,
        **attributes: Any,
    ) -> None:
        if self._config.abstract:
            raise ConfigurationError(f"Model {type(self).__name__} is abstract and has no table")
        self._init_attributes()
        self.exists = None
        # The process default is resolved per operation, not captured here.
        self.connection = resolve_connection(
            connection, self._config.connection, required=False, fallback=False
        )
        self._normalized_schema = self.get_schema()

        initial = {**(data or {}), **attributes}
        if initial:
            self.set(initial)
        self.changed = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.data!r}>"

    # --- Model-level configuration ---

    @classmethod
    def get_table_name(cls) -> str:
        return cls._config.table_name or ""

    @classmethod
    def get_schema(cls) -> Schema | None:
        """Return the cached schema, None until declared or discovered."""
        return cls._schema

    def _get_schema(self) -> Schema | None:
        return type(self)._schema

    @classmethod
    def _cache_schema(cls, schema: Schema) -> None:
        cls._schema = schema

    @classmethod
    def _connection_for(cls, client: SupportsExecute | str | None = None) -> SupportsExecute:
        return resolve_connection(client, cls._config.connection)  # type: ignore[return-value]

    @classmethod
    def _from_row(cls, row: Mapping[str, Any], connection: SupportsExecute | None = None) -> Model:
        record = cls(row, connection=connection)
        record.exists = True
        return record

    # --- Model-level operations ---

    @classmethod
    def find(cls, where: Mapping[str, Any] | None = None) -> FindQuery:
        """
        Start a query returning records of this model.

        Examples:
            users = await User.find({"enabled": 1}).all()
        """
        return FindQuery(cls, where)

    @classmethod
    async def load_schema(
        cls,
        *,
        client: SupportsExecute | None = None,
        callback: CompletionCallback | None = None,
    ) -> type[Model]:
        """Discover the table schema now and cache it on the model."""

        async def discover() -> type[Model]:
            schema = await fetch_table_schema(cls.get_table_name(), cls._connection_for(client))
            cls._cache_schema(schema)
            return cls

        return await run_with_callback(discover(), callback)


def define_model(
    table_name: str,
    *,
    schema: Schema | Mapping[str, Any] | None = None,
    connection: SupportsExecute | str | None = None,
    name: str | None = None,
    base: type[Model] = Model,
    **members: Any,
) -> type[Model]:
    """
    Create a Model subclass for ``table_name``.

    Extra keyword arguments become class attributes, e.g. methods.

    Examples:
        User = define_model("users", connection=conn)
        Post = define_model("posts", schema=post_schema, publish=publish_post)
    """
    meta_options: dict[str, Any] = {"table_name": table_name}
    if schema is not None:
        meta_options["schema"] = schema
    if connection is not None:
        meta_options["connection"] = connection
    meta = type("Meta", (), meta_options)
    return type(name or _class_name_for(table_name), (base,), {"Meta": meta, **members})


__all__ = ["Model", "ModelConfig", "define_model"]
