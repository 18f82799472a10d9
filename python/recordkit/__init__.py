"""recordkit: active-record mapping of a single table for async MySQL drivers.

Quick start:

    from recordkit import Model, register_connection

    register_connection(my_connection)

    class User(Model):
        class Meta:
            table_name = "users"

    user = User(name="john")
    await user.save()           # schema discovered with DESCRIBE, then INSERT
    await user.load(user.get("id"))
"""

from recordkit.core.schema import Schema
from recordkit.core.types import (
    BIGINT,
    BINARY,
    BLOB,
    BOOL,
    BOOLEAN,
    CHAR,
    DATE,
    DATETIME,
    DECIMAL,
    DOUBLE,
    ENUM,
    FLOAT,
    INT,
    INTEGER,
    JSON,
    LONGBLOB,
    LONGTEXT,
    MEDIUMBLOB,
    MEDIUMINT,
    MEDIUMTEXT,
    MISSING,
    NUMERIC,
    SET,
    SMALLINT,
    TEXT,
    TIME,
    TIMESTAMP,
    TINYBLOB,
    TINYINT,
    TINYTEXT,
    TYPE_REGISTRY,
    UNKNOWN,
    VARBINARY,
    VARCHAR,
    YEAR,
    ColumnType,
    create_type,
    register_type,
)
from recordkit.db import (
    SupportsExecute,
    WriteResult,
    clear_connections,
    get_connection,
    register_connection,
    unregister_connection,
)
from recordkit.exceptions import (
    AmbiguousPrimaryKeyError,
    ConfigurationError,
    EmptyPredicateError,
    EmptyWriteError,
    MissingPrimaryKeyError,
    PreconditionError,
    RecordKitError,
    UnknownColumnError,
)
from recordkit.models import Model, ModelConfig, define_model
from recordkit.queries import FindQuery

__all__ = [
    # models
    "Model",
    "ModelConfig",
    "define_model",
    "FindQuery",
    # schema and types
    "Schema",
    "ColumnType",
    "MISSING",
    "TYPE_REGISTRY",
    "create_type",
    "register_type",
    "TINYINT",
    "SMALLINT",
    "MEDIUMINT",
    "INT",
    "INTEGER",
    "BIGINT",
    "BOOLEAN",
    "BOOL",
    "DECIMAL",
    "NUMERIC",
    "FLOAT",
    "DOUBLE",
    "CHAR",
    "VARCHAR",
    "TINYTEXT",
    "TEXT",
    "MEDIUMTEXT",
    "LONGTEXT",
    "BINARY",
    "VARBINARY",
    "TINYBLOB",
    "BLOB",
    "MEDIUMBLOB",
    "LONGBLOB",
    "ENUM",
    "SET",
    "DATE",
    "DATETIME",
    "TIMESTAMP",
    "TIME",
    "YEAR",
    "JSON",
    "UNKNOWN",
    # connections
    "SupportsExecute",
    "WriteResult",
    "register_connection",
    "unregister_connection",
    "get_connection",
    "clear_connections",
    # exceptions
    "RecordKitError",
    "ConfigurationError",
    "PreconditionError",
    "MissingPrimaryKeyError",
    "AmbiguousPrimaryKeyError",
    "UnknownColumnError",
    "EmptyPredicateError",
    "EmptyWriteError",
]

__version__ = "0.1.0"
