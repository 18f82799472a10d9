"""Database collaborator interface and connection registry."""

from recordkit.db.executor import (
    CompletionCallback,
    SupportsExecute,
    WriteResult,
    execute_query,
    extract_insert_id,
    run_with_callback,
)
from recordkit.db.registry import (
    DEFAULT_CONNECTION,
    clear_connections,
    get_connection,
    register_connection,
    resolve_connection,
    unregister_connection,
)

__all__ = [
    "CompletionCallback",
    "SupportsExecute",
    "run_with_callback",
    "WriteResult",
    "execute_query",
    "extract_insert_id",
    "DEFAULT_CONNECTION",
    "register_connection",
    "unregister_connection",
    "get_connection",
    "clear_connections",
    "resolve_connection",
]
