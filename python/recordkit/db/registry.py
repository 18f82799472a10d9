"""Process-wide registry of named connections.

The connection registered as "default" is the last fallback when neither a
call, a record nor its Model supplies one:

    register_connection(conn)                    # process-wide default
    register_connection(reporting, "reporting")  # reachable by name

    class Report(Model):
        class Meta:
            table_name = "reports"
            connection = "reporting"

resolve_connection() walks candidates in precedence order (call override →
record → Model) and falls back to the default. Candidates may be connection
objects or registered names.
"""

from __future__ import annotations

from typing import Any

from recordkit.db.executor import SupportsExecute
from recordkit.exceptions import ConfigurationError

DEFAULT_CONNECTION = "default"

_CONNECTIONS: dict[str, SupportsExecute] = {}


def register_connection(
    connection: SupportsExecute,
    name: str = DEFAULT_CONNECTION,
    *,
    overwrite: bool = True,
) -> None:
    """Register ``connection`` under ``name``."""
    existing = _CONNECTIONS.get(name)
    if existing is connection:
        return
    if existing is not None and not overwrite:
        raise ValueError(f"Connection '{name}' is already registered")
    _CONNECTIONS[name] = connection


def unregister_connection(name: str = DEFAULT_CONNECTION) -> None:
    """Remove a named connection if present."""
    _CONNECTIONS.pop(name, None)


def get_connection(name: str = DEFAULT_CONNECTION) -> SupportsExecute | None:
    """Return the connection registered under ``name``, or None."""
    return _CONNECTIONS.get(name)


def clear_connections() -> None:
    """Reset the registry (intended for tests)."""
    _CONNECTIONS.clear()


def _lookup(candidate: Any, strict: bool) -> SupportsExecute | None:
    if isinstance(candidate, str):
        connection = _CONNECTIONS.get(candidate)
        if connection is None and strict:
            raise ConfigurationError(f"Connection '{candidate}' is not registered")
        return connection
    return candidate


def resolve_connection(
    *candidates: Any,
    required: bool = True,
    fallback: bool = True,
) -> SupportsExecute | None:
    """Return the first non-empty candidate, then the process-wide default.

    Raises ConfigurationError when nothing resolves, or a named candidate is
    not registered, and ``required`` is set. Without ``required`` unregistered
    names are skipped. With ``fallback`` off the default is not consulted.
    """
    for candidate in candidates:
        if candidate is None:
            continue
        connection = _lookup(candidate, required)
        if connection is not None:
            return connection
    if not fallback:
        return None
    connection = _CONNECTIONS.get(DEFAULT_CONNECTION)
    if connection is None and required:
        raise ConfigurationError(
            "No database connection available: pass client=, set Meta.connection "
            "or register a default connection."
        )
    return connection


__all__ = [
    "DEFAULT_CONNECTION",
    "register_connection",
    "unregister_connection",
    "get_connection",
    "clear_connections",
    "resolve_connection",
]
