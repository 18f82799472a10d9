"""Exception hierarchy for recordkit.

All recordkit exceptions inherit from RecordKitError, allowing catch-all handling:

    try:
        await user.load()
    except RecordKitError as e:
        print(f"record error: {e}")

Exception hierarchy:
    RecordKitError (base)
    ├── ConfigurationError          - No connection resolvable, bad Model declaration
    └── PreconditionError           - Operation refused before any statement ran
        ├── MissingPrimaryKeyError  - A required primary key value is unset
        ├── AmbiguousPrimaryKeyError - Single-key load against 0 or 2+ primary keys
        ├── UnknownColumnError      - Column name not present in the table schema
        ├── EmptyPredicateError     - UPDATE/DELETE/load without a WHERE constraint
        └── EmptyWriteError         - UPDATE without any column values

Errors raised by the database driver (including schema discovery failures)
are never wrapped; they reach the caller as the driver raised them.
"""

from __future__ import annotations


class RecordKitError(Exception):
    """Base exception for all recordkit errors."""


class ConfigurationError(RecordKitError):
    """Raised when a Model or connection is misconfigured."""


class PreconditionError(RecordKitError):
    """Raised when an operation cannot be performed with the record's current state."""


class MissingPrimaryKeyError(PreconditionError):
    """Raised when a primary key value needed for a lookup is absent."""


class AmbiguousPrimaryKeyError(PreconditionError):
    """Raised when a single-value lookup cannot be mapped to exactly one primary key."""


class UnknownColumnError(PreconditionError):
    """Raised when a column name does not exist in the table schema."""


class EmptyPredicateError(PreconditionError):
    """Raised instead of issuing an unconstrained statement."""


class EmptyWriteError(PreconditionError):
    """Raised when there are no column values to write."""


__all__ = [
    "RecordKitError",
    "ConfigurationError",
    "PreconditionError",
    "MissingPrimaryKeyError",
    "AmbiguousPrimaryKeyError",
    "UnknownColumnError",
    "EmptyPredicateError",
    "EmptyWriteError",
]
