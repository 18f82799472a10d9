"""Attribute storage, dirty tracking and change notification for records."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from recordkit.core.types import MISSING, ColumnType, compare_values

if TYPE_CHECKING:
    from recordkit.core.schema import Schema


class AttributeMixin:
    """Mixin providing get/set/has/unset with change tracking.

    ``data`` holds values in stored form, keyed by column name. An attribute
    that was never set (or was unset) is absent from ``data``; ``None`` is a
    set value meaning SQL NULL.

    ``changed`` maps attribute names to their new value for every attribute
    whose value differs from the one held when the current batch of set()
    calls began. Setting an attribute back to its batch-start value removes it
    from ``changed`` again.

    Listeners:
        add_listener(callback, field="name")  → callback(record, value)
        add_listener(callback)                → callback(record)

    Field listeners run for each attribute whose value actually changed.
    Batch listeners run once the outermost set() call has applied all of its
    attributes. A listener may call set() again; those nested calls extend the
    running batch, and the batch notification is repeated until a round
    produces no further changes. The repetition is a loop on a pending flag,
    so the stack does not grow with the number of rounds.
    """

    data: dict[str, Any]
    changed: dict[str, Any]
    _previous_data: dict[str, Any]
    _changing: bool
    _pending: bool
    _listeners: dict[str | None, list[Callable[..., Any]]]

    def _get_schema(self) -> Schema | None:
        """Must be implemented by the Model class."""
        raise NotImplementedError

    def _init_attributes(self) -> None:
        self.data = {}
        self.changed = {}
        self._previous_data = {}
        self._changing = False
        self._pending = False
        self._listeners = {}

    def _column_type(self, field: str) -> ColumnType | None:
        schema = self._get_schema()
        if schema is None or not schema.columns:
            return None
        return schema.column(field)

    def get(self, field: str, formatted: bool = True) -> Any:
        """Return the value of ``field``, MISSING when it is not set.

        The value is rendered the way the database would render it unless
        ``formatted`` is False or the column has no known type.
        """
        value = self.data.get(field, MISSING)
        if formatted:
            column_type = self._column_type(field)
            if column_type is not None:
                return column_type.format(value)
        return value

    def set(
        self,
        field: str | Mapping[str, Any],
        value: Any = MISSING,
        *,
        silent: bool = False,
        unset: bool = False,
    ):
        """Set one attribute, or many from a mapping.

        Examples:
            record.set("name", "john")
            record.set({"name": "john", "age": 30}, silent=True)
        """
        if not field:
            return self

        if isinstance(field, Mapping):
            attrs = dict(field)
        else:
            attrs = {field: value}

        changes: list[str] = []
        changing = self._changing
        self._changing = True

        try:
            if not changing:
                self._previous_data = dict(self.data)
                self.changed = {}
            current = self.data
            previous = self._previous_data

            for name, raw in attrs.items():
                column_type = self._column_type(name)
                if unset or raw is MISSING:
                    new_value = MISSING
                elif column_type is not None:
                    new_value = column_type.normalize(raw)
                else:
                    new_value = raw

                if not compare_values(current.get(name, MISSING), new_value, column_type):
                    changes.append(name)
                if not compare_values(previous.get(name, MISSING), new_value, column_type):
                    self.changed[name] = new_value
                else:
                    self.changed.pop(name, None)

                if new_value is MISSING:
                    current.pop(name, None)
                else:
                    current[name] = new_value

            if not silent:
                if changes:
                    self._pending = True
                for name in changes:
                    self._notify_field(name, current.get(name, MISSING))

            if changing:
                return self

            if not silent:
                while self._pending:
                    self._pending = False
                    self._notify_batch()
        finally:
            if not changing:
                self._pending = False
                self._changing = False

        return self

    def unset(self, field: str, *, silent: bool = False):
        """Remove an attribute."""
        return self.set(field, MISSING, silent=silent, unset=True)

    def has(self, field: str) -> bool:
        """Return True if ``field`` holds a value (NULL included)."""
        return field in self.data

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the stored data."""
        return dict(self.data)

    def add_listener(self, callback: Callable[..., Any], field: str | None = None) -> None:
        """Register a change listener for one attribute, or for whole batches."""
        self._listeners.setdefault(field, []).append(callback)

    def remove_listener(self, callback: Callable[..., Any], field: str | None = None) -> None:
        """Unregister a listener (no-op if not registered)."""
        listeners = self._listeners.get(field)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def _notify_field(self, field: str, value: Any) -> None:
        for listener in list(self._listeners.get(field, ())):
            listener(self, value)

    def _notify_batch(self) -> None:
        for listener in list(self._listeners.get(None, ())):
            listener(self)

    def _normalize_data(self, schema: Schema) -> None:
        """Bring already stored values into the schema's stored form, silently."""
        for store in (self.data, self.changed):
            for name, value in store.items():
                column_type = schema.column(name)
                if column_type is not None:
                    store[name] = column_type.normalize(value)


__all__ = ["AttributeMixin"]
