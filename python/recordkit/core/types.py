"""Column type registry for recordkit.

Every supported SQL column kind is a frozen dataclass variant of ColumnType.
A variant knows four things about its values:

    normalize(raw)    raw input / driver value  →  stored (in-memory) form
    format(stored)    stored form               →  value as the database renders it
    prepare(stored)   stored form               →  bound query parameter
    compare(a, b)     type-aware equality of two values

MISSING (attribute not set) and None (SQL NULL) pass through all conversions
untouched. Values that cannot be coerced are kept as given; the database is
the final judge of what it accepts.

TYPE_REGISTRY maps upper-case SQL type names to factories. Schemas can be
declared inline with the module-level factories:

    columns = {
        "id": INT(unsigned=True),
        "price": DECIMAL(10, 2),
        "status": ENUM("draft", "published"),
        "created": DATETIME(),
    }

Custom kinds are added with register_type(); create_type() resolves a name
case-insensitively and falls back to UNKNOWN so introspection never fails on
an unfamiliar column type.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from functools import partial
from typing import Any


class _MissingType:
    """Marker for an attribute that has never been set (distinct from NULL)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _MissingType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _MissingType:
        return self


MISSING: Any = _MissingType()


def _is_empty(value: Any) -> bool:
    return value is MISSING or value is None


def _to_decimal(value: Any) -> Decimal | None:
    """Coerce numbers and numeric strings to Decimal, None if not numeric."""
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        number = Decimal(repr(value))
    elif isinstance(value, (str, bytes)):
        try:
            text = value.decode() if isinstance(value, bytes) else value
            number = Decimal(text.strip())
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    return number if number.is_finite() else None


_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y%m%d%H%M%S",
    "%Y%m%d",
)

_TIME_RE = re.compile(r"^(-)?(\d+):(\d{1,2})(?::(\d{1,2})(?:\.(\d{1,6}))?)?$")


def _parse_datetime(text: str) -> datetime | None:
    """Parse a database datetime string. Zero dates become None.

    Raises ValueError when the text is not a recognisable datetime.
    """
    text = text.strip()
    if text.startswith("0000-00-00"):
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognised datetime value: {text!r}")


def _format_timedelta(value: timedelta, precision: int | None) -> str:
    total = value.days * 86400 + value.seconds
    micros = value.microseconds
    sign = ""
    if total < 0:
        sign = "-"
        total = -total
        if micros:
            total -= 1
            micros = 1_000_000 - micros
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    rendered = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if precision:
        rendered += f".{micros:06d}"[: precision + 1]
    return rendered


@dataclass(frozen=True, slots=True)
class ColumnType:
    """Base descriptor: identity conversions and equality comparison."""

    name: str
    null: bool = field(default=True, kw_only=True)

    def normalize(self, value: Any) -> Any:
        if _is_empty(value):
            return value
        return self._normalize(value)

    def format(self, value: Any) -> Any:
        if _is_empty(value):
            return value
        return self._format(value)

    def prepare(self, value: Any) -> Any:
        if _is_empty(value):
            return None
        return self._prepare(value)

    def compare(self, a: Any, b: Any) -> bool:
        if _is_empty(a) or _is_empty(b):
            return a is b
        return self.normalize(a) == self.normalize(b)

    def _normalize(self, value: Any) -> Any:
        return value

    def _format(self, value: Any) -> Any:
        return value

    def _prepare(self, value: Any) -> Any:
        return value


@dataclass(frozen=True, slots=True)
class IntegerType(ColumnType):
    size: int | None = None
    unsigned: bool = False
    zerofill: bool = False

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        number = _to_decimal(value)
        if number is None:
            return value
        return int(number.to_integral_value(rounding=ROUND_HALF_UP))

    def _format(self, value: Any) -> Any:
        if self.zerofill and self.size and isinstance(value, int):
            return str(value).zfill(self.size)
        return value


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on", "y", "t"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", "n", "f", ""})


@dataclass(frozen=True, slots=True)
class BooleanType(ColumnType):
    def _normalize(self, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, Decimal, float)):
            return bool(value)
        if isinstance(value, bytes) and len(value) == 1:
            return value != b"\x00" and value != b"0"
        if isinstance(value, (str, bytes)):
            text = (value.decode() if isinstance(value, bytes) else value).strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        return value

    def _prepare(self, value: Any) -> Any:
        return int(value) if isinstance(value, bool) else value


@dataclass(frozen=True, slots=True)
class DecimalType(ColumnType):
    size: int | None = None
    precision: int | None = None
    unsigned: bool = False
    zerofill: bool = False

    def _normalize(self, value: Any) -> Any:
        number = _to_decimal(value)
        if number is None:
            return value
        if self.precision is not None:
            # MySQL allows up to 65 digits; the default context holds 28.
            with localcontext() as context:
                context.prec = max(self.size or 0, 28) + self.precision
                try:
                    number = number.quantize(
                        Decimal(1).scaleb(-self.precision), rounding=ROUND_HALF_UP
                    )
                except InvalidOperation:
                    return value
        return number

    def _format(self, value: Any) -> Any:
        if not isinstance(value, Decimal):
            return value
        rendered = f"{value:.{self.precision}f}" if self.precision is not None else str(value)
        if self.zerofill and self.size:
            rendered = rendered.zfill(self.size + (1 if self.precision else 0))
        return rendered

    def _prepare(self, value: Any) -> Any:
        return str(value) if isinstance(value, Decimal) else value


@dataclass(frozen=True, slots=True)
class FloatType(ColumnType):
    size: int | None = None
    precision: int | None = None
    unsigned: bool = False
    zerofill: bool = False

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, float):
            return value
        number = _to_decimal(value)
        return float(number) if number is not None else value

    def _format(self, value: Any) -> Any:
        if self.precision is not None and isinstance(value, float):
            return round(value, self.precision)
        return value


@dataclass(frozen=True, slots=True)
class StringType(ColumnType):
    size: int | None = None

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, str):
            return value
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M:%S")
        if isinstance(value, (int, float, Decimal, date)):
            return str(value)
        return value

    def _format(self, value: Any) -> Any:
        if self.size and isinstance(value, str):
            return value[: self.size]
        return value


@dataclass(frozen=True, slots=True)
class BinaryType(ColumnType):
    size: int | None = None

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, str):
            return value.encode("utf-8")
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
        return value


@dataclass(frozen=True, slots=True)
class EnumType(ColumnType):
    options: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        # MySQL addresses enum members by 1-based index as well as by label.
        if isinstance(value, int) and not isinstance(value, bool):
            if 1 <= value <= len(self.options):
                return self.options[value - 1]
        return value

    def _format(self, value: Any) -> Any:
        if self.options and value not in self.options:
            return ""
        return value


@dataclass(frozen=True, slots=True)
class SetType(ColumnType):
    options: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8", errors="replace")
        if isinstance(value, str):
            return frozenset(part for part in value.split(",") if part)
        if isinstance(value, Iterable):
            return frozenset(str(part) for part in value)
        return value

    def _format(self, value: Any) -> Any:
        if not isinstance(value, frozenset):
            return value
        if self.options:
            return ",".join(option for option in self.options if option in value)
        return ",".join(sorted(value))

    def _prepare(self, value: Any) -> Any:
        return self._format(value)


@dataclass(frozen=True, slots=True)
class DateType(ColumnType):
    def _normalize(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, (str, bytes)):
            text = value.decode() if isinstance(value, bytes) else value
            try:
                parsed = _parse_datetime(text)
            except ValueError:
                return value
            return parsed.date() if parsed is not None else None
        return value

    def _format(self, value: Any) -> Any:
        return value.isoformat() if isinstance(value, date) else value

    def _prepare(self, value: Any) -> Any:
        return self._format(value)


@dataclass(frozen=True, slots=True)
class DateTimeType(ColumnType):
    precision: int | None = None

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value)
        if isinstance(value, (str, bytes)):
            text = value.decode() if isinstance(value, bytes) else value
            try:
                return _parse_datetime(text)
            except ValueError:
                return value
        return value

    def _format(self, value: Any) -> Any:
        if not isinstance(value, datetime):
            return value
        rendered = value.strftime("%Y-%m-%d %H:%M:%S")
        if self.precision:
            rendered += f".{value.microsecond:06d}"[: self.precision + 1]
        return rendered

    def _prepare(self, value: Any) -> Any:
        return self._format(value)


@dataclass(frozen=True, slots=True)
class TimeType(ColumnType):
    precision: int | None = None

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value
        if isinstance(value, time):
            return timedelta(
                hours=value.hour,
                minutes=value.minute,
                seconds=value.second,
                microseconds=value.microsecond,
            )
        if isinstance(value, datetime):
            return self._normalize(value.time())
        if isinstance(value, (str, bytes)):
            text = (value.decode() if isinstance(value, bytes) else value).strip()
            match = _TIME_RE.match(text)
            if not match:
                return value
            sign, hours, minutes, seconds, fraction = match.groups()
            delta = timedelta(
                hours=int(hours),
                minutes=int(minutes),
                seconds=int(seconds or 0),
                microseconds=int((fraction or "0").ljust(6, "0")),
            )
            return -delta if sign else delta
        return value

    def _format(self, value: Any) -> Any:
        if isinstance(value, timedelta):
            return _format_timedelta(value, self.precision)
        return value

    def _prepare(self, value: Any) -> Any:
        return self._format(value)


@dataclass(frozen=True, slots=True)
class YearType(ColumnType):
    size: int | None = None

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, date):
            return value.year
        two_digit = isinstance(value, str) and len(value.strip()) <= 2
        number = _to_decimal(value)
        if number is None:
            return value
        year = int(number)
        if two_digit or 0 < year < 100:
            year += 2000 if year < 70 else 1900
        return year


@dataclass(frozen=True, slots=True)
class JsonType(ColumnType):
    """JSON document column.

    Drivers return JSON columns as text, so every string that parses as JSON
    is decoded: set("doc", "123") stores the number 123. Store a JSON string
    value as its encoded form, e.g. set("doc", '"123"').
    """

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, (str, bytes, bytearray)):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value

    def _prepare(self, value: Any) -> Any:
        return json.dumps(value)


@dataclass(frozen=True, slots=True)
class UnknownType(ColumnType):
    """Fallback for column types the registry does not recognise."""

    declared: str | None = None


TINYINT = partial(IntegerType, "TINYINT")
SMALLINT = partial(IntegerType, "SMALLINT")
MEDIUMINT = partial(IntegerType, "MEDIUMINT")
INT = partial(IntegerType, "INT")
INTEGER = partial(IntegerType, "INTEGER")
BIGINT = partial(IntegerType, "BIGINT")
BOOLEAN = partial(BooleanType, "BOOLEAN")
BOOL = partial(BooleanType, "BOOL")
DECIMAL = partial(DecimalType, "DECIMAL")
NUMERIC = partial(DecimalType, "NUMERIC")
FLOAT = partial(FloatType, "FLOAT")
DOUBLE = partial(FloatType, "DOUBLE")
CHAR = partial(StringType, "CHAR")
VARCHAR = partial(StringType, "VARCHAR")
TINYTEXT = partial(StringType, "TINYTEXT", 255)
TEXT = partial(StringType, "TEXT", 65535)
MEDIUMTEXT = partial(StringType, "MEDIUMTEXT", 16777215)
LONGTEXT = partial(StringType, "LONGTEXT", 4294967295)
BINARY = partial(BinaryType, "BINARY")
VARBINARY = partial(BinaryType, "VARBINARY")
TINYBLOB = partial(BinaryType, "TINYBLOB", 255)
BLOB = partial(BinaryType, "BLOB", 65535)
MEDIUMBLOB = partial(BinaryType, "MEDIUMBLOB", 16777215)
LONGBLOB = partial(BinaryType, "LONGBLOB", 4294967295)
DATE = partial(DateType, "DATE")
DATETIME = partial(DateTimeType, "DATETIME")
TIMESTAMP = partial(DateTimeType, "TIMESTAMP")
TIME = partial(TimeType, "TIME")
YEAR = partial(YearType, "YEAR")
JSON = partial(JsonType, "JSON")
UNKNOWN = partial(UnknownType, "UNKNOWN")


def ENUM(*options: str, **attrs: Any) -> EnumType:
    """Build an ENUM descriptor: ENUM("draft", "published")."""
    if options:
        attrs["options"] = tuple(options)
    return EnumType("ENUM", **attrs)


def SET(*options: str, **attrs: Any) -> SetType:
    """Build a SET descriptor: SET("red", "green", "blue")."""
    if options:
        attrs["options"] = tuple(options)
    return SetType("SET", **attrs)


TypeFactory = Callable[..., ColumnType]

TYPE_REGISTRY: dict[str, TypeFactory] = {
    "TINYINT": TINYINT,
    "SMALLINT": SMALLINT,
    "MEDIUMINT": MEDIUMINT,
    "INT": INT,
    "INTEGER": INTEGER,
    "BIGINT": BIGINT,
    "BOOLEAN": BOOLEAN,
    "BOOL": BOOL,
    "DECIMAL": DECIMAL,
    "NUMERIC": NUMERIC,
    "FLOAT": FLOAT,
    "DOUBLE": DOUBLE,
    "CHAR": CHAR,
    "VARCHAR": VARCHAR,
    "TINYTEXT": TINYTEXT,
    "TEXT": TEXT,
    "MEDIUMTEXT": MEDIUMTEXT,
    "LONGTEXT": LONGTEXT,
    "BINARY": BINARY,
    "VARBINARY": VARBINARY,
    "TINYBLOB": TINYBLOB,
    "BLOB": BLOB,
    "MEDIUMBLOB": MEDIUMBLOB,
    "LONGBLOB": LONGBLOB,
    "ENUM": ENUM,
    "SET": SET,
    "DATE": DATE,
    "DATETIME": DATETIME,
    "TIMESTAMP": TIMESTAMP,
    "TIME": TIME,
    "YEAR": YEAR,
    "JSON": JSON,
    "UNKNOWN": UNKNOWN,
}


def register_type(name: str, factory: TypeFactory, *, overwrite: bool = False) -> None:
    """Register a factory for a custom column type name."""
    key = name.upper()
    if key in TYPE_REGISTRY and not overwrite:
        raise ValueError(f"Column type '{key}' is already registered")
    TYPE_REGISTRY[key] = factory


def unregister_type(name: str) -> None:
    """Remove a type from the registry (no-op if not registered)."""
    TYPE_REGISTRY.pop(name.upper(), None)


def create_type(name: str, **attrs: Any) -> ColumnType:
    """Instantiate the descriptor registered under ``name``.

    Unregistered names produce an UnknownType that remembers the declared name.
    """
    key = name.upper()
    factory = TYPE_REGISTRY.get(key)
    if factory is None:
        return UnknownType("UNKNOWN", declared=key, null=attrs.get("null", True))
    return factory(**attrs)


def compare_values(a: Any, b: Any, column_type: ColumnType | None = None) -> bool:
    """Compare two values, type-aware when a descriptor is known."""
    if column_type is not None:
        return column_type.compare(a, b)
    if a is b:
        return True
    if _is_empty(a) or _is_empty(b):
        return False
    return a == b


__all__ = [
    "MISSING",
    "ColumnType",
    "IntegerType",
    "BooleanType",
    "DecimalType",
    "FloatType",
    "StringType",
    "BinaryType",
    "EnumType",
    "SetType",
    "DateType",
    "DateTimeType",
    "TimeType",
    "YearType",
    "JsonType",
    "UnknownType",
    "TYPE_REGISTRY",
    "TypeFactory",
    "register_type",
    "unregister_type",
    "create_type",
    "compare_values",
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
]
