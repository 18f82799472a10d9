"""Tests for schema discovery from DESCRIBE rows."""

from __future__ import annotations

from typing import Any

import pytest

from recordkit.core.introspect import (
    ColumnDescription,
    fetch_table_schema,
    parse_column,
    parse_describe_rows,
)
from recordkit.core.types import (
    DateTimeType,
    DecimalType,
    EnumType,
    FloatType,
    IntegerType,
    StringType,
    UnknownType,
    YearType,
    register_type,
    unregister_type,
)


class StubExecuteClient:
    """Stub client for testing - records statements, returns canned payloads."""

    def __init__(self, payloads: list):
        self.payloads = list(payloads)
        self.calls: list[tuple[str, list[Any]]] = []

    async def execute(self, sql: str, params: list[Any]) -> Any:
        self.calls.append((sql, list(params)))
        if not self.payloads:
            raise RuntimeError("stub payloads exhausted")
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return payload


def describe(field: str, type_: str, null: str = "YES", key: str = "", extra: str = "") -> dict:
    return {"Field": field, "Type": type_, "Null": null, "Key": key, "Default": None, "Extra": extra}


USERS_DESCRIBE = [
    describe("id", "int(10) unsigned", null="NO", key="PRI", extra="auto_increment"),
    describe("name", "varchar(255)"),
    describe("price", "decimal(10,2)"),
    describe("status", "enum('draft','it''s live','a,b')", null="NO"),
    describe("created", "datetime(3)"),
    describe("updated", "timestamp", extra="DEFAULT_GENERATED on update CURRENT_TIMESTAMP"),
    describe("shape", "geometry"),
]


def column_for(type_: str, null: str = "YES"):
    return parse_column(ColumnDescription.model_validate(describe("c", type_, null=null)))


class TestColumnDescription:
    def test_reads_describe_keys(self):
        description = ColumnDescription.model_validate(USERS_DESCRIBE[0])
        assert description.name == "id"
        assert description.null is False
        assert description.is_primary is True
        assert description.is_autoincrement is True

    def test_accepts_lowercase_keys_and_bytes(self):
        description = ColumnDescription.model_validate(
            {"field": "name", "type": b"varchar(10)", "null": b"YES", "key": None, "extra": None}
        )
        assert description.type == "varchar(10)"
        assert description.null is True
        assert description.is_primary is False
        assert description.is_autoincrement is False


class TestParseColumn:
    def test_integer_with_size_and_unsigned(self):
        column_type = column_for("int(10) unsigned", null="NO")
        assert isinstance(column_type, IntegerType)
        assert column_type.name == "INT"
        assert column_type.size == 10
        assert column_type.unsigned is True
        assert column_type.null is False

    def test_integer_without_display_width(self):
        column_type = column_for("bigint unsigned zerofill")
        assert isinstance(column_type, IntegerType)
        assert column_type.name == "BIGINT"
        assert column_type.unsigned is True
        assert column_type.zerofill is True

    def test_decimal_size_and_precision(self):
        column_type = column_for("decimal(10,2)")
        assert isinstance(column_type, DecimalType)
        assert (column_type.size, column_type.precision) == (10, 2)

    def test_double_without_arguments(self):
        assert isinstance(column_for("double"), FloatType)

    def test_enum_options_with_quotes_and_commas(self):
        column_type = column_for("enum('draft','it''s live','a,b')")
        assert isinstance(column_type, EnumType)
        assert column_type.options == ("draft", "it's live", "a,b")

    def test_uppercase_type_string(self):
        column_type = column_for("ENUM('A','B')")
        assert isinstance(column_type, EnumType)
        assert column_type.options == ("A", "B")

    def test_varchar_size(self):
        column_type = column_for("varchar(255)")
        assert isinstance(column_type, StringType)
        assert column_type.name == "VARCHAR"
        assert column_type.size == 255

    def test_datetime_fractional_precision(self):
        column_type = column_for("datetime(3)")
        assert isinstance(column_type, DateTimeType)
        assert column_type.precision == 3

    def test_timestamp_is_datetime(self):
        column_type = column_for("timestamp")
        assert isinstance(column_type, DateTimeType)
        assert column_type.name == "TIMESTAMP"

    def test_year_display_width_is_ignored(self):
        assert isinstance(column_for("year(4)"), YearType)

    def test_text_uses_registry(self):
        column_type = column_for("text")
        assert isinstance(column_type, StringType)
        assert column_type.name == "TEXT"

    def test_unknown_type(self):
        column_type = column_for("geometry")
        assert isinstance(column_type, UnknownType)
        assert column_type.declared == "GEOMETRY"

    def test_custom_type_by_bare_name(self):
        register_type("inet6", lambda null=True: UnknownType("INET6", null=null))
        try:
            assert column_for("inet6").name == "INET6"
            assert column_for("inet6(16)").name == "INET6"
        finally:
            unregister_type("inet6")

    def test_custom_type_rejecting_attributes_falls_back_to_unknown(self):
        register_type("myint", lambda null=True: UnknownType("MYINT", null=null))
        try:
            column_type = column_for("myint unsigned")
            assert isinstance(column_type, UnknownType)
            assert column_type.name == "UNKNOWN"
        finally:
            unregister_type("myint")


class TestParseDescribeRows:
    def test_builds_loaded_schema(self):
        schema = parse_describe_rows(USERS_DESCRIBE)
        assert schema.loaded is True
        assert list(schema.columns) == [
            "id",
            "name",
            "price",
            "status",
            "created",
            "updated",
            "shape",
        ]
        assert schema.primaries == ["id"]
        assert schema.autoincrement == "id"

    def test_composite_primary_key_keeps_column_order(self):
        schema = parse_describe_rows(
            [
                describe("tenant_id", "int(11)", null="NO", key="PRI"),
                describe("user_id", "int(11)", null="NO", key="PRI"),
                describe("role", "varchar(20)", key="MUL"),
            ]
        )
        assert schema.primaries == ["tenant_id", "user_id"]
        assert schema.autoincrement is None

    def test_table_without_primary_key(self):
        schema = parse_describe_rows([describe("message", "text")])
        assert schema.primaries == []
        assert schema.is_valid() is True


class TestFetchTableSchema:
    @pytest.mark.asyncio
    async def test_issues_describe(self):
        client = StubExecuteClient([USERS_DESCRIBE])
        schema = await fetch_table_schema("users", client)
        assert client.calls == [("DESCRIBE `users`", [])]
        assert schema.primaries == ["id"]

    @pytest.mark.asyncio
    async def test_driver_error_propagates(self):
        client = StubExecuteClient([RuntimeError("table does not exist")])
        with pytest.raises(RuntimeError, match="table does not exist"):
            await fetch_table_schema("missing", client)
