"""Tests for Model declaration, connection resolution and model-level queries."""

from __future__ import annotations

from typing import Any

import pytest

from recordkit import (
    INT,
    VARCHAR,
    Model,
    Schema,
    WriteResult,
    clear_connections,
    define_model,
    get_connection,
    register_connection,
    unregister_connection,
)
from recordkit.db.registry import resolve_connection
from recordkit.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def cleanup_connections():
    """Clean up connection registry before and after each test."""
    clear_connections()
    yield
    clear_connections()


class StubExecuteClient:
    """Stub client for testing - records statements, returns canned payloads."""

    def __init__(self, payloads: list | None = None):
        self.payloads = list(payloads or [])
        self.calls: list[tuple[str, list[Any]]] = []

    async def execute(self, sql: str, params: list[Any]) -> Any:
        self.calls.append((" ".join(sql.split()), list(params)))
        if not self.payloads:
            raise RuntimeError("stub payloads exhausted")
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return payload


ARTICLE_SCHEMA = Schema(
    columns={"id": INT(), "title": VARCHAR(100), "author_id": INT()},
    primaries=["id"],
    autoincrement="id",
)


class Article(Model):
    class Meta:
        table_name = "articles"
        schema = ARTICLE_SCHEMA

    def publish(self) -> Article:
        return self.set("status", "published")


class TestModelDeclaration:
    """Test Meta validation and inheritance."""

    def test_table_name_and_schema(self):
        assert Article.get_table_name() == "articles"
        assert Article.get_schema() is ARTICLE_SCHEMA
        assert ARTICLE_SCHEMA.loaded is True

    def test_custom_methods(self):
        article = Article()
        assert article.publish() is article
        assert article.get("status") == "published"

    def test_missing_table_name_is_rejected(self):
        with pytest.raises(ConfigurationError):

            class Broken(Model):
                pass

    def test_empty_table_name_is_rejected(self):
        with pytest.raises(ConfigurationError):
            define_model("")

    def test_unknown_meta_option_is_rejected(self):
        with pytest.raises(ConfigurationError):

            class Broken(Model):
                class Meta:
                    table_name = "broken"
                    primary_key = "id"

    def test_unsupported_schema_declaration_is_rejected(self):
        with pytest.raises(ConfigurationError):
            define_model("broken", schema=["id"])

    def test_abstract_base_shares_connection(self):
        conn = StubExecuteClient()

        class Base(Model):
            class Meta:
                abstract = True
                connection = conn

        class Post(Base):
            class Meta:
                table_name = "posts"

        assert Post._config.connection is conn
        assert Post().connection is conn
        with pytest.raises(ConfigurationError):
            Base()

    def test_subclass_without_meta_reuses_table(self):
        class FeaturedArticle(Article):
            pass

        assert FeaturedArticle.get_table_name() == "articles"
        assert FeaturedArticle.get_schema() is ARTICLE_SCHEMA
        assert isinstance(FeaturedArticle(title="x"), Article)

    def test_repr(self):
        assert repr(Article(id=1)) == "<Article {'id': 1}>"


class TestDefineModel:
    def test_class_name_from_table(self):
        UserAccounts = define_model("user_accounts")
        assert UserAccounts.__name__ == "UserAccounts"
        assert UserAccounts.get_table_name() == "user_accounts"
        assert UserAccounts.get_schema() is None

    def test_explicit_name_and_members(self):
        def shout(self):
            return str(self.get("title")).upper()

        Note = define_model("notes", name="Note", schema=ARTICLE_SCHEMA, shout=shout)
        assert Note.__name__ == "Note"
        assert Note(title="hi").shout() == "HI"

    def test_schema_mapping(self):
        Tag = define_model("tags", schema={"columns": {"id": INT()}, "primaries": ["id"]})
        schema = Tag.get_schema()
        assert isinstance(schema, Schema)
        assert schema.loaded is True
        assert schema.autoincrement is None


class TestConnectionRegistry:
    def test_register_and_get(self):
        conn = StubExecuteClient()
        register_connection(conn)
        assert get_connection() is conn
        unregister_connection()
        assert get_connection() is None

    def test_register_without_overwrite(self):
        register_connection(StubExecuteClient(), "reporting")
        with pytest.raises(ValueError):
            register_connection(StubExecuteClient(), "reporting", overwrite=False)

    def test_resolve_skips_empty_candidates(self):
        default = StubExecuteClient()
        named = StubExecuteClient()
        register_connection(default)
        register_connection(named, "reporting")
        assert resolve_connection(None, "reporting") is named
        assert resolve_connection(None, None) is default

    def test_resolve_without_any_connection(self):
        with pytest.raises(ConfigurationError):
            resolve_connection(None)
        assert resolve_connection(None, required=False) is None

    def test_resolve_without_fallback_ignores_default(self):
        register_connection(StubExecuteClient())
        assert resolve_connection(None, "reporting", required=False, fallback=False) is None

    def test_resolve_unregistered_name(self):
        with pytest.raises(ConfigurationError, match="reporting"):
            resolve_connection("reporting")


class TestConnectionPrecedence:
    """Call override → record → Model → process-wide default."""

    @pytest.fixture
    def connections(self):
        conns = {name: StubExecuteClient([[]]) for name in ("call", "record", "model", "default")}
        register_connection(conns["default"])
        register_connection(conns["model"], "reporting")
        return conns

    @staticmethod
    def used(conns: dict[str, StubExecuteClient]) -> list[str]:
        return [name for name, conn in conns.items() if conn.calls]

    @pytest.mark.asyncio
    async def test_call_override_wins(self, connections):
        Report = define_model("reports", schema=ARTICLE_SCHEMA, connection="reporting")
        report = Report(id=1, connection=connections["record"])
        await report.load(client=connections["call"])
        assert self.used(connections) == ["call"]

    @pytest.mark.asyncio
    async def test_record_connection(self, connections):
        Report = define_model("reports", schema=ARTICLE_SCHEMA, connection="reporting")
        await Report(id=1, connection=connections["record"]).load()
        assert self.used(connections) == ["record"]

    @pytest.mark.asyncio
    async def test_model_connection_by_name(self, connections):
        Report = define_model("reports", schema=ARTICLE_SCHEMA, connection="reporting")
        await Report(id=1).load()
        assert self.used(connections) == ["model"]

    @pytest.mark.asyncio
    async def test_default_connection(self, connections):
        await Article(id=1).load()
        assert self.used(connections) == ["default"]

    @pytest.mark.asyncio
    async def test_default_registered_after_record_creation(self):
        article = Article(id=1)
        conn = StubExecuteClient([[]])
        register_connection(conn)
        await article.load()
        assert len(conn.calls) == 1

    @pytest.mark.asyncio
    async def test_model_connection_registered_after_record_creation(self):
        default = StubExecuteClient([[]])
        reporting = StubExecuteClient([[]])
        register_connection(default)
        Report = define_model("reports", schema=ARTICLE_SCHEMA, connection="reporting")
        report = Report(id=1)
        register_connection(reporting, "reporting")

        await report.load()

        assert report.connection is None
        assert len(reporting.calls) == 1
        assert default.calls == []

    @pytest.mark.asyncio
    async def test_no_connection_available(self):
        with pytest.raises(ConfigurationError):
            await Article(id=1).load()

    @pytest.mark.asyncio
    async def test_model_connection_name_not_registered(self):
        Report = define_model("reports", schema=ARTICLE_SCHEMA, connection="reporting")
        with pytest.raises(ConfigurationError, match="reporting"):
            await Report(id=1).load()


class TestFind:
    """Test Model.find() queries."""

    def test_query_is_immutable(self):
        base = Article.find({"author_id": 1})
        ordered = base.order_by("-id")
        limited = ordered.limit(5)
        assert " ".join(base.to_query().sql.split()) == (
            "SELECT * FROM articles WHERE articles.author_id = ?"
        )
        assert " ".join(limited.to_query().sql.split()) == (
            "SELECT * FROM articles WHERE articles.author_id = ? ORDER BY articles.id DESC LIMIT 5"
        )

    def test_list_condition_matches_any_value(self):
        query = Article.find({"id": [1, 2, 3]}).where(author_id=4).to_query()
        assert " ".join(query.sql.split()) == (
            "SELECT * FROM articles WHERE articles.id IN (?, ?, ?) AND articles.author_id = ?"
        )
        assert query.params == [1, 2, 3, 4]

    def test_where_merges_conditions(self):
        query = Article.find({"author_id": 1}).where({"author_id": 2}, title="x").to_query()
        assert query.params == [2, "x"]

    @pytest.mark.asyncio
    async def test_all_returns_existing_records(self):
        client = StubExecuteClient([[{"id": 1, "title": "a"}, {"id": "2", "title": "b"}]])

        articles = await Article.find({"author_id": 1}).all(client=client)

        assert [article.get("id") for article in articles] == [1, 2]
        assert all(isinstance(article, Article) for article in articles)
        assert all(article.exists is True for article in articles)
        assert all(article.changed == {} for article in articles)
        assert all(article.connection is client for article in articles)

    @pytest.mark.asyncio
    async def test_first(self):
        client = StubExecuteClient([[{"id": 1, "title": "a"}], []])

        first = await Article.find().order_by("id").first(client=client)
        missing = await Article.find({"id": 99}).first(client=client)

        assert first.get("title") == "a"
        assert missing is None
        assert client.calls[0] == ("SELECT * FROM articles ORDER BY articles.id LIMIT 1", [])

    @pytest.mark.asyncio
    async def test_callback(self):
        seen = []
        client = StubExecuteClient([[]])
        await Article.find().all(client=client, callback=lambda *args: seen.append(args))
        assert seen == [(None, [])]

    @pytest.mark.asyncio
    async def test_uses_default_connection(self):
        conn = StubExecuteClient([[]])
        register_connection(conn)
        assert await Article.find().all() == []
        assert len(conn.calls) == 1


class TestLoadSchema:
    @pytest.mark.asyncio
    async def test_discovers_and_caches_schema(self):
        Account = define_model("accounts")
        client = StubExecuteClient(
            [
                [
                    {"Field": "id", "Type": "int(11)", "Null": "NO", "Key": "PRI", "Extra": "auto_increment"},
                    {"Field": "name", "Type": "varchar(50)", "Null": "YES", "Key": "", "Extra": ""},
                ],
                WriteResult(insert_id=3),
            ]
        )

        assert await Account.load_schema(client=client) is Account

        schema = Account.get_schema()
        assert list(schema.columns) == ["id", "name"]
        assert schema.primaries == ["id"]

        account = Account(name="acme")
        await account.insert(client=client)
        assert client.calls == [
            ("DESCRIBE `accounts`", []),
            ("INSERT INTO accounts (name) VALUES (?)", ["acme"]),
        ]

    @pytest.mark.asyncio
    async def test_failure_reaches_callback(self):
        Account = define_model("accounts")
        seen = []
        error = RuntimeError("access denied")
        with pytest.raises(RuntimeError):
            await Account.load_schema(
                client=StubExecuteClient([error]),
                callback=lambda *args: seen.append(args),
            )
        assert seen == [(error, None)]
        assert Account.get_schema() is None
