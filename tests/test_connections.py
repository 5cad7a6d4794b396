"""Tests for the asyncpg catalog backend."""

from __future__ import annotations

from typing import Any, Iterator

import pytest

from sqlplex.config import AppConfig
from sqlplex.connections import AsyncpgCatalogBackend, CatalogBackendError


class _FakeConnection:
    def __init__(self, *, temporary: str | None = "pg_temp_3", fail_on: str | None = None) -> None:
        self._temporary = temporary
        self._fail_on = fail_on
        self.closed = False

    async def fetch(self, query: str) -> list[dict[str, str]]:
        if self._fail_on and self._fail_on in query:
            raise RuntimeError("permission denied")
        if "pg_my_temp_schema" in query:
            return [{"schema_name": self._temporary}] if self._temporary else []
        if "current_schemas" in query:
            return [{"schema_name": "public"}, {"schema_name": "aws"}]
        if "schemata" in query:
            # Schemas without tables still need to surface.
            return [{"schema_name": name} for name in ("aws", "empty", "gcp", "other", "public")]
        assert "information_schema.tables" in query
        return [
            {"table_schema": "aws", "table_name": "aws_s3_bucket"},
            {"table_schema": "aws", "table_name": "aws_ec2_instance"},
            {"table_schema": "gcp", "table_name": "gcp_storage_bucket"},
            {"table_schema": "other", "table_name": "ignored"},
            {"table_schema": "pg_temp_3", "table_name": "scratch"},
        ]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def backend() -> Iterator[AsyncpgCatalogBackend]:
    instance = AsyncpgCatalogBackend(host="localhost", database="steward")
    yield instance
    instance.shutdown()


def _patch_connect(monkeypatch: pytest.MonkeyPatch, conn: _FakeConnection, seen: dict[str, Any] | None = None) -> None:
    async def _fake_connect(**kwargs: Any) -> _FakeConnection:
        if seen is not None:
            seen.update(kwargs)
        return conn

    monkeypatch.setattr("sqlplex.connections.asyncpg.connect", _fake_connect)


def test_load_builds_schema_metadata(monkeypatch: pytest.MonkeyPatch, backend: AsyncpgCatalogBackend) -> None:
    conn = _FakeConnection()
    seen: dict[str, Any] = {}
    _patch_connect(monkeypatch, conn, seen)

    metadata = backend.load()

    assert metadata.tables_for("aws") == frozenset({"aws_s3_bucket", "aws_ec2_instance"})
    assert metadata.tables_for("empty") == frozenset()
    assert "empty" in metadata.schemas
    assert metadata.search_path == ("public", "aws")
    assert metadata.temporary_schema_name == "pg_temp_3"
    assert metadata.tables_for("pg_temp_3") == frozenset({"scratch"})
    assert conn.closed is True
    assert seen["host"] == "localhost"
    assert seen["database"] == "steward"
    assert seen["timeout"] == 3.0


def test_load_restricts_to_connection_schemas(monkeypatch: pytest.MonkeyPatch, backend: AsyncpgCatalogBackend) -> None:
    _patch_connect(monkeypatch, _FakeConnection())

    metadata = backend.load(schemas=["aws", "gcp"], search_path=["aws"])

    assert set(metadata.schemas) == {"aws", "gcp", "public", "pg_temp_3"}
    assert metadata.search_path == ("aws",)


def test_load_without_temporary_schema(monkeypatch: pytest.MonkeyPatch, backend: AsyncpgCatalogBackend) -> None:
    _patch_connect(monkeypatch, _FakeConnection(temporary=None))

    metadata = backend.load(schemas=["aws"])

    assert metadata.temporary_schema_name is None
    assert set(metadata.schemas) == {"aws", "public"}


def test_config_search_path_settings_apply(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}
    _patch_connect(monkeypatch, _FakeConnection(), seen)
    config = AppConfig(dsn="postgres://localhost/steward", search_path_prefix=["gcp"])
    backend = AsyncpgCatalogBackend.from_config(config, connect_timeout=1.5)

    try:
        metadata = backend.load()
    finally:
        backend.shutdown()

    assert metadata.search_path == ("gcp", "public", "aws")
    assert seen == {"dsn": "postgres://localhost/steward", "timeout": 1.5}


def test_query_errors_are_wrapped(monkeypatch: pytest.MonkeyPatch, backend: AsyncpgCatalogBackend) -> None:
    conn = _FakeConnection(fail_on="information_schema.tables")
    _patch_connect(monkeypatch, conn)

    with pytest.raises(CatalogBackendError, match="permission denied"):
        backend.load()
    assert conn.closed is True


def test_connection_errors_are_wrapped(monkeypatch: pytest.MonkeyPatch, backend: AsyncpgCatalogBackend) -> None:
    async def _broken_connect(**kwargs: Any) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr("sqlplex.connections.asyncpg.connect", _broken_connect)

    with pytest.raises(CatalogBackendError, match="Failed to connect"):
        backend.load()
