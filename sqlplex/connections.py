"""Catalog backend loading schema metadata from the host PostgreSQL database."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine, Iterable, Sequence

import asyncpg

from .config import AppConfig
from .models import SchemaMetadata

LOG = logging.getLogger(__name__)


class CatalogBackendError(RuntimeError):
    """Raised when the backend cannot connect or read the catalog."""


class AsyncpgCatalogBackend:
    """Catalog backend that queries PostgreSQL via asyncpg on a private event loop."""

    _SCHEMA_QUERY = """
        SELECT schema_name
        FROM information_schema.schemata
        WHERE schema_name NOT IN ('pg_catalog', 'information_schema')
        ORDER BY schema_name
    """

    _TABLE_QUERY = """
        SELECT table_schema, table_name
        FROM information_schema.tables
        WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
        ORDER BY table_schema, table_name
    """

    _SEARCH_PATH_QUERY = "SELECT unnest(current_schemas(false)) AS schema_name"

    _TEMPORARY_SCHEMA_QUERY = """
        SELECT nspname AS schema_name
        FROM pg_namespace
        WHERE oid = pg_my_temp_schema()
    """

    def __init__(
        self,
        *,
        dsn: str | None = None,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        connect_timeout: float = 3.0,
        config: AppConfig | None = None,
    ) -> None:
        self._config = config
        self._connect_kwargs: dict[str, object] = {"timeout": connect_timeout}
        if dsn:
            self._connect_kwargs["dsn"] = dsn
        else:
            self._connect_kwargs["host"] = host or "localhost"
            if port is not None:
                self._connect_kwargs["port"] = port
            if database:
                self._connect_kwargs["database"] = database
            if user:
                self._connect_kwargs["user"] = user
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="sqlplex-catalog-backend",
            daemon=True,
        )
        self._loop_thread.start()

    @classmethod
    def from_config(cls, config: AppConfig, *, connect_timeout: float = 3.0) -> AsyncpgCatalogBackend:
        return cls(
            dsn=config.dsn,
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.user,
            connect_timeout=connect_timeout,
            config=config,
        )

    def load(
        self,
        *,
        schemas: Iterable[str] | None = None,
        search_path: Sequence[str] | None = None,
    ) -> SchemaMetadata:
        """Read a catalog snapshot.

        ``schemas`` restricts the result to the given connection schemas plus
        ``public`` and the session's temporary schema. ``search_path``
        overrides the path reported by the server; otherwise the server path
        is adjusted by the config's search path settings, when given.
        """

        allowed = (set(schemas) | {"public"}) if schemas is not None else None
        return self._run(self._load(allowed, search_path))

    def shutdown(self) -> None:
        """Stop the background event loop."""

        if not self._loop.is_running():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)

    def _run(self, coro: Coroutine[Any, Any, SchemaMetadata]) -> SchemaMetadata:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    async def _load(self, allowed: set[str] | None, search_path: Sequence[str] | None) -> SchemaMetadata:
        conn = await self._connect()
        try:
            schema_rows = await conn.fetch(self._SCHEMA_QUERY)
            table_rows = await conn.fetch(self._TABLE_QUERY)
            path_rows = await conn.fetch(self._SEARCH_PATH_QUERY)
            temp_rows = await conn.fetch(self._TEMPORARY_SCHEMA_QUERY)
        except Exception as exc:
            raise CatalogBackendError(f"Failed to read catalog: {exc}") from exc
        finally:
            try:
                await conn.close()
            except Exception:
                LOG.debug("Failed to close catalog connection", exc_info=True)

        temporary = str(temp_rows[0]["schema_name"]) if temp_rows else None
        tables: dict[str, set[str]] = {str(row["schema_name"]): set() for row in schema_rows}
        for row in table_rows:
            tables.setdefault(str(row["table_schema"]), set()).add(str(row["table_name"]))
        if allowed is not None:
            tables = {
                schema: names for schema, names in tables.items() if schema in allowed or schema == temporary
            }
        if search_path is None:
            search_path = [str(row["schema_name"]) for row in path_rows]
            if self._config is not None:
                search_path = self._config.effective_search_path(search_path)
        LOG.debug("Loaded catalog", extra={"schemas": len(tables), "temporary_schema": temporary})
        return SchemaMetadata(
            schemas={schema: frozenset(names) for schema, names in tables.items()},
            search_path=tuple(search_path),
            temporary_schema_name=temporary,
        )

    async def _connect(self) -> Any:
        try:
            return await asyncpg.connect(**self._connect_kwargs)
        except Exception as exc:
            raise CatalogBackendError(f"Failed to connect: {exc}") from exc


__all__ = ["AsyncpgCatalogBackend", "CatalogBackendError"]
