"""Schema and table suggestions derived from the connection catalog."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from sqlplex.models import ConnectionMap, SchemaMetadata

from .models import Suggestion, SuggestionType

LOG = logging.getLogger(__name__)

TraceSink = Callable[[str], None]


def build_table_suggestions(
    metadata: SchemaMetadata,
    connections: ConnectionMap,
    *,
    trace: TraceSink | None = None,
) -> list[Suggestion]:
    """Return schema names, unqualified tables and qualified tables, in that order.

    Unqualified table names are only offered for schemas on the search path
    (or the temporary schema), and only for the first schema of each plugin so
    that connections sharing a plugin do not produce ambiguous short names.
    Schemas are visited in sorted order, which makes "first" well defined.
    """

    schema_names: list[str] = []
    unqualified_tables: list[str] = []
    qualified_tables: list[str] = []
    plugins_with_unqualified: set[str] = set()
    search_path = set(metadata.search_path)

    for schema in sorted(metadata.schemas):
        tables = metadata.tables_for(schema)
        is_temporary = metadata.is_temporary(schema)
        # The temporary schema and schemas such as public have no connection.
        connection = connections.get(schema)
        plugin = connection.plugin_identity if connection is not None else None

        if not is_temporary:
            schema_names.append(schema)
            qualified_tables.extend(f"{schema}.{table}" for table in tables)

        # The temporary schema is never hidden by plugin dedup.
        same_plugin_seen = not is_temporary and plugin is not None and plugin in plugins_with_unqualified
        if (schema in search_path or is_temporary) and not same_plugin_seen:
            unqualified_tables.extend(tables)
            # A schema without tables contributes nothing, so it never claims its plugin.
            if tables and not is_temporary and plugin is not None:
                plugins_with_unqualified.add(plugin)

    schema_names.sort()
    unqualified_tables.sort()
    qualified_tables.sort()

    suggestions = [Suggestion(label=name, type=SuggestionType.SCHEMA, detail="Schema") for name in schema_names]
    suggestions.extend(
        Suggestion(label=table, type=SuggestionType.TABLE, detail="Table")
        for table in (*unqualified_tables, *qualified_tables)
    )

    if trace is not None:
        _emit_trace(trace, unqualified_tables)
    return suggestions


def _emit_trace(trace: TraceSink, tables: Sequence[str]) -> None:
    for table in tables:
        try:
            trace(table)
        except Exception:
            LOG.exception("Suggestion trace sink failed", extra={"table": table})


def log_unqualified_table(table: str) -> None:
    """Trace sink writing each unqualified table to the debug log."""

    LOG.debug("Unqualified table suggestion: %s", table, extra={"table": table})


__all__ = ["TraceSink", "build_table_suggestions", "log_unqualified_table"]
