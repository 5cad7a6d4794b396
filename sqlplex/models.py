"""Shared dataclasses describing connections and the schema catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


def strip_plugin_version(plugin_name: str) -> str:
    """Return the plugin identity, dropping any trailing ``@version`` tag."""

    return plugin_name.split("@", 1)[0]


@dataclass(frozen=True, slots=True)
class Connection:
    """A configured plugin instance providing one schema's worth of tables."""

    name: str
    plugin_name: str

    @property
    def plugin_identity(self) -> str:
        return strip_plugin_version(self.plugin_name)


ConnectionMap = Mapping[str, Connection]


@dataclass(frozen=True, slots=True)
class SchemaMetadata:
    """Snapshot of the schemas visible to the query session."""

    schemas: Mapping[str, frozenset[str]] = field(default_factory=dict)
    search_path: tuple[str, ...] = ()
    temporary_schema_name: str | None = None

    def tables_for(self, schema: str) -> frozenset[str]:
        """Tables exposed by ``schema``; empty when the schema is unknown."""

        return self.schemas.get(schema, frozenset())

    def is_temporary(self, schema: str) -> bool:
        return self.temporary_schema_name is not None and schema == self.temporary_schema_name


__all__ = ["Connection", "ConnectionMap", "SchemaMetadata", "strip_plugin_version"]
