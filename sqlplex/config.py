"""App configuration loading helpers."""

from __future__ import annotations

from pathlib import Path

import tomllib

from typing import Iterable

from pydantic import BaseModel, Field

from .models import Connection

CONFIG_FILE = Path.home() / ".config" / "sqlplex" / "config.toml"


class ConnectionConfig(BaseModel):
    """Plugin-backed connection stored in config.toml."""

    name: str
    plugin: str

    def to_connection(self) -> Connection:
        return Connection(name=self.name, plugin_name=self.plugin)


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    connections: list[ConnectionConfig] = Field(default_factory=list)
    search_path: list[str] | None = None
    search_path_prefix: list[str] = Field(default_factory=list)
    trace_suggestions: bool = False

    def connection_map(self) -> dict[str, Connection]:
        """Connections keyed by name; later entries win on duplicate names."""

        return {entry.name: entry.to_connection() for entry in self.connections}

    def effective_search_path(self, default: Iterable[str] = ()) -> tuple[str, ...]:
        """Prefix followed by the configured override (or ``default``), deduplicated."""

        base = self.search_path if self.search_path is not None else list(default)
        ordered: list[str] = []
        for schema in (*self.search_path_prefix, *base):
            if schema not in ordered:
                ordered.append(schema)
        return tuple(ordered)

    def with_connection(self, name: str, plugin: str) -> AppConfig:
        """Return a copy with the named connection added or replaced."""

        connections = [entry for entry in self.connections if entry.name != name]
        connections.append(ConnectionConfig(name=name, plugin=plugin))
        return self.model_copy(update={"connections": connections})

    def without_connection(self, name: str) -> AppConfig:
        """Return a copy with the named connection removed."""

        connections = [entry for entry in self.connections if entry.name != name]
        return self.model_copy(update={"connections": connections})


def load_config() -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()
    return AppConfig(**data)


def save_config(config: AppConfig) -> None:
    """Persist configuration to disk."""

    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [f"trace_suggestions = {str(config.trace_suggestions).lower()}"]
    for key in ("dsn", "host", "database", "user"):
        value = getattr(config, key)
        if value:
            lines.append(f'{key} = "{value}"')
    if config.port is not None:
        lines.append(f"port = {config.port}")
    if config.search_path is not None:
        lines.append(f"search_path = {_toml_list(config.search_path)}")
    if config.search_path_prefix:
        lines.append(f"search_path_prefix = {_toml_list(config.search_path_prefix)}")
    if config.connections:
        lines.append("")
        for connection in config.connections:
            lines.append("[[connections]]")
            lines.append(f'name = "{connection.name}"')
            lines.append(f'plugin = "{connection.plugin}"')
            lines.append("")
    CONFIG_FILE.write_text("\n".join(lines) + "\n")


def _toml_list(values: Iterable[str]) -> str:
    return "[" + ", ".join(f'"{value}"' for value in values) + "]"


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    for key in ("dsn", "host", "database", "user"):
        value = raw.get(key)
        if isinstance(value, str):
            data[key] = value
    port = raw.get("port")
    if isinstance(port, int):
        data["port"] = port
    trace = raw.get("trace_suggestions")
    if isinstance(trace, bool):
        data["trace_suggestions"] = trace
    for key in ("search_path", "search_path_prefix"):
        value = raw.get(key)
        if isinstance(value, list):
            data[key] = [str(schema) for schema in value]
    connections = raw.get("connections")
    if isinstance(connections, list):
        parsed: list[ConnectionConfig] = []
        for entry in connections:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            plugin = entry.get("plugin")
            if isinstance(name, str) and name and isinstance(plugin, str):
                parsed.append(ConnectionConfig(name=name, plugin=plugin))
        data["connections"] = parsed
    return data


__all__ = ["AppConfig", "CONFIG_FILE", "ConnectionConfig", "load_config", "save_config"]
