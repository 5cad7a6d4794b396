"""Connection session wiring validated connections and catalog snapshots into completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping, Protocol, Sequence

from . import PROTOCOL_VERSION
from .config import AppConfig
from .models import Connection, ConnectionMap, SchemaMetadata
from .plugins import ConnectionPlugin, ValidationFailure, build_validation_warning, validate_plugins

LOG = logging.getLogger(__name__)

SessionListener = Callable[["SessionState"], None]


class CompletionTarget(Protocol):
    """Anything that consumes catalog snapshots, usually ``SqlIntelService``."""

    def update_metadata(
        self,
        metadata: SchemaMetadata | None = None,
        connections: ConnectionMap | None = None,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class SessionState:
    """Current session snapshot (active connections + catalog)."""

    connections: Mapping[str, Connection]
    metadata: SchemaMetadata
    failures: tuple[ValidationFailure, ...]
    refreshed_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshResult:
    """Outcome of one connection-load cycle."""

    failures: tuple[ValidationFailure, ...]
    plugins: tuple[ConnectionPlugin, ...]
    dropped: tuple[str, ...] = ()
    warning: str = ""


class ConnectionSession:
    """Keeps the live connection map and catalog in sync with the completion service."""

    def __init__(
        self,
        sql_intel: CompletionTarget,
        *,
        connections: ConnectionMap | None = None,
        metadata: SchemaMetadata | None = None,
        host_protocol_version: int = PROTOCOL_VERSION,
    ) -> None:
        self._sql_intel = sql_intel
        self._host_protocol_version = host_protocol_version
        self._listeners: set[SessionListener] = set()
        self._state = SessionState(
            connections=dict(connections or {}),
            metadata=metadata or SchemaMetadata(),
            failures=(),
            refreshed_at=datetime.now(tz=timezone.utc),
        )
        self._sql_intel.update_metadata(self._state.metadata, self._state.connections)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        sql_intel: CompletionTarget,
        *,
        metadata: SchemaMetadata | None = None,
        host_protocol_version: int = PROTOCOL_VERSION,
    ) -> ConnectionSession:
        """Start a session from the connections listed in config.toml."""

        return cls(
            sql_intel,
            connections=config.connection_map(),
            metadata=metadata,
            host_protocol_version=host_protocol_version,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connections(self) -> Mapping[str, Connection]:
        """Connections currently wired into the catalog."""

        return self._state.connections

    def apply_updates(self, candidates: Sequence[ConnectionPlugin], updates: ConnectionMap) -> RefreshResult:
        """Validate candidate connections and merge the accepted ones.

        Rejections flagged ``should_drop_if_exists`` also remove any existing
        connection of the same name. The aggregated warning is logged once.
        """

        failures, accepted_updates, accepted_plugins = validate_plugins(
            candidates, updates, self._host_protocol_version
        )
        connections = dict(self._state.connections)
        dropped: list[str] = []
        for failure in failures:
            if failure.should_drop_if_exists and connections.pop(failure.connection_name, None) is not None:
                dropped.append(failure.connection_name)
        connections.update(accepted_updates)

        warning = build_validation_warning(failures)
        if warning:
            LOG.warning("%s", warning)
        if dropped:
            LOG.info("Dropped incompatible connections", extra={"connections": dropped})

        self._set_state(connections=connections, failures=tuple(failures))
        return RefreshResult(
            failures=tuple(failures),
            plugins=tuple(accepted_plugins),
            dropped=tuple(dropped),
            warning=warning,
        )

    def update_metadata(self, metadata: SchemaMetadata) -> None:
        """Replace the catalog snapshot (e.g. after the backend reloads it)."""

        self._set_state(metadata=metadata)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session updates; returns an unsubscribe handle."""

        self._listeners.add(listener)
        listener(self._state)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    def _set_state(
        self,
        *,
        connections: Mapping[str, Connection] | None = None,
        metadata: SchemaMetadata | None = None,
        failures: tuple[ValidationFailure, ...] | None = None,
    ) -> None:
        previous = self._state
        self._state = SessionState(
            connections=connections if connections is not None else previous.connections,
            metadata=metadata if metadata is not None else previous.metadata,
            failures=failures if failures is not None else previous.failures,
            refreshed_at=datetime.now(tz=timezone.utc),
        )
        self._sql_intel.update_metadata(self._state.metadata, self._state.connections)
        self._notify()

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(self._state)
            except Exception:
                LOG.exception("Session listener failed")


__all__ = ["CompletionTarget", "ConnectionSession", "RefreshResult", "SessionListener", "SessionState"]
