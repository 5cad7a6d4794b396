"""Gate plugin-backed connections before they join the live schema catalog."""

from __future__ import annotations

import logging
from typing import NamedTuple, Sequence

from sqlplex import PROTOCOL_VERSION
from sqlplex.models import Connection, ConnectionMap

from .types import ConnectionPlugin, ValidationFailure

LOG = logging.getLogger(__name__)

RESERVED_CONNECTION_NAMES: tuple[str, ...] = ("public", "internal")

INCOMPATIBLE_PROTOCOL_MESSAGE = "Incompatible plugin protocol version. Please upgrade the host."


class ValidationResult(NamedTuple):
    """Partition of the candidates into rejected and accepted."""

    failures: list[ValidationFailure]
    updates: dict[str, Connection]
    plugins: list[ConnectionPlugin]


def validate_plugins(
    candidates: Sequence[ConnectionPlugin],
    updates: ConnectionMap,
    host_protocol_version: int = PROTOCOL_VERSION,
) -> ValidationResult:
    """Split candidates into failures and accepted plugins/updates.

    Checks run in order and the first failure wins, so a candidate is never
    reported twice. Accepted candidates without an entry in ``updates`` are
    still accepted; there is just no update to carry forward.
    """

    failures: list[ValidationFailure] = []
    accepted_updates: dict[str, Connection] = {}
    accepted_plugins: list[ConnectionPlugin] = []

    for candidate in candidates:
        failure = _check_protocol_version(candidate, host_protocol_version) or _check_connection_name(candidate)
        if failure is not None:
            LOG.debug(
                "Rejected connection",
                extra={"connection": candidate.connection_name, "plugin": candidate.plugin_name},
            )
            failures.append(failure)
            continue
        accepted_plugins.append(candidate)
        update = updates.get(candidate.connection_name)
        if update is not None:
            accepted_updates[candidate.connection_name] = update

    return ValidationResult(failures, accepted_updates, accepted_plugins)


def build_validation_warning(failures: Sequence[ValidationFailure]) -> str:
    """Render one warning block for all failures; empty string when there are none."""

    if not failures:
        return ""
    count = len(failures)
    body = "\n\n".join(str(failure) for failure in failures)
    verb = "was" if count == 1 else "were"
    return f"\nValidation Errors:\n\n{body}\n\n{count} {pluralize('connection', count)} {verb} not imported.\n"


def pluralize(word: str, count: int) -> str:
    return word if count == 1 else f"{word}s"


def _check_protocol_version(candidate: ConnectionPlugin, host_protocol_version: int) -> ValidationFailure | None:
    plugin_version = candidate.schema.protocol_version
    if plugin_version == 0:
        return None
    if host_protocol_version < plugin_version:
        return ValidationFailure(
            plugin=candidate.plugin_name,
            connection_name=candidate.connection_name,
            message=INCOMPATIBLE_PROTOCOL_MESSAGE,
            should_drop_if_exists=True,
        )
    return None


def _check_connection_name(candidate: ConnectionPlugin) -> ValidationFailure | None:
    if candidate.connection_name in RESERVED_CONNECTION_NAMES:
        return ValidationFailure(
            plugin=candidate.plugin_name,
            connection_name=candidate.connection_name,
            message=f"Connection name cannot be one of {','.join(RESERVED_CONNECTION_NAMES)}",
            should_drop_if_exists=False,
        )
    return None


__all__ = [
    "INCOMPATIBLE_PROTOCOL_MESSAGE",
    "RESERVED_CONNECTION_NAMES",
    "ValidationResult",
    "build_validation_warning",
    "pluralize",
    "validate_plugins",
]
