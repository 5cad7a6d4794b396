"""Plugin contract primitives shared between the host and connection validation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PluginSchema:
    """Schema description a plugin declares during its handshake."""

    # 0 means the plugin predates protocol versioning.
    protocol_version: int = 0

    def __post_init__(self) -> None:
        if self.protocol_version < 0:
            raise ValueError(f"Protocol version must be >= 0, got {self.protocol_version}")


@dataclass(frozen=True, slots=True)
class ConnectionPlugin:
    """A candidate connection paired with the schema its plugin declared."""

    connection_name: str
    plugin_name: str
    schema: PluginSchema = PluginSchema()


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """Why a candidate connection was rejected."""

    plugin: str
    connection_name: str
    message: str
    # Tear down a previously registered connection of the same name.
    should_drop_if_exists: bool = False

    def __str__(self) -> str:
        return (
            f"Connection: {self.connection_name}\n"
            f"Plugin:     {self.plugin}\n"
            f"Error:      {self.message}"
        )
