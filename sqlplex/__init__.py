"""Schema intelligence for plugin-backed SQL connections."""

from __future__ import annotations

__version__ = "0.1.0"

# Schema-description handshake version implemented by this host build.
PROTOCOL_VERSION = 20220201

__all__ = ["PROTOCOL_VERSION", "__version__"]
