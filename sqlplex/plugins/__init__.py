"""Plugin connection contract and validation exports."""

from .types import ConnectionPlugin, PluginSchema, ValidationFailure
from .validation import (
    INCOMPATIBLE_PROTOCOL_MESSAGE,
    RESERVED_CONNECTION_NAMES,
    ValidationResult,
    build_validation_warning,
    pluralize,
    validate_plugins,
)

__all__ = [
    "ConnectionPlugin",
    "INCOMPATIBLE_PROTOCOL_MESSAGE",
    "PluginSchema",
    "RESERVED_CONNECTION_NAMES",
    "ValidationFailure",
    "ValidationResult",
    "build_validation_warning",
    "pluralize",
    "validate_plugins",
]
