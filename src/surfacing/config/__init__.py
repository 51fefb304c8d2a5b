"""Configuration loading and validation."""

from surfacing.config.schema import (
    EngineConfig,
    ExpiryConfig,
    MessageDefinition,
    StyleConfig,
)
from surfacing.config.loader import (
    load_config,
    load_message_definitions,
    parse_message_definitions,
)

__all__ = [
    "EngineConfig",
    "ExpiryConfig",
    "MessageDefinition",
    "StyleConfig",
    "load_config",
    "load_message_definitions",
    "parse_message_definitions",
]
