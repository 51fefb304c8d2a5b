"""Configuration and message-definition loading."""

from __future__ import annotations

import logging
from typing import Any

import yaml
from pydantic import ValidationError

from surfacing.config.schema import EngineConfig, MessageDefinition
from surfacing.engine.message import Message
from surfacing.errors import SourceUnavailable

logger = logging.getLogger(__name__)

# Anything that can go wrong between a path and parsed YAML.
_READ_ERRORS = (OSError, UnicodeDecodeError, yaml.YAMLError)


def _read_yaml(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_config(path: str | None = None) -> EngineConfig:
    """Load an engine configuration from a YAML file.

    Parameters
    ----------
    path:
        Path to a YAML configuration file.  If *None*, a default
        :class:`EngineConfig` is returned.  So is one for a file that cannot
        be read or decoded, is not a mapping, or does not validate; the
        reason is logged.
    """
    if path is None:
        return EngineConfig()

    try:
        data = _read_yaml(path)
    except _READ_ERRORS as exc:
        logger.warning("Cannot load config %s (%s), using defaults", path, exc)
        return EngineConfig()

    if not isinstance(data, dict):
        logger.warning("Config %s is not a mapping, using defaults", path)
        return EngineConfig()

    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        logger.error("Invalid config %s, using defaults: %s", path, exc)
        return EngineConfig()


def parse_message_definitions(data: Any, config: EngineConfig) -> list[Message]:
    """Turn already-parsed YAML into messages.

    Accepts either a list of definitions or a mapping with a ``messages``
    list.  Raises :class:`SourceUnavailable` if the shape or any entry is
    invalid; nothing is partially returned.
    """
    if isinstance(data, dict):
        data = data.get("messages")
    if data is None:
        return []
    if not isinstance(data, list):
        raise SourceUnavailable("Message definitions must be a list")

    messages: list[Message] = []
    for idx, entry in enumerate(data):
        try:
            definition = MessageDefinition.model_validate(entry)
        except ValidationError as exc:
            raise SourceUnavailable(f"Invalid message definition #{idx}: {exc}") from exc
        messages.append(definition.to_message(config.styles))
    return messages


def load_message_definitions(path: str, config: EngineConfig) -> list[Message]:
    """Read message definitions from a YAML file.

    Raises
    ------
    SourceUnavailable
        If the file cannot be read or decoded, or holds invalid definitions.
    """
    try:
        data = _read_yaml(path)
    except _READ_ERRORS as exc:
        raise SourceUnavailable(f"Cannot load message definitions {path}: {exc}") from exc

    messages = parse_message_definitions(data, config)
    logger.debug("Loaded %d message definition(s) from %s", len(messages), path)
    return messages
