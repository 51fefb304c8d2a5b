"""Message source backed by a YAML definitions file."""

from __future__ import annotations

import asyncio
import logging

from surfacing.config.loader import load_message_definitions
from surfacing.config.schema import EngineConfig
from surfacing.engine.message import Message
from surfacing.sources.base import MessageSource

logger = logging.getLogger(__name__)


class YamlMessageSource(MessageSource):
    """Reads message definitions from *path* on every fetch.

    File I/O runs in a worker thread so it never blocks the event loop.
    """

    def __init__(self, path: str, config: EngineConfig | None = None) -> None:
        self.path = path
        self.config = config or EngineConfig()

    async def get_all(self) -> list[Message]:
        messages = await asyncio.to_thread(
            load_message_definitions, self.path, self.config
        )
        logger.debug("Fetched %d message(s) from %s", len(messages), self.path)
        return messages
