"""Message storage that remembers interactions across restores."""

from __future__ import annotations

import logging
from dataclasses import replace

from surfacing.engine.eligibility import ExpiryPredicate, default_is_expired
from surfacing.engine.message import Message, MessageMetadata
from surfacing.sources.base import LifecycleSink, MessageSource

logger = logging.getLogger(__name__)


class MessageStorage(MessageSource, LifecycleSink):
    """Definitions from another source merged with recorded interactions.

    Acts as both the source and the sink of a session.  Lifecycle
    notifications update the stored metadata per message id, and
    :meth:`get_all` hands that metadata back on the next restore, so a
    restore never resets a display count or brings back a message that was
    clicked, dismissed or shown up to its cap.

    Parameters
    ----------
    definitions:
        Source of the message definitions themselves.
    is_expired:
        Messages matching this predicate (after their stored metadata is
        applied) are left out of :meth:`get_all`.
    """

    def __init__(
        self,
        definitions: MessageSource,
        is_expired: ExpiryPredicate = default_is_expired,
    ) -> None:
        self.definitions = definitions
        self.is_expired = is_expired
        self._metadata: dict[str, MessageMetadata] = {}

    def metadata_for(self, message_id: str) -> MessageMetadata | None:
        """Stored metadata for *message_id*, or None if nothing was recorded."""
        return self._metadata.get(message_id)

    # ------------------------------------------------------------------
    # MessageSource
    # ------------------------------------------------------------------

    async def get_all(self) -> list[Message]:
        restored: list[Message] = []
        for message in await self.definitions.get_all():
            message = self._with_stored_metadata(message)
            if self.is_expired(message):
                logger.debug("Not restoring expired message %s", message.id)
                continue
            restored.append(message)
        return restored

    # ------------------------------------------------------------------
    # LifecycleSink
    # ------------------------------------------------------------------

    async def on_displayed(self, message: Message) -> None:
        self._metadata[message.id] = message.metadata

    async def on_clicked(self, message: Message) -> None:
        self._store(self._with_stored_metadata(message).with_pressed())

    async def on_dismissed(self, message: Message) -> None:
        self._store(self._with_stored_metadata(message).with_dismissed())

    # ------------------------------------------------------------------

    def _with_stored_metadata(self, message: Message) -> Message:
        metadata = self._metadata.get(message.id)
        if metadata is None:
            return message
        return replace(message, metadata=metadata)

    def _store(self, message: Message) -> None:
        self._metadata[message.id] = message.metadata
