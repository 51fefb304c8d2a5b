"""In-memory message source."""

from __future__ import annotations

from typing import Iterable

from surfacing.engine.message import Message
from surfacing.errors import SourceUnavailable
from surfacing.sources.base import MessageSource


class InMemoryMessageSource(MessageSource):
    """Serves a fixed list of messages.

    Setting ``available`` to ``False`` makes :meth:`get_all` raise
    :class:`SourceUnavailable`, which is useful to exercise the restore
    failure path.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = list(messages)
        self.available = True
        self.fetch_count = 0

    def set_messages(self, messages: Iterable[Message]) -> None:
        self._messages = list(messages)

    async def get_all(self) -> list[Message]:
        self.fetch_count += 1
        if not self.available:
            raise SourceUnavailable("In-memory source marked unavailable")
        return list(self._messages)
