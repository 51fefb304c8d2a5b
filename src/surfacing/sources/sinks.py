"""Lifecycle sinks: logging and in-memory recording."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from surfacing.engine.message import Message
from surfacing.sources.base import LifecycleSink

logger = logging.getLogger(__name__)


class LoggingLifecycleSink(LifecycleSink):
    """Writes every lifecycle notification to the log."""

    async def on_displayed(self, message: Message) -> None:
        logger.info(
            "Displayed %s on %s (count=%d)",
            message.id,
            message.surface.value,
            message.display_count,
        )

    async def on_clicked(self, message: Message) -> None:
        logger.info("Clicked %s on %s", message.id, message.surface.value)

    async def on_dismissed(self, message: Message) -> None:
        logger.info("Dismissed %s on %s", message.id, message.surface.value)


@dataclass(frozen=True)
class LifecycleRecord:
    """One notification received by a :class:`RecordingLifecycleSink`."""

    kind: str  # "displayed", "clicked", "dismissed"
    message_id: str
    display_count: int


class RecordingLifecycleSink(LifecycleSink):
    """Keeps every notification in arrival order, with per-kind counters."""

    def __init__(self) -> None:
        self.records: list[LifecycleRecord] = []
        self._counts: dict[str, Counter[str]] = {
            "displayed": Counter(),
            "clicked": Counter(),
            "dismissed": Counter(),
        }

    async def on_displayed(self, message: Message) -> None:
        self._record("displayed", message)

    async def on_clicked(self, message: Message) -> None:
        self._record("clicked", message)

    async def on_dismissed(self, message: Message) -> None:
        self._record("dismissed", message)

    def count(self, kind: str, message_id: str | None = None) -> int:
        """Number of *kind* notifications, optionally for one message id."""
        counter = self._counts[kind]
        if message_id is None:
            return sum(counter.values())
        return counter[message_id]

    def summary(self) -> dict[str, dict[str, int]]:
        """Per-kind, per-message counts."""
        return {kind: dict(counter) for kind, counter in self._counts.items()}

    def _record(self, kind: str, message: Message) -> None:
        self.records.append(
            LifecycleRecord(
                kind=kind,
                message_id=message.id,
                display_count=message.display_count,
            )
        )
        self._counts[kind][message.id] += 1


class FanOutLifecycleSink(LifecycleSink):
    """Forwards every notification to several sinks, in order.

    A failing sink is logged and does not stop the others.
    """

    def __init__(self, *sinks: LifecycleSink) -> None:
        self.sinks = list(sinks)

    async def on_displayed(self, message: Message) -> None:
        await self._forward("on_displayed", message)

    async def on_clicked(self, message: Message) -> None:
        await self._forward("on_clicked", message)

    async def on_dismissed(self, message: Message) -> None:
        await self._forward("on_dismissed", message)

    async def _forward(self, method: str, message: Message) -> None:
        for sink in self.sinks:
            try:
                await getattr(sink, method)(message)
            except Exception:
                logger.exception(
                    "%s.%s failed for %s", type(sink).__name__, method, message.id
                )
