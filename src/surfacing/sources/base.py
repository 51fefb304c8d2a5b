"""Collaborator contracts: where messages come from and where events go."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from surfacing.engine.eligibility import (
    EligibilityEvaluator,
    ExpiryPredicate,
    default_is_expired,
)
from surfacing.engine.message import Message, Surface
from surfacing.engine.selector import select_next


class MessageSource(ABC):
    """Abstract provider of message definitions."""

    @abstractmethod
    async def get_all(self) -> list[Message]:
        """Return the full current list of messages.

        Raises :class:`~surfacing.errors.SourceUnavailable` on failure.
        """
        ...

    async def get_next(
        self,
        surface: Surface,
        known: Iterable[Message],
        context: Mapping[str, Any],
        evaluator: EligibilityEvaluator,
        is_expired: ExpiryPredicate = default_is_expired,
    ) -> Message | None:
        """Pick the next message for *surface* out of *known* messages."""
        return select_next(surface, known, context, evaluator, is_expired)


class LifecycleSink(ABC):
    """Abstract receiver of lifecycle notifications.

    Calls are fire-and-forget: the engine ignores return values and only
    logs failures.
    """

    @abstractmethod
    async def on_displayed(self, message: Message) -> None:
        """*message* (already carrying the new display count) was shown."""
        ...

    @abstractmethod
    async def on_clicked(self, message: Message) -> None:
        ...

    @abstractmethod
    async def on_dismissed(self, message: Message) -> None:
        ...
