"""Immutable messaging state snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping

from surfacing.engine.message import Message, Surface
from surfacing.errors import InconsistentShowSlot


@dataclass(frozen=True)
class MessagingState:
    """Immutable snapshot of known messages and per-surface show-slots.

    Every update method returns a *new* MessagingState; the original is never
    modified.  ``message_to_show`` is a read-only mapping.
    """

    messages: tuple[Message, ...] = ()
    message_to_show: Mapping[Surface, Message] = field(
        default_factory=dict, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "message_to_show", MappingProxyType(dict(self.message_to_show))
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_message(self, message_id: str) -> Message | None:
        """Return the message with the given id, or None."""
        for m in self.messages:
            if m.id == message_id:
                return m
        return None

    def get_message_to_show(self, surface: Surface) -> Message | None:
        return self.message_to_show.get(surface)

    def messages_for_surface(self, surface: Surface) -> list[Message]:
        """Return messages targeting *surface*, in definition order."""
        return [m for m in self.messages if m.surface == surface]

    def is_shown(self, message: Message) -> bool:
        """True if a message with *message*'s id occupies its surface slot."""
        current = self.message_to_show.get(message.surface)
        return current is not None and current.id == message.id

    # ------------------------------------------------------------------
    # Immutable updates
    # ------------------------------------------------------------------

    def with_messages(self, messages: Iterable[Message]) -> MessagingState:
        """Return a copy holding *messages*.

        Duplicate ids collapse onto the first position with the last version.
        Show-slots whose message id is no longer known are dropped.
        """
        by_id: dict[str, Message] = {}
        for m in messages:
            by_id[m.id] = m
        new_messages = tuple(by_id.values())
        slots = {
            surface: shown
            for surface, shown in self.message_to_show.items()
            if shown.id in by_id
        }
        return replace(self, messages=new_messages, message_to_show=slots)

    def with_message_to_show(self, message: Message) -> MessagingState:
        """Return a copy showing *message* on its surface."""
        slots = dict(self.message_to_show)
        slots[message.surface] = message
        return replace(self, message_to_show=slots)

    def without_message_to_show(self, surface: Surface) -> MessagingState:
        """Return a copy with the show-slot of *surface* cleared."""
        if surface not in self.message_to_show:
            return self
        slots = dict(self.message_to_show)
        del slots[surface]
        return replace(self, message_to_show=slots)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise :class:`InconsistentShowSlot` if a show-slot is invalid."""
        known = {m.id for m in self.messages}
        for surface, shown in self.message_to_show.items():
            if shown.surface != surface:
                raise InconsistentShowSlot(
                    f"Message {shown.id!r} targets {shown.surface.value} "
                    f"but is shown on {surface.value}"
                )
            if shown.id not in known:
                raise InconsistentShowSlot(
                    f"Message {shown.id!r} is shown on {surface.value} "
                    "but is not a known message"
                )
