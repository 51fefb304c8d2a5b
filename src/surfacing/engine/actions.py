"""Actions flowing through the message store.

Inbound lifecycle actions are handled by the lifecycle controller; outbound
update actions are the only state mutations the reducer understands.
"""

from __future__ import annotations

from dataclasses import dataclass

from surfacing.engine.message import Message, Surface


@dataclass(frozen=True)
class MessagingAction:
    """Base action dispatched to the message store."""


# ----------------------------------------------------------------------
# Inbound lifecycle events
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Restore(MessagingAction):
    """Reload the full message list from the message source."""


@dataclass(frozen=True)
class Evaluate(MessagingAction):
    """Pick the next message to show on *surface*."""

    surface: Surface


@dataclass(frozen=True)
class MessageClicked(MessagingAction):
    """The user pressed the shown message."""

    message: Message


@dataclass(frozen=True)
class MessageDismissed(MessagingAction):
    """The user dismissed the shown message."""

    message: Message


# ----------------------------------------------------------------------
# Outbound state updates
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class UpdateMessages(MessagingAction):
    """Replace the whole message collection."""

    messages: tuple[Message, ...] = ()


@dataclass(frozen=True)
class UpdateMessageToShow(MessagingAction):
    """Show *message* on its own surface."""

    message: Message


@dataclass(frozen=True)
class ConsumeMessageToShow(MessagingAction):
    """Clear the show-slot of *surface*."""

    surface: Surface
