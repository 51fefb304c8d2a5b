"""Exception types raised by the messaging engine."""

from __future__ import annotations


class MessagingError(Exception):
    """Base class for messaging engine errors."""


class SourceUnavailable(MessagingError):
    """The message source could not produce message definitions."""


class InconsistentShowSlot(MessagingError):
    """A show-slot points at a message that is missing or on another surface.

    Every removal path clears the slot in the same step, so this only
    surfaces when an invariant has been broken.
    """
