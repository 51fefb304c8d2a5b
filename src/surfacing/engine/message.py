"""Immutable message records and the surfaces they target."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class Surface(str, Enum):
    """UI locations that can show one message at a time."""

    HOMESCREEN = "homescreen"
    NOTIFICATION = "notification"
    SURVEY = "survey"
    MICROSURVEY = "microsurvey"


@dataclass(frozen=True)
class MessageStyle:
    """Display weight and display cap shared by messages of one style."""

    name: str = "DEFAULT"
    priority: int = 50
    max_display_count: int = 5


@dataclass(frozen=True)
class MessageMetadata:
    """Per-message interaction record."""

    display_count: int = 0
    pressed: bool = False
    dismissed: bool = False
    last_time_shown: float = 0.0


@dataclass(frozen=True)
class Message:
    """An immutable message definition plus its interaction metadata.

    Identity is by ``id``: two instances with the same id are successive
    versions of the same logical message.  ``action_params`` takes no part
    in hashing.
    """

    id: str
    surface: Surface
    style: MessageStyle = field(default_factory=MessageStyle)
    metadata: MessageMetadata = field(default_factory=MessageMetadata)
    title: str | None = None
    text: str = ""
    button_label: str | None = None
    action: str = ""
    action_params: dict[str, Any] = field(default_factory=dict, hash=False)
    trigger_if_all: tuple[str, ...] = ()
    exclude_if_any: tuple[str, ...] = ()

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def priority(self) -> int:
        return self.style.priority

    @property
    def display_count(self) -> int:
        return self.metadata.display_count

    @property
    def is_expired(self) -> bool:
        """Default expiry rule: display cap reached, or already acted on."""
        return (
            self.metadata.display_count >= self.style.max_display_count
            or self.metadata.pressed
            or self.metadata.dismissed
        )

    # ------------------------------------------------------------------
    # Immutable updates
    # ------------------------------------------------------------------

    def with_display_recorded(self, now: float) -> Message:
        """Return a copy with one more display recorded at *now*."""
        metadata = replace(
            self.metadata,
            display_count=self.metadata.display_count + 1,
            last_time_shown=now,
        )
        return replace(self, metadata=metadata)

    def with_pressed(self) -> Message:
        return replace(self, metadata=replace(self.metadata, pressed=True))

    def with_dismissed(self) -> Message:
        return replace(self, metadata=replace(self.metadata, dismissed=True))
