"""Pydantic models for engine configuration and message definitions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from surfacing.engine.message import Message, MessageMetadata, MessageStyle, Surface


class StyleConfig(BaseModel):
    """Priority and display cap for a named message style."""

    priority: int = 50
    max_display_count: int = Field(default=5, ge=1)


class ExpiryConfig(BaseModel):
    """Display-cap expiry rule."""

    inclusive: bool = True


class MessageDefinition(BaseModel):
    """A message as written in a definitions file."""

    id: str
    surface: Surface = Surface.HOMESCREEN
    style: str = "DEFAULT"
    title: str | None = None
    text: str = ""
    button_label: str | None = None
    action: str = ""
    action_params: dict[str, Any] = Field(default_factory=dict)
    trigger_if_all: list[str] = Field(default_factory=list)
    exclude_if_any: list[str] = Field(default_factory=list)
    display_count: int = Field(default=0, ge=0)

    def to_message(self, styles: dict[str, StyleConfig]) -> Message:
        """Build the engine :class:`Message`, resolving the style by name.

        Unknown style names fall back to ``DEFAULT`` (or built-in defaults).
        """
        style_cfg = styles.get(self.style) or styles.get("DEFAULT") or StyleConfig()
        return Message(
            id=self.id,
            surface=self.surface,
            style=MessageStyle(
                name=self.style,
                priority=style_cfg.priority,
                max_display_count=style_cfg.max_display_count,
            ),
            metadata=MessageMetadata(display_count=self.display_count),
            title=self.title,
            text=self.text,
            button_label=self.button_label,
            action=self.action,
            action_params=dict(self.action_params),
            trigger_if_all=tuple(self.trigger_if_all),
            exclude_if_any=tuple(self.exclude_if_any),
        )


def _default_styles() -> dict[str, StyleConfig]:
    return {
        "DEFAULT": StyleConfig(priority=50, max_display_count=5),
        "URGENT": StyleConfig(priority=100, max_display_count=10),
        "PERSISTENT": StyleConfig(priority=50, max_display_count=20),
    }


class EngineConfig(BaseModel):
    """Top-level engine configuration."""

    messages_path: str | None = None
    strict_invariants: bool = True
    styles: dict[str, StyleConfig] = Field(default_factory=_default_styles)
    expiry: ExpiryConfig = Field(default_factory=ExpiryConfig)
    context: dict[str, Any] = Field(default_factory=dict)
    surfaces: list[Surface] = Field(default_factory=lambda: list(Surface))
