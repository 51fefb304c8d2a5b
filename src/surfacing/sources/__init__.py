"""Message sources and lifecycle sinks."""

from surfacing.sources.base import LifecycleSink, MessageSource
from surfacing.sources.memory import InMemoryMessageSource
from surfacing.sources.sinks import (
    FanOutLifecycleSink,
    LifecycleRecord,
    LoggingLifecycleSink,
    RecordingLifecycleSink,
)
from surfacing.sources.storage import MessageStorage
from surfacing.sources.yaml_source import YamlMessageSource

__all__ = [
    "FanOutLifecycleSink",
    "InMemoryMessageSource",
    "LifecycleRecord",
    "LifecycleSink",
    "LoggingLifecycleSink",
    "MessageSource",
    "MessageStorage",
    "RecordingLifecycleSink",
    "YamlMessageSource",
]
