"""Tests for surfacing.sources -- message sources and lifecycle sinks."""

from __future__ import annotations

import logging
import os
import tempfile

import pytest
import yaml

from surfacing.config.schema import EngineConfig, StyleConfig
from surfacing.engine.eligibility import always_eligible, make_expiry_predicate
from surfacing.engine.message import Message, MessageMetadata, MessageStyle, Surface
from surfacing.errors import SourceUnavailable
from surfacing.sources.memory import InMemoryMessageSource
from surfacing.sources.sinks import (
    FanOutLifecycleSink,
    LoggingLifecycleSink,
    RecordingLifecycleSink,
)
from surfacing.sources.storage import MessageStorage
from surfacing.sources.yaml_source import YamlMessageSource


def _msg(message_id: str, priority: int = 50) -> Message:
    return Message(
        id=message_id,
        surface=Surface.HOMESCREEN,
        style=MessageStyle(priority=priority),
    )


# ======================================================================
# InMemoryMessageSource
# ======================================================================


class TestInMemoryMessageSource:
    """Fixed-list source."""

    @pytest.mark.asyncio
    async def test_get_all_returns_copy(self) -> None:
        source = InMemoryMessageSource([_msg("a")])
        first = await source.get_all()
        first.append(_msg("b"))
        assert [m.id for m in await source.get_all()] == ["a"]

    @pytest.mark.asyncio
    async def test_unavailable_raises(self) -> None:
        source = InMemoryMessageSource([_msg("a")])
        source.available = False
        with pytest.raises(SourceUnavailable):
            await source.get_all()

    @pytest.mark.asyncio
    async def test_set_messages(self) -> None:
        source = InMemoryMessageSource()
        source.set_messages([_msg("z")])
        assert [m.id for m in await source.get_all()] == ["z"]
        assert source.fetch_count == 1

    @pytest.mark.asyncio
    async def test_get_next_uses_selector(self) -> None:
        source = InMemoryMessageSource()
        known = [_msg("low", 1), _msg("high", 9)]
        chosen = await source.get_next(Surface.HOMESCREEN, known, {}, always_eligible)
        assert chosen.id == "high"

    @pytest.mark.asyncio
    async def test_get_next_honours_expiry_predicate(self) -> None:
        source = InMemoryMessageSource()
        capped = Message(
            id="capped",
            surface=Surface.HOMESCREEN,
            style=MessageStyle(max_display_count=1),
            metadata=MessageMetadata(display_count=1),
        )
        assert await source.get_next(
            Surface.HOMESCREEN, [capped], {}, always_eligible
        ) is None
        chosen = await source.get_next(
            Surface.HOMESCREEN,
            [capped],
            {},
            always_eligible,
            make_expiry_predicate(inclusive=False),
        )
        assert chosen is capped


# ======================================================================
# YamlMessageSource
# ======================================================================


class TestYamlMessageSource:
    """YAML file source."""

    @pytest.mark.asyncio
    async def test_reads_definitions(self) -> None:
        data = {"messages": [{"id": "a", "style": "CUSTOM"}, {"id": "b"}]}
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(data, f)
            path = f.name

        config = EngineConfig(styles={"CUSTOM": StyleConfig(priority=7, max_display_count=2)})
        try:
            msgs = await YamlMessageSource(path, config).get_all()
            assert [m.id for m in msgs] == ["a", "b"]
            assert msgs[0].priority == 7
        finally:
            os.unlink(path)

    @pytest.mark.asyncio
    async def test_missing_file_raises_source_unavailable(self) -> None:
        with pytest.raises(SourceUnavailable):
            await YamlMessageSource("/does/not/exist.yaml").get_all()


# ======================================================================
# Sinks
# ======================================================================


class TestRecordingLifecycleSink:
    """In-memory recording sink."""

    @pytest.mark.asyncio
    async def test_records_in_order(self) -> None:
        sink = RecordingLifecycleSink()
        m = _msg("a")
        await sink.on_displayed(m.with_display_recorded(now=1.0))
        await sink.on_clicked(m)
        assert [r.kind for r in sink.records] == ["displayed", "clicked"]
        assert sink.records[0].display_count == 1

    @pytest.mark.asyncio
    async def test_counts_and_summary(self) -> None:
        sink = RecordingLifecycleSink()
        await sink.on_displayed(_msg("a"))
        await sink.on_displayed(_msg("a"))
        await sink.on_dismissed(_msg("b"))
        assert sink.count("displayed") == 2
        assert sink.count("displayed", "a") == 2
        assert sink.count("clicked") == 0
        assert sink.summary() == {
            "displayed": {"a": 2},
            "clicked": {},
            "dismissed": {"b": 1},
        }


class TestLoggingLifecycleSink:
    @pytest.mark.asyncio
    async def test_logs_each_event(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingLifecycleSink()
        with caplog.at_level(logging.INFO, logger="surfacing.sources.sinks"):
            await sink.on_displayed(_msg("a"))
            await sink.on_clicked(_msg("a"))
            await sink.on_dismissed(_msg("a"))
        messages = [r.getMessage() for r in caplog.records]
        assert any(msg.startswith("Displayed a") for msg in messages)
        assert any(msg.startswith("Clicked a") for msg in messages)
        assert any(msg.startswith("Dismissed a") for msg in messages)


class _BrokenSink(RecordingLifecycleSink):
    async def on_displayed(self, message: Message) -> None:
        raise RuntimeError("sink down")


class TestFanOutLifecycleSink:
    """Forwarding to several sinks."""

    @pytest.mark.asyncio
    async def test_forwards_to_every_sink(self) -> None:
        first, second = RecordingLifecycleSink(), RecordingLifecycleSink()
        fan_out = FanOutLifecycleSink(first, second)
        await fan_out.on_displayed(_msg("a"))
        await fan_out.on_clicked(_msg("a"))
        await fan_out.on_dismissed(_msg("b"))
        assert first.summary() == second.summary()
        assert second.count("dismissed", "b") == 1

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_stop_the_rest(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        after = RecordingLifecycleSink()
        fan_out = FanOutLifecycleSink(_BrokenSink(), after)
        with caplog.at_level(logging.ERROR, logger="surfacing.sources.sinks"):
            await fan_out.on_displayed(_msg("a"))
        assert after.count("displayed", "a") == 1
        assert any(r.exc_info for r in caplog.records)


# ======================================================================
# MessageStorage
# ======================================================================


class TestMessageStorage:
    """Interaction metadata kept across fetches."""

    @pytest.fixture
    def definitions(self) -> InMemoryMessageSource:
        return InMemoryMessageSource([_msg("a"), _msg("b")])

    @pytest.mark.asyncio
    async def test_fresh_storage_passes_definitions_through(
        self, definitions: InMemoryMessageSource
    ) -> None:
        storage = MessageStorage(definitions)
        assert [m.id for m in await storage.get_all()] == ["a", "b"]
        assert storage.metadata_for("a") is None

    @pytest.mark.asyncio
    async def test_display_count_survives_refetch(
        self, definitions: InMemoryMessageSource
    ) -> None:
        storage = MessageStorage(definitions)
        await storage.on_displayed(_msg("a").with_display_recorded(now=3.0))

        a = (await storage.get_all())[0]
        assert a.display_count == 1
        assert a.metadata.last_time_shown == 3.0

    @pytest.mark.asyncio
    async def test_clicked_message_is_not_returned(
        self, definitions: InMemoryMessageSource
    ) -> None:
        storage = MessageStorage(definitions)
        await storage.on_clicked(_msg("a"))
        assert [m.id for m in await storage.get_all()] == ["b"]
        assert storage.metadata_for("a").pressed is True

    @pytest.mark.asyncio
    async def test_dismiss_keeps_recorded_display_count(
        self, definitions: InMemoryMessageSource
    ) -> None:
        storage = MessageStorage(definitions)
        await storage.on_displayed(_msg("b").with_display_recorded(now=1.0))
        # The dismissed reference predates the display.
        await storage.on_dismissed(_msg("b"))
        metadata = storage.metadata_for("b")
        assert metadata.dismissed is True
        assert metadata.display_count == 1
        assert [m.id for m in await storage.get_all()] == ["a"]

    @pytest.mark.asyncio
    async def test_capped_message_is_not_returned(self) -> None:
        capped = Message(
            id="c", surface=Surface.HOMESCREEN, style=MessageStyle(max_display_count=1)
        )
        storage = MessageStorage(InMemoryMessageSource([capped]))
        await storage.on_displayed(capped.with_display_recorded(now=1.0))
        assert await storage.get_all() == []

    @pytest.mark.asyncio
    async def test_expiry_predicate_is_configurable(self) -> None:
        capped = Message(
            id="c", surface=Surface.HOMESCREEN, style=MessageStyle(max_display_count=1)
        )
        storage = MessageStorage(
            InMemoryMessageSource([capped]), make_expiry_predicate(inclusive=False)
        )
        await storage.on_displayed(capped.with_display_recorded(now=1.0))
        assert [m.id for m in await storage.get_all()] == ["c"]

    @pytest.mark.asyncio
    async def test_unavailable_definitions_propagate(
        self, definitions: InMemoryMessageSource
    ) -> None:
        definitions.available = False
        with pytest.raises(SourceUnavailable):
            await MessageStorage(definitions).get_all()
