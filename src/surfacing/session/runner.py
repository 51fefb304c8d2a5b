"""Messaging session wiring and a scripted simulation runner."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from surfacing.config.schema import EngineConfig
from surfacing.engine.actions import (
    Evaluate,
    MessageClicked,
    MessageDismissed,
    Restore,
)
from surfacing.engine.background import BackgroundTasks
from surfacing.engine.controller import LifecycleController
from surfacing.engine.dispatcher import DispatchLoop
from surfacing.engine.eligibility import TriggerEligibility, make_expiry_predicate
from surfacing.engine.message import Message, Surface
from surfacing.engine.state import MessagingState
from surfacing.engine.store import MessageStore, StateListener
from surfacing.sources.base import LifecycleSink, MessageSource
from surfacing.sources.sinks import FanOutLifecycleSink, RecordingLifecycleSink
from surfacing.sources.storage import MessageStorage

logger = logging.getLogger(__name__)


class MessagingSession:
    """A store, lifecycle controller and dispatch loop wired together.

    Use as an async context manager; lifecycle methods only queue actions,
    call :meth:`drain` to wait for them (and for background work) to finish.

    A *source* that is not already a :class:`MessageStorage` is wrapped in
    one, so interactions survive later restores.  *sink*, if given, receives
    the same notifications after the storage.
    """

    def __init__(
        self,
        config: EngineConfig,
        source: MessageSource | None = None,
        sink: LifecycleSink | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.config = config
        self.context: dict[str, Any] = dict(config.context)
        if context:
            self.context.update(context)

        is_expired = make_expiry_predicate(config.expiry.inclusive)
        self.storage: MessageStorage | None = None
        if isinstance(source, MessageStorage):
            self.storage = source
        elif source is not None:
            self.storage = MessageStorage(source, is_expired)
        if self.storage is not None:
            sink = self.storage if sink is None else FanOutLifecycleSink(self.storage, sink)

        tasks = BackgroundTasks()
        self.controller = LifecycleController(
            source=self.storage,
            sink=sink,
            evaluator=TriggerEligibility(is_expired),
            is_expired=is_expired,
            context=lambda: self.context,
            tasks=tasks,
        )
        self.store = MessageStore(
            middleware=[self.controller], strict=config.strict_invariants
        )
        self.loop = DispatchLoop(self.store, tasks=tasks)
        self.controller.post = self.loop.submit

    async def __aenter__(self) -> MessagingSession:
        self.loop.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.drain()
        await self.loop.stop()

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    def restore(self) -> None:
        self.loop.submit(Restore())

    def evaluate(self, surface: Surface) -> None:
        self.loop.submit(Evaluate(surface))

    def click(self, message: Message) -> None:
        self.loop.submit(MessageClicked(message))

    def dismiss(self, message: Message) -> None:
        self.loop.submit(MessageDismissed(message))

    async def drain(self) -> None:
        await self.loop.drain()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> MessagingState:
        return self.store.state

    def message_to_show(self, surface: Surface) -> Message | None:
        return self.store.state.get_message_to_show(surface)

    def subscribe(self, listener: StateListener) -> Any:
        return self.store.subscribe(listener)


# ----------------------------------------------------------------------
# Simulation
# ----------------------------------------------------------------------


@dataclass
class SimulationResult:
    """Outcome of :func:`run_simulation`."""

    rounds: int
    shown: list[tuple[int, str, str]] = field(default_factory=list)  # (round, surface, id)
    remaining: list[str] = field(default_factory=list)
    lifecycle_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    duration: float = 0.0


async def run_simulation(
    config: EngineConfig,
    source: MessageSource,
    rounds: int = 1,
    on_show: str = "keep",
    surfaces: list[Surface] | None = None,
    context: dict[str, Any] | None = None,
) -> SimulationResult:
    """Restore messages, then evaluate every surface for *rounds* rounds.

    *on_show* decides what the simulated user does with each shown message:
    ``"keep"`` (nothing), ``"click"`` or ``"dismiss"``.
    """
    if on_show not in ("keep", "click", "dismiss"):
        raise ValueError(f"Unknown on_show behaviour: {on_show!r}")

    start_time = time.monotonic()
    sink = RecordingLifecycleSink()
    result = SimulationResult(rounds=rounds)
    targets = surfaces or list(config.surfaces)

    async with MessagingSession(config, source=source, sink=sink, context=context) as session:
        session.restore()
        await session.drain()
        logger.info("Simulation starting with %d message(s)", len(session.state.messages))

        for round_no in range(1, rounds + 1):
            for surface in targets:
                seen = len(sink.records)
                session.evaluate(surface)
                await session.drain()
                for record in sink.records[seen:]:
                    if record.kind == "displayed":
                        result.shown.append((round_no, surface.value, record.message_id))
                # A message that expired on this display has already left its slot.
                shown = session.message_to_show(surface)
                if shown is None:
                    continue
                if on_show == "click":
                    session.click(shown)
                elif on_show == "dismiss":
                    session.dismiss(shown)
                await session.drain()

        result.remaining = [m.id for m in session.state.messages]

    result.lifecycle_counts = sink.summary()
    result.duration = time.monotonic() - start_time
    return result
