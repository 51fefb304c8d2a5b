"""Single-worker dispatch loop serializing actions into the message store."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from surfacing.engine.background import BackgroundTasks

if TYPE_CHECKING:
    from surfacing.engine.actions import MessagingAction
    from surfacing.engine.store import MessageStore

logger = logging.getLogger(__name__)


class DispatchLoop:
    """Feeds actions to a :class:`MessageStore` one at a time, in order.

    ``submit`` never blocks; a single worker task drains the queue.  A
    failing action is logged and the worker moves on to the next one.

    Parameters
    ----------
    store:
        The store every action is dispatched to.
    tasks:
        Background task group to wait on in :meth:`drain`.
    """

    def __init__(
        self,
        store: MessageStore,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self.store = store
        self.tasks = tasks or BackgroundTasks()
        self._queue: asyncio.Queue[MessagingAction] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self.running:
            return
        self._worker = asyncio.get_running_loop().create_task(
            self._run(), name="dispatch-loop"
        )

    async def stop(self) -> None:
        """Process whatever is queued, then stop the worker."""
        if self._worker is None:
            return
        await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def __aenter__(self) -> DispatchLoop:
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, action: MessagingAction) -> None:
        """Queue *action* for processing after everything already queued."""
        self._queue.put_nowait(action)

    async def drain(self) -> None:
        """Wait until the queue is empty and background work has settled.

        Background tasks may post new actions (a finished restore does), so
        this alternates until both are quiet.  The worker must be running.
        """
        while True:
            await self._queue.join()
            if not self.tasks.pending:
                return
            await self.tasks.wait()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            action = await self._queue.get()
            try:
                self.store.dispatch(action)
            except Exception:
                logger.exception("Failed to process %s", type(action).__name__)
            finally:
                self._queue.task_done()
