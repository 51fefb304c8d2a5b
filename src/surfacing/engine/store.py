"""Message store: current snapshot, reducer, middleware chain, observers."""

from __future__ import annotations

import logging
from typing import Callable

from surfacing.engine.actions import (
    ConsumeMessageToShow,
    MessagingAction,
    UpdateMessages,
    UpdateMessageToShow,
)
from surfacing.engine.state import MessagingState

logger = logging.getLogger(__name__)

Dispatch = Callable[[MessagingAction], None]
Middleware = Callable[["MessageStore", Dispatch, MessagingAction], None]
StateListener = Callable[[MessagingState], None]


def reduce(state: MessagingState, action: MessagingAction) -> MessagingState:
    """Apply an outbound update action to *state*."""
    if isinstance(action, UpdateMessages):
        return state.with_messages(action.messages)
    if isinstance(action, UpdateMessageToShow):
        return state.with_message_to_show(action.message)
    if isinstance(action, ConsumeMessageToShow):
        return state.without_message_to_show(action.surface)
    return state


class MessageStore:
    """Holds the current :class:`MessagingState`.

    ``dispatch`` runs the action through every middleware, then through
    :func:`reduce`.  Middleware may dispatch follow-up actions re-entrantly;
    those are fully applied before control returns to it.  Each new
    snapshot is published with a single assignment and then handed to the
    registered listeners.

    Parameters
    ----------
    state:
        Initial snapshot (empty by default).
    middleware:
        Callables ``(store, next, action)`` run in order ahead of the reducer.
    strict:
        Check show-slot invariants after every reduction.
    """

    def __init__(
        self,
        state: MessagingState | None = None,
        middleware: list[Middleware] | None = None,
        strict: bool = True,
    ) -> None:
        self._state = state or MessagingState()
        self._middleware: list[Middleware] = list(middleware or [])
        self._listeners: list[StateListener] = []
        self.strict = strict

    @property
    def state(self) -> MessagingState:
        return self._state

    def add_middleware(self, middleware: Middleware) -> None:
        self._middleware.append(middleware)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for new snapshots; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: MessagingAction) -> None:
        """Run *action* through the middleware chain and the reducer."""
        self._chain(0)(action)

    def _chain(self, index: int) -> Dispatch:
        if index >= len(self._middleware):
            return self._reduce
        middleware = self._middleware[index]
        next_dispatch = self._chain(index + 1)

        def run(action: MessagingAction) -> None:
            middleware(self, next_dispatch, action)

        return run

    def _reduce(self, action: MessagingAction) -> None:
        new_state = reduce(self._state, action)
        if new_state is self._state:
            return
        if self.strict:
            new_state.check_invariants()
        self._state = new_state
        logger.debug("Applied %s", type(action).__name__)
        self._notify(new_state)

    def _notify(self, state: MessagingState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener raised an exception")
