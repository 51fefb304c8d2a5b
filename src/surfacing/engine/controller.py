"""Lifecycle controller: drives message state from lifecycle events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

from surfacing.engine.actions import (
    ConsumeMessageToShow,
    Evaluate,
    MessageClicked,
    MessageDismissed,
    MessagingAction,
    Restore,
    UpdateMessages,
    UpdateMessageToShow,
)
from surfacing.engine.background import BackgroundTasks
from surfacing.engine.eligibility import (
    EligibilityEvaluator,
    ExpiryPredicate,
    TriggerEligibility,
    default_is_expired,
    record_display,
)
from surfacing.engine.message import Message
from surfacing.engine.selector import select_next
from surfacing.errors import SourceUnavailable

if TYPE_CHECKING:
    from surfacing.engine.store import Dispatch, MessageStore
    from surfacing.sources.base import LifecycleSink, MessageSource

logger = logging.getLogger(__name__)


class LifecycleController:
    """Store middleware that turns lifecycle events into state updates.

    Handles ``Restore``, ``Evaluate``, ``MessageClicked`` and
    ``MessageDismissed``; every other action passes straight through.
    Message removal and replacement always match on ``id``.  A surface's
    show-slot is only cleared when it still holds the id the event refers
    to, so a late event for a replaced message leaves the new one alone.

    Sink notifications and the restore fetch run as background tasks.  They
    never write to the state directly: the fetched list comes back through
    ``post`` as an ``UpdateMessages`` action.

    Parameters
    ----------
    source:
        Provides the full message list on ``Restore``.
    sink:
        Receives displayed/clicked/dismissed notifications.
    evaluator:
        Eligibility predicate ``(message, context) -> bool``.
    is_expired:
        Expiry predicate applied after each display.
    mark_displayed:
        Returns the next version of a message after one more display.
    context:
        Zero-argument callable returning the current evaluation context.
    tasks:
        Background task group; a private one is created if omitted.
    """

    def __init__(
        self,
        source: MessageSource | None = None,
        sink: LifecycleSink | None = None,
        evaluator: EligibilityEvaluator | None = None,
        is_expired: ExpiryPredicate = default_is_expired,
        mark_displayed: Callable[[Message], Message] = record_display,
        context: Callable[[], Mapping[str, Any]] | None = None,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.is_expired = is_expired
        self.evaluator = evaluator or TriggerEligibility(is_expired)
        self.mark_displayed = mark_displayed
        self.context = context or dict
        self.tasks = tasks or BackgroundTasks()
        self.post: Dispatch | None = None

    # ------------------------------------------------------------------
    # Middleware interface
    # ------------------------------------------------------------------

    def __call__(
        self,
        store: MessageStore,
        next_dispatch: Dispatch,
        action: MessagingAction,
    ) -> None:
        if isinstance(action, Restore):
            self.tasks.spawn(self._restore(store), name="restore")
        elif isinstance(action, Evaluate):
            self._on_evaluate(store, action)
        elif isinstance(action, MessageClicked):
            self._on_clicked(store, action.message)
        elif isinstance(action, MessageDismissed):
            self._on_dismissed(store, action.message)
        next_dispatch(action)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _restore(self, store: MessageStore) -> None:
        if self.source is None:
            logger.warning("Restore requested but no message source is configured")
            return
        try:
            messages = await self.source.get_all()
        except SourceUnavailable as exc:
            logger.warning("Message source unavailable, keeping current messages: %s", exc)
            return
        except Exception:
            logger.exception("Message source failed, keeping current messages")
            return

        logger.info("Restored %d message(s)", len(messages))
        update = UpdateMessages(tuple(messages))
        if self.post is not None:
            self.post(update)
        else:
            store.dispatch(update)

    def _on_evaluate(self, store: MessageStore, action: Evaluate) -> None:
        message = select_next(
            action.surface,
            store.state.messages,
            self.context(),
            self.evaluator,
            self.is_expired,
        )
        if message is None:
            logger.debug("No eligible message for %s", action.surface.value)
            store.dispatch(ConsumeMessageToShow(action.surface))
            return

        logger.debug("Showing message %s on %s", message.id, action.surface.value)
        store.dispatch(UpdateMessageToShow(message))
        self._on_displayed(store, message)

    def _on_displayed(self, store: MessageStore, old: Message) -> None:
        new = self.mark_displayed(old)
        if self.is_expired(new):
            logger.debug(
                "Message %s expired after %d display(s)", new.id, new.display_count
            )
            self._consume_if_shown(store, old)
            messages = self._remove(store, old)
        else:
            messages = self._replace(store, old, new)
        store.dispatch(UpdateMessages(messages))
        self._notify(self.sink.on_displayed if self.sink else None, new, "displayed")

    def _on_clicked(self, store: MessageStore, message: Message) -> None:
        self._notify(self.sink.on_clicked if self.sink else None, message, "clicked")
        self._retire(store, message)

    def _on_dismissed(self, store: MessageStore, message: Message) -> None:
        self._retire(store, message)
        self._notify(self.sink.on_dismissed if self.sink else None, message, "dismissed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _retire(self, store: MessageStore, message: Message) -> None:
        if store.state.get_message(message.id) is None:
            logger.debug("Message %s already retired", message.id)
            return
        self._consume_if_shown(store, message)
        store.dispatch(UpdateMessages(self._remove(store, message)))

    def _consume_if_shown(self, store: MessageStore, message: Message) -> None:
        if store.state.is_shown(message):
            store.dispatch(ConsumeMessageToShow(message.surface))

    def _remove(self, store: MessageStore, message: Message) -> tuple[Message, ...]:
        return tuple(m for m in store.state.messages if m.id != message.id)

    def _replace(
        self, store: MessageStore, old: Message, new: Message
    ) -> tuple[Message, ...]:
        if store.state.is_shown(old):
            store.dispatch(UpdateMessageToShow(new))
        return tuple(new if m.id == old.id else m for m in store.state.messages)

    def _notify(
        self,
        hook: Callable[[Message], Awaitable[Any]] | None,
        message: Message,
        kind: str,
    ) -> None:
        if hook is None:
            return
        self.tasks.spawn(hook(message), name=f"{kind}:{message.id}")
