"""Eligibility and expiry predicates.

The engine treats eligibility as an opaque ``(message, context) -> bool``
callable.  :class:`TriggerEligibility` is the default: it resolves a
message's trigger names against boolean flags in the context.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping

from surfacing.engine.message import Message

EligibilityEvaluator = Callable[[Message, Mapping[str, Any]], bool]
ExpiryPredicate = Callable[[Message], bool]


class TriggerEligibility:
    """Evaluator that looks trigger names up in the evaluation context.

    A message qualifies when every name in ``trigger_if_all`` is truthy in
    the context and no name in ``exclude_if_any`` is.  Unknown names count
    as false.  Expired messages never qualify.
    """

    def __init__(self, is_expired: ExpiryPredicate | None = None) -> None:
        self._is_expired = is_expired or default_is_expired

    def __call__(self, message: Message, context: Mapping[str, Any]) -> bool:
        if self._is_expired(message):
            return False
        if not all(context.get(name) for name in message.trigger_if_all):
            return False
        if any(context.get(name) for name in message.exclude_if_any):
            return False
        return True


def always_eligible(message: Message, context: Mapping[str, Any]) -> bool:
    return True


def default_is_expired(message: Message) -> bool:
    return message.is_expired


def make_expiry_predicate(inclusive: bool = True) -> ExpiryPredicate:
    """Build an expiry predicate from the display-cap rule.

    With *inclusive* the message expires once ``display_count`` reaches
    ``max_display_count``; otherwise only once it exceeds it.  Pressed or
    dismissed messages are expired either way.
    """

    def is_expired(message: Message) -> bool:
        count = message.metadata.display_count
        cap = message.style.max_display_count
        reached = count >= cap if inclusive else count > cap
        return reached or message.metadata.pressed or message.metadata.dismissed

    return is_expired


def record_display(message: Message) -> Message:
    """Default "mark displayed" operation: bump the count, stamp the time."""
    return message.with_display_recorded(time.time())
