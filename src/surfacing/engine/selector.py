"""Per-surface message selection."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from surfacing.engine.eligibility import (
    EligibilityEvaluator,
    ExpiryPredicate,
    default_is_expired,
)
from surfacing.engine.message import Message, Surface

logger = logging.getLogger(__name__)


def select_next(
    surface: Surface,
    messages: Iterable[Message],
    context: Mapping[str, Any],
    evaluator: EligibilityEvaluator,
    is_expired: ExpiryPredicate = default_is_expired,
) -> Message | None:
    """Return the best eligible message for *surface*, or ``None``.

    Candidates must target *surface*, must not be expired, and must pass
    *evaluator*.  The highest ``style.priority`` wins; on equal priority the
    earliest message in *messages* wins, so the result is deterministic for
    a deterministic evaluator.

    An evaluator that raises is logged and the message is skipped.
    """
    best: Message | None = None
    for message in messages:
        if message.surface != surface or is_expired(message):
            continue
        if best is not None and message.priority <= best.priority:
            # Cannot beat the current pick; skip the evaluator call.
            continue
        try:
            eligible = evaluator(message, context)
        except Exception:
            logger.exception(
                "Eligibility evaluation failed for message %s", message.id
            )
            continue
        if eligible:
            best = message
    return best
