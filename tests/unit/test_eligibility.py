"""Tests for surfacing.engine.eligibility."""

from __future__ import annotations

from surfacing.engine.eligibility import (
    TriggerEligibility,
    always_eligible,
    make_expiry_predicate,
    record_display,
)
from surfacing.engine.message import Message, MessageMetadata, MessageStyle, Surface


def _msg(count: int = 0, cap: int = 2, **kwargs) -> Message:
    return Message(
        id="m",
        surface=Surface.HOMESCREEN,
        style=MessageStyle(max_display_count=cap),
        metadata=MessageMetadata(display_count=count),
        **kwargs,
    )


# ======================================================================
# TriggerEligibility
# ======================================================================


class TestTriggerEligibility:
    """Trigger names resolved against context flags."""

    def test_no_triggers_is_eligible(self) -> None:
        assert TriggerEligibility()(_msg(), {}) is True

    def test_all_triggers_true(self) -> None:
        m = _msg(trigger_if_all=("a", "b"))
        assert TriggerEligibility()(m, {"a": True, "b": 1}) is True

    def test_missing_trigger_is_false(self) -> None:
        m = _msg(trigger_if_all=("a", "b"))
        assert TriggerEligibility()(m, {"a": True}) is False

    def test_exclude_blocks(self) -> None:
        m = _msg(exclude_if_any=("signed_in",))
        assert TriggerEligibility()(m, {"signed_in": True}) is False

    def test_exclude_false_allows(self) -> None:
        m = _msg(exclude_if_any=("signed_in",))
        assert TriggerEligibility()(m, {"signed_in": False}) is True

    def test_expired_is_never_eligible(self) -> None:
        assert TriggerEligibility()(_msg(count=2, cap=2), {}) is False

    def test_custom_expiry_predicate(self) -> None:
        evaluator = TriggerEligibility(make_expiry_predicate(inclusive=False))
        assert evaluator(_msg(count=2, cap=2), {}) is True

    def test_always_eligible(self) -> None:
        assert always_eligible(_msg(count=99), {}) is True


# ======================================================================
# Expiry predicate
# ======================================================================


class TestMakeExpiryPredicate:
    """Inclusive vs exclusive display caps."""

    def test_inclusive_expires_at_cap(self) -> None:
        is_expired = make_expiry_predicate(inclusive=True)
        assert is_expired(_msg(count=1, cap=2)) is False
        assert is_expired(_msg(count=2, cap=2)) is True

    def test_exclusive_expires_past_cap(self) -> None:
        is_expired = make_expiry_predicate(inclusive=False)
        assert is_expired(_msg(count=2, cap=2)) is False
        assert is_expired(_msg(count=3, cap=2)) is True

    def test_pressed_always_expired(self) -> None:
        is_expired = make_expiry_predicate(inclusive=False)
        assert is_expired(_msg().with_pressed()) is True


class TestRecordDisplay:
    def test_bumps_count_and_time(self) -> None:
        updated = record_display(_msg(count=0))
        assert updated.display_count == 1
        assert updated.metadata.last_time_shown > 0
