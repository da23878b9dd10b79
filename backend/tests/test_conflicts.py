"""
CircuitMap Backend — Conflict Resolver Tests
==============================================

What we test:
    ✅ Exact duplicates, case-insensitively
    ✅ Range overlap only on bonded (same-parity) slots
    ✅ The moved breaker is excluded from its own scan
    ✅ Known gaps, pinned as current behaviour:
       - tandem halves skip the range rule ("1A" next to "1-3")
       - a combined token is not compared with existing halves
       - a new range is not compared with singles it would cover
"""

import pytest

from app.exceptions import ExactDuplicatePositionError, MultiPoleRangeOverlapError
from app.services.conflicts import (
    ExactDuplicate,
    Ok,
    RangeOverlap,
    check_conflict,
    ensure_no_conflict,
    slot_is_bonded_within_range,
)


class TestSlotBonding:

    def test_same_parity_slots_bonded(self):
        assert slot_is_bonded_within_range(1, 1, 3)
        assert slot_is_bonded_within_range(3, 1, 3)
        assert slot_is_bonded_within_range(5, 1, 5)

    def test_opposite_column_not_bonded(self):
        assert not slot_is_bonded_within_range(2, 1, 3)
        assert not slot_is_bonded_within_range(4, 2, 3)

    def test_outside_range(self):
        assert not slot_is_bonded_within_range(5, 1, 3)
        assert not slot_is_bonded_within_range(0, 1, 3)


class TestCheckConflict:

    @pytest.fixture(autouse=True)
    def _panel(self, make_breaker):
        self.breakers = [make_breaker("7"), make_breaker("1-3")]

    def test_exact_duplicate(self):
        assert check_conflict(self.breakers, "7") == ExactDuplicate(position="7")

    def test_range_start_overlaps(self):
        assert check_conflict(self.breakers, "1") == RangeOverlap(
            conflicting_position="1-3", conflicting_slot=1
        )

    def test_range_end_overlaps(self):
        assert check_conflict(self.breakers, "3") == RangeOverlap(
            conflicting_position="1-3", conflicting_slot=3
        )

    def test_opposite_column_ok(self):
        assert check_conflict(self.breakers, "2") == Ok()

    def test_free_slot_ok(self):
        assert check_conflict(self.breakers, "9") == Ok()

    def test_new_range_starting_inside_existing_range(self):
        assert isinstance(check_conflict(self.breakers, "3-5"), RangeOverlap)

    def test_case_insensitive_duplicate(self, make_breaker):
        breakers = [make_breaker("14A")]
        assert check_conflict(breakers, "14a") == ExactDuplicate(position="14A")

    def test_tandem_halves_coexist(self, make_breaker):
        breakers = [make_breaker("14A")]
        assert check_conflict(breakers, "14B") == Ok()

    def test_empty_panel(self):
        assert check_conflict([], "1-3") == Ok()

    def test_moved_breaker_excluded(self, make_breaker):
        moving = make_breaker("7")
        assert check_conflict([moving], "7", exclude_breaker_id=moving.id) == Ok()

    def test_excluded_range_does_not_block_its_own_slots(self, make_breaker):
        moving = make_breaker("1-3")
        assert check_conflict([moving], "3", exclude_breaker_id=moving.id) == Ok()

    def test_exclusion_only_skips_that_breaker(self, make_breaker):
        moving = make_breaker("9")
        other = make_breaker("7")
        assert check_conflict([moving, other], "7", exclude_breaker_id=moving.id) == ExactDuplicate("7")


class TestKnownGaps:

    def test_tandem_half_inside_bonded_range_accepted(self, make_breaker):
        assert check_conflict([make_breaker("1-3")], "1A") == Ok()
        assert check_conflict([make_breaker("1-3")], "3B") == Ok()

    def test_combined_token_not_compared_with_existing_half(self, make_breaker):
        # The create flow splits at once and PositionOccupiedError catches it there
        assert check_conflict([make_breaker("14A")], "14A/14B") == Ok()

    def test_range_covering_existing_single_accepted(self, make_breaker):
        assert check_conflict([make_breaker("3")], "1-3") == Ok()


class TestEnsureNoConflict:

    def test_ok_returns_none(self, make_breaker):
        assert ensure_no_conflict([make_breaker("7")], "9") is None

    def test_duplicate_raises(self, make_breaker):
        with pytest.raises(ExactDuplicatePositionError) as exc_info:
            ensure_no_conflict([make_breaker("7")], " 7 ")
        assert exc_info.value.message == "Position 7 is already in use on this panel"
        assert exc_info.value.error_code == "exact_duplicate_position"

    def test_overlap_raises_with_context(self, make_breaker):
        with pytest.raises(MultiPoleRangeOverlapError) as exc_info:
            ensure_no_conflict([make_breaker("1-3")], "3")
        err = exc_info.value
        assert err.conflicting_position == "1-3"
        assert err.conflicting_slot == 3
        assert err.context == {"position": "3", "conflicting_position": "1-3", "conflicting_slot": 3}


class TestOversizedTokens:

    def test_oversized_proposal_does_not_raise(self, make_breaker):
        assert check_conflict([make_breaker("1-3")], "1" * 5000) == Ok()

    def test_oversized_existing_position_ignored_by_range_rule(self, make_breaker):
        breakers = [make_breaker("1-" + "3" * 5000)]
        assert check_conflict(breakers, "3") == Ok()
