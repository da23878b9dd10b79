"""
CircuitMap Backend — Tandem Transformer Tests
===============================================

What we test:
    ✅ Split plan: half A patches the record, half B copies its attributes
    ✅ Label suffixes are not stacked on re-split
    ✅ Occupied halves and non-combined positions are refused
"""

import pytest

from app.exceptions import NotCombinedTandemError, PositionOccupiedError
from app.services.tandem import base_label, split_combined_tandem


class TestSplitPlan:

    def test_kitchen_outlets(self, make_breaker):
        breaker = make_breaker(
            "14A/14B", label="Kitchen Outlets", amperage=20, poles=1,
            circuit_type="kitchen", protection_type="gfci", notes="counter", sort_order=3,
        )
        plan = split_combined_tandem(breaker, [breaker])

        assert plan.source_position == "14A/14B"
        assert plan.breaker_a.breaker_id == breaker.id
        assert plan.breaker_a.position == "14A"
        assert plan.breaker_a.label == "Kitchen Outlets (A)"

        half_b = plan.breaker_b
        assert half_b.position == "14B"
        assert half_b.label == "Kitchen Outlets (B)"
        assert half_b.panel_id == breaker.panel_id
        assert (half_b.amperage, half_b.poles, half_b.circuit_type) == (20, 1, "kitchen")
        assert half_b.protection_type == "gfci"
        assert half_b.notes == "counter"
        assert half_b.sort_order == 3

    def test_fields_for_new_record(self, make_breaker):
        plan = split_combined_tandem(make_breaker("2A/2B"))
        fields = plan.breaker_b.as_fields()
        assert fields["position"] == "2B"
        assert "id" not in fields

    def test_lowercase_and_reversed_suffixes(self, make_breaker):
        plan = split_combined_tandem(make_breaker("5b/5a", label="Bath"))
        assert plan.breaker_a.position == "5B"
        assert plan.breaker_b.position == "5A"
        assert plan.breaker_b.label == "Bath (A)"

    def test_resplit_label_not_doubled(self, make_breaker):
        plan = split_combined_tandem(make_breaker("14A/14B", label="Kitchen Outlets (A)"))
        assert plan.breaker_a.label == "Kitchen Outlets (A)"
        assert plan.breaker_b.label == "Kitchen Outlets (B)"

    def test_base_label(self):
        assert base_label("Dryer (b) ") == "Dryer"
        assert base_label("Dryer (C)") == "Dryer (C)"
        assert base_label(None) == ""

    def test_halves_come_from_parsed_slot(self, make_breaker):
        plan = split_combined_tandem(make_breaker("014a/014b"))
        assert plan.source_position == "014A/014B"
        assert (plan.breaker_a.position, plan.breaker_b.position) == ("14A", "14B")

    def test_own_record_ignored_in_occupancy(self, make_breaker):
        breaker = make_breaker("14A/14B")
        split_combined_tandem(breaker, [breaker, make_breaker("7")])


class TestSplitRefused:

    def test_half_a_occupied(self, make_breaker):
        breaker = make_breaker("14A/14B")
        with pytest.raises(PositionOccupiedError) as exc_info:
            split_combined_tandem(breaker, [breaker, make_breaker("14A")])
        assert exc_info.value.occupied == ["14A"]
        assert exc_info.value.message == "Position(s) 14A already occupied. Delete them first."

    def test_both_halves_occupied(self, make_breaker):
        breaker = make_breaker("14A/14B")
        with pytest.raises(PositionOccupiedError) as exc_info:
            split_combined_tandem(breaker, [make_breaker("14b"), make_breaker("14A")])
        assert exc_info.value.occupied == ["14A", "14B"]

    @pytest.mark.parametrize("position", ["14A", "7", "1-3", "14A/15B", ""])
    def test_not_combined(self, make_breaker, position):
        with pytest.raises(NotCombinedTandemError):
            split_combined_tandem(make_breaker(position))

    def test_same_suffix_refused(self, make_breaker):
        with pytest.raises(NotCombinedTandemError) as exc_info:
            split_combined_tandem(make_breaker("14A/14A"))
        assert exc_info.value.context["reason"] == "both halves use the same suffix"
