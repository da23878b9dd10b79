"""
CircuitMap Backend — Breaker Position Conflict Resolver
=========================================================

What:  Decides whether a proposed position collides with a panel's breakers.
Why:   Two breakers silently claiming the same physical slot corrupt the
       panel map; every create and move is gated by this check.
How:   Pure scan over the panel's current breakers (fetched by the caller
       inside its transaction). Conflicts are reported, never resolved.

Rules (applied in order, skipping the breaker being moved):
    1. Exact duplicate:  identical normalized token already on the panel.
                           "14A" + "14B" coexist; "14A" + "14A" do not.
    2. Range overlap:    only for non-tandem tokens: the proposed leading
                           slot is one of the slots an existing multi-pole
                           range bonds (same parity as the range start).
    3. Otherwise OK.

Known asymmetry: tandem tokens skip rule 2, so "1A" is accepted next to a
"1-3" breaker. Kept as-is; see tests/test_conflicts.py.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from app.exceptions import ExactDuplicatePositionError, MultiPoleRangeOverlapError
from app.services.positions import MultiPole, classify, leading_slot, normalize


@dataclass(frozen=True)
class Ok:
    pass


@dataclass(frozen=True)
class ExactDuplicate:
    position: str


@dataclass(frozen=True)
class RangeOverlap:
    conflicting_position: str
    conflicting_slot: int


ConflictResult = Union[Ok, ExactDuplicate, RangeOverlap]


def slot_is_bonded_within_range(slot: int, start: int, end: int) -> bool:
    """
    True when a 240V breaker spanning start-end bonds `slot`.

    North American panels stack a multi-pole breaker down one column, so it
    bonds start, start+2, ... end. "1-3" bonds 1 and 3 but not 2.
    """
    return slot in range(start, end + 1, 2)


def check_conflict(
    panel_breakers: Iterable[Any],
    proposed_position: str,
    exclude_breaker_id: Optional[Any] = None,
) -> ConflictResult:
    """
    Check a proposed position against the breakers already on a panel.

    Args:
        panel_breakers:     Breakers of ONE panel (anything with id/position)
        proposed_position:  Raw or normalized position token
        exclude_breaker_id: The breaker being moved, ignored by the scan

    Returns:
        Ok(), ExactDuplicate(position) or RangeOverlap(position, slot)
    """
    proposed = normalize(proposed_position)
    others = [b for b in panel_breakers if exclude_breaker_id is None or b.id != exclude_breaker_id]

    for breaker in others:
        if normalize(breaker.position) == proposed:
            return ExactDuplicate(position=proposed)

    classification = classify(proposed)
    if classification.is_tandem:
        return Ok()

    slot = classification.slots[0] if classification.slots else leading_slot(proposed)
    if slot is None:
        return Ok()

    for breaker in others:
        existing = classify(breaker.position)
        if not isinstance(existing.parsed, MultiPole):
            continue
        if slot_is_bonded_within_range(slot, existing.parsed.start, existing.parsed.end):
            return RangeOverlap(conflicting_position=existing.normalized, conflicting_slot=slot)

    return Ok()


def ensure_no_conflict(
    panel_breakers: Iterable[Any],
    proposed_position: str,
    exclude_breaker_id: Optional[Any] = None,
) -> None:
    """Raise the matching PositionConflictError unless check_conflict is Ok."""
    result = check_conflict(panel_breakers, proposed_position, exclude_breaker_id)
    proposed = normalize(proposed_position)
    if isinstance(result, ExactDuplicate):
        raise ExactDuplicatePositionError(position=result.position)
    if isinstance(result, RangeOverlap):
        raise MultiPoleRangeOverlapError(
            position=proposed,
            conflicting_position=result.conflicting_position,
            conflicting_slot=result.conflicting_slot,
        )
