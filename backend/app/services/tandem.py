"""
CircuitMap Backend — Tandem Transformer
=========================================

What:  Plans the split of a combined tandem breaker ("14A/14B") into two
       independent tandem-half breakers.
Why:   Imports and older data carry one record standing for two switches.
       Splitting must neither lose device assignments nor let two records
       end up on one slot.
How:   Pure function returning a patch for the existing record (half A) and
       the fields of a new sibling (half B). The caller applies both in ONE
       transaction.

Split of {position: "14A/14B", label: "Kitchen Outlets"}:
    existing record → position "14A", label "Kitchen Outlets (A)"
    new sibling     → position "14B", label "Kitchen Outlets (B)"
    Devices stay attached to the existing record (half A); reassigning
    them to half B is a manual follow-up.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional

from app.exceptions import NotCombinedTandemError, PositionOccupiedError
from app.services.positions import CombinedTandem, classify, normalize

# " (A)" / "(b) " at the end of a label; stripped so re-splits don't stack suffixes
LABEL_SUFFIX_RE = re.compile(r"\s*\([AB]\)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class BreakerPatch:
    """Changes applied to the record being split (it becomes half A)."""

    breaker_id: Any
    position: str
    label: str


@dataclass(frozen=True)
class BreakerNew:
    """Fields of the sibling record created for half B."""

    panel_id: Any
    position: str
    label: str
    amperage: int
    poles: int
    circuit_type: str
    protection_type: str
    is_on: bool
    notes: Optional[str]
    sort_order: Optional[int]

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TandemSplit:
    source_position: str
    breaker_a: BreakerPatch
    breaker_b: BreakerNew


def base_label(label: Optional[str]) -> str:
    """Label without a trailing " (A)"/" (B)" marker."""
    return LABEL_SUFFIX_RE.sub("", label or "").strip()


def split_combined_tandem(breaker: Any, panel_breakers: Iterable[Any] = ()) -> TandemSplit:
    """
    Plan the split of one combined tandem breaker.

    Args:
        breaker:        The record to split (ORM Breaker or any object with
                        the same attributes)
        panel_breakers: The panel's current breakers; `breaker` itself is
                        ignored when checking the target halves

    Raises:
        NotCombinedTandemError: Position is not "{n}A/{n}B"-shaped, or both
            sides name the same suffix (the halves would be duplicates)
        PositionOccupiedError: A target half already exists on the panel
    """
    classification = classify(breaker.position)
    source = classification.normalized
    parsed = classification.parsed
    if not isinstance(parsed, CombinedTandem):
        raise NotCombinedTandemError(position=source)

    suffix_a, suffix_b = parsed.suffix_a, parsed.suffix_b
    if suffix_a == suffix_b:
        raise NotCombinedTandemError(
            position=source,
            context={"reason": "both halves use the same suffix"},
        )

    position_a, position_b = parsed.halves

    taken = {
        normalize(other.position)
        for other in panel_breakers
        if other.id != breaker.id
    }
    occupied = [position for position in (position_a, position_b) if position in taken]
    if occupied:
        raise PositionOccupiedError(position=source, occupied=occupied)

    label = base_label(breaker.label)
    return TandemSplit(
        source_position=source,
        breaker_a=BreakerPatch(
            breaker_id=breaker.id,
            position=position_a,
            label=f"{label} ({suffix_a})",
        ),
        breaker_b=BreakerNew(
            panel_id=breaker.panel_id,
            position=position_b,
            label=f"{label} ({suffix_b})",
            amperage=breaker.amperage,
            poles=breaker.poles,
            circuit_type=breaker.circuit_type,
            protection_type=breaker.protection_type,
            is_on=breaker.is_on,
            notes=breaker.notes,
            sort_order=breaker.sort_order,
        ),
    )
