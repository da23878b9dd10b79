"""
CircuitMap Backend — Breaker Position Grammar
===============================================

What:  Parses a free-text breaker position into a typed classification.
Why:   Create, move, split and import must agree on what "1-3" or "14A/14B"
       means. One parser gives one answer everywhere.
How:   Normalize (trim + upper-case), then try four regular grammars in a
       fixed order. The patterns are disjoint, so the first match wins.
Who:   Used by the conflict resolver, the tandem transformer, the services
       and POST /api/positions/classify.

Grammars:
    ┌──────────────────┬───────────┬──────────────────────────────────────┐
    │ Single           │ "7"       │ one slot, single-pole                │
    │ Multi-pole range │ "1-3"     │ bonded 240V run, 2 or 3 poles        │
    │ Tandem half      │ "14A"     │ one half of a tandem pair            │
    │ Combined tandem  │ "14A/14B" │ import-time notation for two halves  │
    └──────────────────┴───────────┴──────────────────────────────────────┘

`classify` is pure and total: any input, including non-strings, yields a
classification and never raises. Callers gate writes on `valid`.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from app.exceptions import InvalidPositionFormatError


class PositionKind(str, Enum):
    SINGLE = "single"
    MULTI = "multi"
    TANDEM_HALF = "tandem_half"
    COMBINED_TANDEM = "combined_tandem"
    UNKNOWN = "unknown"


# ── Patterns ──────────────────────────────────────────────────────────────
# Applied to the normalized (upper-cased, trimmed) token
SINGLE_RE = re.compile(r"^\d+$", re.ASCII)
MULTI_POLE_RE = re.compile(r"^(\d+)-(\d+)$", re.ASCII)
COMBINED_TANDEM_RE = re.compile(r"^(\d+)([AB])/(\d+)([AB])$", re.ASCII)
TANDEM_HALF_RE = re.compile(r"^(\d+)([AB])$", re.ASCII)
LEADING_SLOT_RE = re.compile(r"^(\d+)", re.ASCII)

VALID_POLE_COUNTS = (2, 3)


# ── Parsed Positions (tagged union) ───────────────────────────────────────

@dataclass(frozen=True)
class Single:
    slot: int


@dataclass(frozen=True)
class MultiPole:
    start: int
    end: int

    @property
    def poles(self) -> int:
        return pole_count(self.start, self.end)


@dataclass(frozen=True)
class TandemHalf:
    slot: int
    suffix: str


@dataclass(frozen=True)
class CombinedTandem:
    slot: int
    suffix_a: str
    suffix_b: str

    @property
    def halves(self) -> Tuple[str, str]:
        """The two tandem-half tokens this combined token stands for."""
        return f"{self.slot}{self.suffix_a}", f"{self.slot}{self.suffix_b}"


ParsedPosition = Union[Single, MultiPole, TandemHalf, CombinedTandem]


@dataclass(frozen=True)
class PositionClassification:
    """
    Result of classifying one raw position token.

    Attributes:
        valid:       Whether the token may be stored on a breaker
        kind:        Which grammar matched (UNKNOWN when none did)
        description: Human-readable summary shown next to the input field
        normalized:  Trimmed, upper-cased token
        parsed:      Typed value, or None for unknown tokens
    """

    valid: bool
    kind: PositionKind
    description: str
    normalized: str
    parsed: Optional[ParsedPosition] = None

    @property
    def is_tandem(self) -> bool:
        return self.kind in (PositionKind.TANDEM_HALF, PositionKind.COMBINED_TANDEM)

    @property
    def slots(self) -> Tuple[int, ...]:
        return slots_covered(self.parsed) if self.parsed is not None else ()


def normalize(raw: object) -> str:
    """Trim and upper-case a raw token. Non-string input normalizes to ""."""
    if not isinstance(raw, str):
        return ""
    return raw.strip().upper()


def pole_count(start: int, end: int) -> int:
    """Poles bonded by a start-end range: ceil((end - start + 1) / 2)."""
    # Integer ceiling; float division overflows on very long slot numbers
    return -((start - end - 1) // 2)


def parse_slot(digits: str) -> Optional[int]:
    """
    Slot number for a matched digit run, or None.

    int() refuses digit strings beyond the interpreter's conversion limit
    (4300 digits by default); such a token is reported as unknown.
    """
    try:
        return int(digits)
    except ValueError:
        return None


def leading_slot(token: str) -> Optional[int]:
    """Leading integer slot number of a token ("14A" → 14), or None."""
    match = LEADING_SLOT_RE.match(normalize(token))
    return parse_slot(match.group(1)) if match else None


def slots_covered(parsed: ParsedPosition) -> Tuple[int, ...]:
    """
    Physical slots a parsed position occupies.

    A multi-pole breaker bonds every other slot in its column: "1-3" covers
    1 and 3, "2-6" covers 2, 4 and 6. Tandem halves share their slot.
    """
    if isinstance(parsed, MultiPole):
        return tuple(range(parsed.start, parsed.end + 1, 2))
    return (parsed.slot,)


def _unknown(token: str) -> PositionClassification:
    return PositionClassification(
        valid=False,
        kind=PositionKind.UNKNOWN,
        description="Invalid position format",
        normalized=token,
    )


def classify(raw: object) -> PositionClassification:
    """
    Classify a raw position token.

    Precedence: single → multi-pole range → combined tandem → tandem half.

    Examples:
        classify("7")        → single, "Single-pole at position 7"
        classify("1-3")      → multi, "2-pole breaker (240V)"
        classify("1-7")      → multi, invalid (4 poles)
        classify("14a/14b")  → combined_tandem, normalized "14A/14B"
        classify("14A/15B")  → unknown (slot numbers differ)
        classify("14A")      → tandem_half
    """
    token = normalize(raw)
    if not token:
        return PositionClassification(
            valid=False, kind=PositionKind.UNKNOWN, description="", normalized=""
        )

    if SINGLE_RE.match(token):
        slot = parse_slot(token)
        if slot is None:
            return _unknown(token)
        return PositionClassification(
            valid=True,
            kind=PositionKind.SINGLE,
            description=f"Single-pole at position {token}",
            normalized=token,
            parsed=Single(slot=slot),
        )

    match = MULTI_POLE_RE.match(token)
    if match:
        start, end = parse_slot(match.group(1)), parse_slot(match.group(2))
        if start is None or end is None:
            return _unknown(token)
        parsed = MultiPole(start=start, end=end)
        poles = parsed.poles
        if poles in VALID_POLE_COUNTS:
            return PositionClassification(
                valid=True,
                kind=PositionKind.MULTI,
                description=f"{poles}-pole breaker (240V)",
                normalized=token,
                parsed=parsed,
            )
        return PositionClassification(
            valid=False,
            kind=PositionKind.MULTI,
            description="Invalid range - use consecutive positions",
            normalized=token,
        )

    match = COMBINED_TANDEM_RE.match(token)
    if match and match.group(1) == match.group(3):
        slot = parse_slot(match.group(1))
        if slot is None:
            return _unknown(token)
        return PositionClassification(
            valid=True,
            kind=PositionKind.COMBINED_TANDEM,
            description="Tandem - creates 2 separate breakers",
            normalized=token,
            parsed=CombinedTandem(
                slot=slot,
                suffix_a=match.group(2),
                suffix_b=match.group(4),
            ),
        )

    match = TANDEM_HALF_RE.match(token)
    if match:
        slot = parse_slot(match.group(1))
        if slot is None:
            return _unknown(token)
        return PositionClassification(
            valid=True,
            kind=PositionKind.TANDEM_HALF,
            description=f"Tandem half at {token}",
            normalized=token,
            parsed=TandemHalf(slot=slot, suffix=match.group(2)),
        )

    return _unknown(token)


def require_valid(raw: object) -> PositionClassification:
    """Classify `raw`, raising InvalidPositionFormatError when it is unusable."""
    classification = classify(raw)
    if not classification.valid:
        raise InvalidPositionFormatError(
            position=classification.normalized or str(raw or ""),
            description=classification.description,
        )
    return classification


def is_combined_tandem(raw: object) -> bool:
    return classify(raw).kind is PositionKind.COMBINED_TANDEM
