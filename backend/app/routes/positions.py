"""
CircuitMap Backend — Position Classification Route
====================================================

What:  POST /api/positions/classify returns the grammar verdict for one token.
Why:   The breaker form shows live feedback ("2-pole breaker (240V)",
       "Tandem half at 14A") while the user types.
How:   Pure call into the position grammar; no database access.
"""

from fastapi import APIRouter

from app.schemas.breaker import PositionClassifyRequest, PositionClassifyResponse
from app.services.positions import MultiPole, classify

router = APIRouter(prefix="/api", tags=["Positions"])


@router.post(
    "/positions/classify",
    response_model=PositionClassifyResponse,
    summary="Classify a breaker position token",
    description=(
        "Returns whether the token is a valid single slot, multi-pole range, "
        "tandem half or combined tandem, with a human-readable description. "
        "Invalid tokens are reported in the body, never as an error status."
    ),
)
async def classify_position(payload: PositionClassifyRequest) -> PositionClassifyResponse:
    result = classify(payload.position)
    poles = result.parsed.poles if isinstance(result.parsed, MultiPole) else None
    return PositionClassifyResponse(
        valid=result.valid,
        kind=result.kind.value,
        description=result.description,
        normalized=result.normalized,
        poles=poles,
        slots=list(result.slots),
    )
