"""
CircuitMap Backend — Breaker Request/Response Schemas
=======================================================

What:  Pydantic models for the breaker and position endpoints.
Why:   Field-level validation (types, ranges, enums) happens here and returns
       FastAPI's 422; position grammar and conflict rules are business rules
       and stay in the services (400 / 409).

Position fields are trimmed and upper-cased on the way in, matching the
normalization the grammar applies.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CircuitType = Literal[
    "general", "lighting", "appliance", "hvac", "outdoor", "other",
    "kitchen", "bathroom", "dryer", "range", "water_heater",
    "ev_charger", "pool", "garage", "subpanel",
]

ProtectionType = Literal["standard", "gfci", "afci", "dual_function", "dual"]


def _normalize_position(value):
    """Trim + upper-case string input; anything else is left to field validation."""
    if isinstance(value, str):
        return value.strip().upper()
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class BreakerCreate(BaseModel):
    """
    What:  Body of POST /api/breakers.
    Note:  A combined tandem position ("14A/14B") is accepted here and
           produces TWO breakers.
    """
    panel_id: uuid.UUID = Field(description="Owning panel")
    position: str = Field(min_length=1, max_length=20, description='Slot token, e.g. "7", "1-3", "14A"')
    amperage: int = Field(gt=0, le=400)
    poles: int = Field(default=1, ge=1, le=3)
    label: str = Field(min_length=1, max_length=255)
    circuit_type: CircuitType = "general"
    protection_type: ProtectionType = "standard"
    is_on: bool = True
    notes: Optional[str] = None
    sort_order: Optional[int] = None

    @field_validator("position", mode="before")
    @classmethod
    def normalize_position(cls, v):
        return _normalize_position(v)


class BreakerUpdate(BaseModel):
    """
    What:  Body of PATCH /api/breakers/{id}. Only fields present are changed.
    Why the null check: explicit nulls on NOT NULL columns would surface as
           database errors instead of a 422.
    """
    position: Optional[str] = Field(default=None, min_length=1, max_length=20)
    amperage: Optional[int] = Field(default=None, gt=0, le=400)
    poles: Optional[int] = Field(default=None, ge=1, le=3)
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    circuit_type: Optional[CircuitType] = None
    protection_type: Optional[ProtectionType] = None
    is_on: Optional[bool] = None
    notes: Optional[str] = None
    sort_order: Optional[int] = None

    @field_validator("position", mode="before")
    @classmethod
    def normalize_position(cls, v):
        return _normalize_position(v)

    @field_validator(
        "position", "amperage", "poles", "label", "circuit_type", "protection_type", "is_on",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class PositionClassifyRequest(BaseModel):
    position: str = Field(default="", description="Raw token as typed; any length")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class BreakerResponse(BaseModel):
    id: uuid.UUID
    panel_id: uuid.UUID
    position: str
    amperage: int
    poles: int
    label: str
    circuit_type: str
    protection_type: str
    is_on: bool
    notes: Optional[str] = None
    sort_order: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BreakerListResponse(BaseModel):
    """
    What:  Wrapper used by create, split and list endpoints.
    Why a list for create: a combined tandem position creates two records.
    """
    message: str = Field(default="OK")
    breakers: List[BreakerResponse]


class PositionClassifyResponse(BaseModel):
    """
    What:  Live feedback for the position input field.
    Example:
        {"valid": true, "kind": "multi", "description": "2-pole breaker (240V)",
         "normalized": "1-3", "poles": 2, "slots": [1, 3]}
    """
    valid: bool
    kind: str
    description: str
    normalized: str
    poles: Optional[int] = Field(default=None, description="Pole count for valid multi-pole ranges")
    slots: List[int] = Field(default_factory=list, description="Physical slots occupied")
