"""
CircuitMap Backend — Panel, Migration and Export/Import Schemas
=================================================================

What:  Pydantic models for panel CRUD, the tandem migration result and the
       JSON export/import document.
Why camelCase in the export document: the document format ("version": "1.0")
       is shared with files exported by earlier releases of the product, so
       its keys keep their original spelling. `populate_by_name` lets Python
       code build it with snake_case names.

Export document shape:
    {
        "version": "1.0",
        "exportedAt": "2024-01-15T12:00:00+00:00",
        "panel": {
            "name": "Main Panel", "brand": "square_d", "mainAmperage": 200, ...,
            "breakers": [{"position": "14A/14B", "circuitType": "kitchen", ...}],
            "devices": [{"breakerPosition": "14A/14B", "type": "outlet", ...}]
        }
    }

Import tolerates all four position grammars and, additionally, devices nested
under `floors[].rooms[].devices[]` as older exports laid them out (floor and
room geometry is ignored).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.breaker import BreakerResponse


# ══════════════════════════════════════════════════════════════════════════
# Panel CRUD
# ══════════════════════════════════════════════════════════════════════════


class PanelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    brand: str = Field(default="other", max_length=100)
    main_amperage: int = Field(default=200, gt=0, le=1200)
    total_slots: int = Field(default=40, ge=1, le=84)
    columns: int = Field(default=2, ge=1, le=2)
    notes: Optional[str] = None


class PanelResponse(BaseModel):
    id: uuid.UUID
    name: str
    address: Optional[str] = None
    brand: str
    main_amperage: int
    total_slots: int
    columns: int
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PanelDetailResponse(PanelResponse):
    """Panel plus its breakers, as GET /api/panels/{id} returns it."""
    breakers: List[BreakerResponse] = Field(default_factory=list)


class PanelListResponse(BaseModel):
    panels: List[PanelResponse]
    total_count: int


class MigrationResponse(BaseModel):
    """
    What:  Result of POST /api/panels/{id}/migrate-tandems.
    skipped: combined positions left as-is because a target half was taken.
    """
    migrated: int = Field(description="Combined tandem breakers split successfully")
    skipped: List[str] = Field(default_factory=list)
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Export / Import Document
# ══════════════════════════════════════════════════════════════════════════

_document_config = {"populate_by_name": True, "extra": "ignore"}


class ExportBreaker(BaseModel):
    position: str = Field(min_length=1, max_length=20)
    amperage: int = Field(gt=0)
    poles: int = Field(default=1, ge=1, le=3)
    label: str = Field(min_length=1)
    circuit_type: str = Field(default="general", alias="circuitType")
    protection_type: str = Field(default="standard", alias="protectionType")
    is_on: bool = Field(default=True, alias="isOn")
    notes: Optional[str] = None
    sort_order: Optional[int] = Field(default=None, alias="sortOrder")

    model_config = _document_config


class ExportDevice(BaseModel):
    breaker_position: Optional[str] = Field(default=None, alias="breakerPosition")
    type: str
    description: str
    is_gfci_protected: bool = Field(default=False, alias="isGfciProtected")
    notes: Optional[str] = None

    model_config = _document_config


class ImportRoom(BaseModel):
    devices: List[ExportDevice] = Field(default_factory=list)

    model_config = _document_config


class ImportFloor(BaseModel):
    rooms: List[ImportRoom] = Field(default_factory=list)

    model_config = _document_config


class ExportPanel(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    brand: str = "other"
    main_amperage: int = Field(default=200, alias="mainAmperage")
    total_slots: int = Field(default=40, alias="totalSlots")
    columns: int = 2
    notes: Optional[str] = None
    breakers: List[ExportBreaker] = Field(default_factory=list)
    devices: List[ExportDevice] = Field(default_factory=list)
    floors: List[ImportFloor] = Field(default_factory=list, exclude=True)

    model_config = _document_config

    def all_devices(self) -> List[ExportDevice]:
        """Panel-level devices followed by any nested under floors/rooms."""
        nested = [device for floor in self.floors for room in floor.rooms for device in room.devices]
        return list(self.devices) + nested


class PanelExport(BaseModel):
    version: str = "1.0"
    exported_at: Optional[datetime] = Field(default=None, alias="exportedAt")
    panel: ExportPanel

    model_config = _document_config


class ImportResponse(BaseModel):
    success: bool = True
    panel_id: uuid.UUID
    message: str
    breakers_created: int
    tandems_migrated: int = 0
