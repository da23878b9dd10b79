"""
CircuitMap Backend — Device Schemas
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DeviceCreate(BaseModel):
    panel_id: uuid.UUID
    breaker_id: Optional[uuid.UUID] = Field(default=None, description="Breaker on the same panel")
    type: str = Field(min_length=1, max_length=50, description="outlet, light, switch, appliance...")
    description: str = Field(min_length=1, max_length=255)
    is_gfci_protected: bool = False
    notes: Optional[str] = None


class DeviceResponse(BaseModel):
    id: uuid.UUID
    panel_id: uuid.UUID
    breaker_id: Optional[uuid.UUID] = None
    type: str
    description: str
    is_gfci_protected: bool
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DeviceListResponse(BaseModel):
    devices: List[DeviceResponse]
    total_count: int
