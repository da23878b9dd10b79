"""
CircuitMap Backend — Shared Response Schemas
==============================================

What:  Error and health payloads shared by every router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients branch on `error` (machine-readable) and show `message`.

    Example (position conflict):
        {
            "error": "multi_pole_range_overlap",
            "message": "Position 3 overlaps the multi-pole breaker at 1-3 (slot 3)",
            "details": {"position": "3", "conflicting_position": "1-3", "conflicting_slot": 3},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
