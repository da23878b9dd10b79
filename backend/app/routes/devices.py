"""
CircuitMap Backend — Device Route Handlers
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.device import DeviceCreate, DeviceListResponse, DeviceResponse
from app.services.device_service import device_service

router = APIRouter(prefix="/api", tags=["Devices"])


@router.post(
    "/devices",
    response_model=DeviceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Breaker belongs to another panel", "model": ErrorResponse},
        404: {"description": "Panel not found", "model": ErrorResponse},
    },
    summary="Create a device",
)
async def create_device(
    payload: DeviceCreate,
    db: AsyncSession = Depends(get_db_session),
) -> DeviceResponse:
    device = await device_service.create_device(db, payload)
    return DeviceResponse.model_validate(device)


@router.get(
    "/panels/{panel_id}/devices",
    response_model=DeviceListResponse,
    responses={404: {"description": "Panel not found", "model": ErrorResponse}},
    summary="List devices on a panel",
)
async def list_devices(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DeviceListResponse:
    devices = await device_service.list_devices(db, panel_id)
    return DeviceListResponse(
        devices=[DeviceResponse.model_validate(d) for d in devices],
        total_count=len(devices),
    )
