"""
CircuitMap Backend — Device Service
=====================================

What:  Minimal device records (outlets, lights, appliances) mapped to breakers.
Why:   The tandem split rule "devices stay on half A" needs real device rows
       to be observable and testable.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.breaker import Breaker
from app.models.device import Device
from app.models.panel import Panel
from app.schemas.device import DeviceCreate

logger = logging.getLogger(__name__)


class DeviceService:

    async def create_device(self, db: AsyncSession, data: DeviceCreate) -> Device:
        """
        Create a device, optionally mapped to a breaker.

        Raises:
            NotFoundError: panel does not exist
            ValidationError: breaker_id does not belong to that panel
        """
        if await db.get(Panel, data.panel_id) is None:
            raise NotFoundError(resource="panel", resource_id=str(data.panel_id))

        if data.breaker_id is not None:
            breaker = await db.get(Breaker, data.breaker_id)
            if breaker is None or breaker.panel_id != data.panel_id:
                raise ValidationError(
                    message="Breaker does not belong to this panel",
                    field="breaker_id",
                    context={"breaker_id": str(data.breaker_id)},
                )

        try:
            device = Device(**data.model_dump())
            db.add(device)
            await db.flush()
            logger.info("Device %s created on panel %s", device.id, data.panel_id)
            return device
        except SQLAlchemyError as e:
            logger.error("Database error creating device: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the device. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def list_devices(self, db: AsyncSession, panel_id: UUID) -> List[Device]:
        if await db.get(Panel, panel_id) is None:
            raise NotFoundError(resource="panel", resource_id=str(panel_id))
        result = await db.execute(
            select(Device).where(Device.panel_id == panel_id).order_by(Device.created_at)
        )
        return list(result.scalars().all())


device_service = DeviceService()
