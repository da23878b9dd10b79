"""
CircuitMap Backend — Device SQLAlchemy Model
==============================================

What:  ORM model for the `devices` table (outlets, lights, appliances).
Why:   Devices reference a breaker by id. A tandem split keeps that id on
       half A, so device assignments survive the split untouched.
Note:  Rooms and floor plans live outside this service; devices hang off the
       panel directly.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Device(Base):
    __tablename__ = "devices"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    panel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("panels.id", ondelete="CASCADE"),
        nullable=False,
    )

    # NULL = not yet mapped to a breaker (or its breaker was deleted)
    breaker_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("breakers.id", ondelete="SET NULL"),
        nullable=True,
    )

    type: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    is_gfci_protected: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_devices_panel_id", "panel_id"),
        Index("idx_devices_breaker_id", "breaker_id"),
    )

    def __repr__(self) -> str:
        return f"<Device(id={self.id}, breaker_id={self.breaker_id}, type='{self.type}')>"
