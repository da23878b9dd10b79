"""
CircuitMap Backend — Panel SQLAlchemy Model
=============================================

What:  ORM model representing the `panels` table.
Why:   A panel scopes every breaker position: uniqueness and overlap checks
       never cross panel boundaries.
Who:   Used by PanelService, BreakerService (row lock) and Alembic.

Table Design Rationale:
    - UUID primary key: non-sequential, safe to expose in URLs
    - total_slots / columns: describe the physical layout (2 columns,
      odd slots left, even slots right)
    - No ORM relationships: async sessions cannot lazy-load, so services
      query breakers and devices explicitly by panel_id
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Panel(Base):
    """
    Represents one electrical panel.

    Lifecycle:
        1. Created from the API or by an import
        2. Breakers and devices are added against it
        3. Deleting it deletes its breakers and devices (PanelService)
    """

    __tablename__ = "panels"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Manufacturer family: square_d, eaton, siemens, ge, other...
    brand: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="other",
        server_default=text("'other'"),
    )

    main_amperage: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=200,
        server_default=text("200"),
    )

    total_slots: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=40,
        server_default=text("40"),
    )

    columns: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=2,
        server_default=text("2"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Panel(id={self.id}, name='{self.name}')>"
