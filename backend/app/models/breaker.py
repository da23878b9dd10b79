"""
CircuitMap Backend — Breaker SQLAlchemy Model
===============================================

What:  ORM model representing the `breakers` table.
Why:   The only entity the position core operates on.
Who:   Used by BreakerService, PanelService and Alembic.

Position column:
    Stores the normalized token ("7", "1-3", "14A"; transiently "14A/14B").
    There is no unique index on (panel_id, position): uniqueness
    is semantic and overlap-aware ("3" collides with "1-3"), so it is enforced
    by the conflict resolver inside the write transaction instead.

Index on panel_id:
    Every conflict check reads all breakers of one panel.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Breaker(Base):
    """
    One breaker seated in a panel.

    Everything except `position` (and `label` during a tandem split) is
    carried through the position core unchanged. `poles` is assumed to agree
    with the position grammar but is not enforced.
    """

    __tablename__ = "breakers"

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

    position: Mapped[str] = mapped_column(String(20), nullable=False)

    amperage: Mapped[int] = mapped_column(Integer, nullable=False)

    poles: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default=text("1"),
    )

    label: Mapped[str] = mapped_column(String(255), nullable=False)

    circuit_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="general",
        server_default=text("'general'"),
    )

    protection_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="standard",
        server_default=text("'standard'"),
    )

    is_on: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_breakers_panel_id", "panel_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Breaker(id={self.id}, panel_id={self.panel_id}, "
            f"position='{self.position}', label='{self.label}')>"
        )
