"""
CircuitMap Backend — Panel Service
====================================

What:  Panel CRUD, the panel-wide tandem migration, and JSON export/import.
Why:   These operations act on a whole panel's breaker set at once and reuse
       the position core through BreakerService.
Who:   Called by the panel routes.

Tandem Migration (POST /api/panels/{id}/migrate-tandems):
    for each breaker whose position is a combined tandem:
        SAVEPOINT
          split (patch half A + insert half B)
        RELEASE            ← success: counted in `migrated`
        ROLLBACK TO        ← target half occupied: recorded in `skipped`
    A skipped breaker never undoes earlier splits and stays in combined form.

Import:
    Positions may use any of the four grammars. Every position is classified
    and conflict-checked against the breakers imported before it; devices are
    re-linked by `breakerPosition`; combined tandems are then migrated
    (AUTO_MIGRATE_TANDEMS_ON_IMPORT).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    CircuitMapError,
    DatabaseError,
    NotCombinedTandemError,
    NotFoundError,
    PositionOccupiedError,
    ValidationError,
)
from app.models.breaker import Breaker
from app.models.device import Device
from app.models.panel import Panel
from app.schemas.panel import (
    ExportBreaker,
    ExportDevice,
    ExportPanel,
    PanelCreate,
    PanelExport,
)
from app.services.breaker_service import breaker_service
from app.services.conflicts import ensure_no_conflict
from app.services.positions import is_combined_tandem, normalize, require_valid

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


@dataclass
class MigrationResult:
    migrated: int = 0
    skipped: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.migrated and not self.skipped:
            return "No combined tandems to migrate"
        message = f"Migrated {self.migrated} combined tandem breaker(s)"
        if self.skipped:
            message += f"; skipped {', '.join(self.skipped)} (position conflict)"
        return message


class PanelService:
    """
    Business logic layer for panel-wide operations.

    Error Handling Strategy:
        Same as BreakerService: application errors propagate, SQLAlchemy
        errors become DatabaseError with the original type in the context.
    """

    async def create_panel(self, db: AsyncSession, data: PanelCreate) -> Panel:
        try:
            panel = Panel(**data.model_dump())
            db.add(panel)
            await db.flush()
            logger.info("Panel %s created: %s", panel.id, panel.name)
            return panel
        except SQLAlchemyError as e:
            logger.error("Database error creating panel: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the panel. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_panel(self, db: AsyncSession, panel_id: UUID) -> Panel:
        panel = await db.get(Panel, panel_id)
        if panel is None:
            raise NotFoundError(resource="panel", resource_id=str(panel_id))
        return panel

    async def get_panel_with_breakers(
        self, db: AsyncSession, panel_id: UUID
    ) -> Tuple[Panel, List[Breaker]]:
        panel = await self.get_panel(db, panel_id)
        breakers = await breaker_service.fetch_breakers_for_panel(db, panel_id)
        return panel, breakers

    async def list_panels(self, db: AsyncSession, limit: int = 50) -> Tuple[List[Panel], int]:
        """Newest panels first, with the total count."""
        try:
            result = await db.execute(
                select(Panel).order_by(desc(Panel.created_at)).limit(limit)
            )
            panels = list(result.scalars().all())
            count_result = await db.execute(select(func.count(Panel.id)))
            return panels, count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing panels: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve panels. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def delete_panel(self, db: AsyncSession, panel_id: UUID) -> None:
        """
        Delete a panel with its devices and breakers.

        Children are deleted explicitly: SQLite does not enforce the
        ON DELETE CASCADE of the foreign keys unless asked to.
        """
        panel = await self.get_panel(db, panel_id)
        try:
            await db.execute(delete(Device).where(Device.panel_id == panel_id))
            await db.execute(delete(Breaker).where(Breaker.panel_id == panel_id))
            await db.delete(panel)
            await db.flush()
            logger.info("Panel %s deleted", panel_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting panel %s: %s", panel_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the panel. Please try again.",
                context={"panel_id": str(panel_id), "error_type": type(e).__name__},
            )

    # ── Tandem migration ──────────────────────────────────────────────────

    async def migrate_tandems(self, db: AsyncSession, panel_id: UUID) -> MigrationResult:
        """
        Split every combined tandem breaker on a panel, one SAVEPOINT each.

        Occupied targets are skipped and reported, never fatal. The breaker
        set is re-read before each split so halves created by an earlier
        split take part in the occupancy check.
        """
        try:
            await breaker_service.lock_panel(db, panel_id)
            breakers = await breaker_service.fetch_breakers_for_panel(db, panel_id)
            combined = [b for b in breakers if is_combined_tandem(b.position)]

            result = MigrationResult()
            for breaker in combined:
                current = await breaker_service.fetch_breakers_for_panel(db, panel_id)
                try:
                    async with db.begin_nested():
                        await breaker_service.apply_split(db, breaker, current)
                except (PositionOccupiedError, NotCombinedTandemError) as e:
                    logger.warning("Skipping %s on panel %s: %s", breaker.position, panel_id, e.message)
                    result.skipped.append(breaker.position)
                    continue
                result.migrated += 1

            if combined:
                logger.info("Panel %s tandem migration: %s", panel_id, result.message)
            return result

        except CircuitMapError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error migrating tandems on %s: %s", panel_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not migrate tandem breakers. Please try again.",
                context={"panel_id": str(panel_id), "error_type": type(e).__name__},
            )

    # ── Export / Import ───────────────────────────────────────────────────

    async def export_panel(self, db: AsyncSession, panel_id: UUID) -> PanelExport:
        """Build the JSON export document; positions are carried verbatim."""
        panel, breakers = await self.get_panel_with_breakers(db, panel_id)
        result = await db.execute(
            select(Device).where(Device.panel_id == panel_id).order_by(Device.created_at)
        )
        devices = list(result.scalars().all())
        position_by_id = {b.id: b.position for b in breakers}

        return PanelExport(
            version=EXPORT_VERSION,
            exported_at=datetime.now(timezone.utc),
            panel=ExportPanel(
                name=panel.name,
                address=panel.address,
                brand=panel.brand,
                main_amperage=panel.main_amperage,
                total_slots=panel.total_slots,
                columns=panel.columns,
                notes=panel.notes,
                breakers=[
                    ExportBreaker(
                        position=b.position,
                        amperage=b.amperage,
                        poles=b.poles,
                        label=b.label,
                        circuit_type=b.circuit_type,
                        protection_type=b.protection_type,
                        is_on=b.is_on,
                        notes=b.notes,
                        sort_order=b.sort_order,
                    )
                    for b in breakers
                ],
                devices=[
                    ExportDevice(
                        breaker_position=position_by_id.get(d.breaker_id),
                        type=d.type,
                        description=d.description,
                        is_gfci_protected=d.is_gfci_protected,
                        notes=d.notes,
                    )
                    for d in devices
                ],
            ),
        )

    async def import_panel(
        self, db: AsyncSession, document: PanelExport
    ) -> Tuple[Panel, int, MigrationResult]:
        """
        Create a new panel from an export document.

        Returns:
            (panel, breakers created from the document, migration result)

        Raises:
            ValidationError: too many breakers in the document
            InvalidPositionFormatError / PositionConflictError: a position is
                unusable or collides with one imported before it. The request
                transaction rolls the whole import back.
        """
        source = document.panel
        if len(source.breakers) > settings.max_import_breakers:
            raise ValidationError(
                message=(
                    f"Import contains {len(source.breakers)} breakers; "
                    f"the limit is {settings.max_import_breakers}"
                ),
                field="panel.breakers",
            )

        try:
            panel = Panel(
                name=f"{source.name} (Imported)",
                address=source.address,
                brand=source.brand,
                main_amperage=source.main_amperage,
                total_slots=source.total_slots,
                columns=source.columns,
                notes=source.notes,
            )
            db.add(panel)
            await db.flush()

            imported: List[Breaker] = []
            for entry in source.breakers:
                classification = require_valid(entry.position)
                ensure_no_conflict(imported, classification.normalized)
                breaker = Breaker(
                    panel_id=panel.id,
                    position=classification.normalized,
                    **entry.model_dump(exclude={"position"}),
                )
                db.add(breaker)
                imported.append(breaker)
            await db.flush()

            id_by_position: Dict[str, UUID] = {b.position: b.id for b in imported}
            for entry in source.all_devices():
                breaker_id = None
                if entry.breaker_position:
                    breaker_id = id_by_position.get(normalize(entry.breaker_position))
                db.add(
                    Device(
                        panel_id=panel.id,
                        breaker_id=breaker_id,
                        type=entry.type,
                        description=entry.description,
                        is_gfci_protected=entry.is_gfci_protected,
                        notes=entry.notes,
                    )
                )
            await db.flush()

            migration = MigrationResult()
            if settings.auto_migrate_tandems_on_import:
                migration = await self.migrate_tandems(db, panel.id)

            logger.info(
                "Imported panel %s (%d breakers, %d tandems migrated)",
                panel.id, len(imported), migration.migrated,
            )
            return panel, len(imported), migration

        except CircuitMapError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error importing panel: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not import the panel. Please try again.",
                context={"error_type": type(e).__name__},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
panel_service = PanelService()
