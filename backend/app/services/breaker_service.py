"""
CircuitMap Backend — Breaker Service (Business Logic Orchestrator)
====================================================================

What:  Create, move, delete and split breakers on top of the position core.
Why:   The grammar, conflict resolver and tandem transformer are pure; this
       service supplies their one I/O step (the panel's current breakers) and
       applies their verdict inside the caller's transaction.
How:   Stateless; every method receives the request's AsyncSession, which IS
       the unit of work. Reads and writes for one mutation happen on it.
Who:   Called by the breaker routes and by PanelService (migration, import).

Create Flow (POST /api/breakers):
    ┌──────────┐   ┌───────────┐   ┌────────────┐   ┌──────────┐   ┌─────────┐
    │ classify │──▶│ lock panel│──▶│ fetch      │──▶│ conflict │──▶│ insert  │
    │ (grammar)│   │ FOR UPDATE│   │ breakers   │   │ check    │   │ (+split)│
    └──────────┘   └───────────┘   └────────────┘   └──────────┘   └─────────┘

Concurrency:
    Two requests both reading "position 7 is free" must not both insert.
    The owning panel row is locked (SELECT ... FOR UPDATE) before the read, so
    mutations on one panel serialize on the database. SQLite has no row locks;
    its single-writer model serializes instead.
"""

import logging
from typing import List, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import CircuitMapError, DatabaseError, InvalidPositionFormatError, NotFoundError
from app.models.breaker import Breaker
from app.models.device import Device
from app.models.panel import Panel
from app.schemas.breaker import BreakerCreate, BreakerUpdate
from app.services.conflicts import ensure_no_conflict
from app.services.positions import PositionKind, require_valid
from app.services.tandem import split_combined_tandem

logger = logging.getLogger(__name__)


class BreakerService:
    """
    Business logic layer for breaker operations.

    Responsibilities:
        - create_breaker(): grammar + conflict gate, combined tokens split at once
        - update_breaker(): partial update; a new position is re-validated
          with the breaker itself excluded from the conflict scan
        - delete_breaker(): frees the position, detaches devices
        - split_breaker(): explicit split of one combined tandem record
        - apply_split(): the split step shared with the panel migration

    Error Handling Strategy:
        Position errors (InvalidPositionFormatError, PositionConflictError,
        NotCombinedTandemError) propagate unchanged. SQLAlchemy failures are
        wrapped in DatabaseError so internals never reach the client.
    """

    # ── Store collaborator ────────────────────────────────────────────────

    async def fetch_breakers_for_panel(self, db: AsyncSession, panel_id: UUID) -> List[Breaker]:
        """All breakers of one panel, in creation order."""
        result = await db.execute(
            select(Breaker)
            .where(Breaker.panel_id == panel_id)
            .order_by(Breaker.created_at, Breaker.position)
        )
        return list(result.scalars().all())

    async def lock_panel(self, db: AsyncSession, panel_id: UUID) -> Panel:
        """
        Load the panel row FOR UPDATE, raising NotFoundError when missing.

        Held until the request transaction ends, so the conflict check and the
        write it gates see the same breaker set.
        """
        result = await db.execute(
            select(Panel).where(Panel.id == panel_id).with_for_update()
        )
        panel = result.scalar_one_or_none()
        if panel is None:
            raise NotFoundError(resource="panel", resource_id=str(panel_id))
        return panel

    async def get_breaker(self, db: AsyncSession, breaker_id: UUID) -> Breaker:
        try:
            result = await db.execute(select(Breaker).where(Breaker.id == breaker_id))
            breaker = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching breaker %s: %s", breaker_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the breaker. Please try again.",
                context={"breaker_id": str(breaker_id)},
            )
        if breaker is None:
            raise NotFoundError(resource="breaker", resource_id=str(breaker_id))
        return breaker

    async def list_breakers(self, db: AsyncSession, panel_id: UUID) -> List[Breaker]:
        """Breakers of a panel; NotFoundError when the panel does not exist."""
        panel = await db.get(Panel, panel_id)
        if panel is None:
            raise NotFoundError(resource="panel", resource_id=str(panel_id))
        return await self.fetch_breakers_for_panel(db, panel_id)

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_breaker(self, db: AsyncSession, data: BreakerCreate) -> List[Breaker]:
        """
        Create a breaker from a validated position token.

        Workflow Steps:
            1. Classify the position (InvalidPositionFormatError if unusable)
            2. Lock the panel and read its breakers
            3. Conflict check (exact duplicate / multi-pole range overlap)
            4. Insert the record
            5. Combined tandem token: split it right away, inside the same
               SAVEPOINT, so the panel never holds a combined record

        Returns:
            [breaker] normally; [half A, half B] for a combined tandem token

        Raises:
            InvalidPositionFormatError, ExactDuplicatePositionError,
            MultiPoleRangeOverlapError, PositionOccupiedError (combined token
            whose half already exists), NotFoundError, DatabaseError
        """
        classification = require_valid(data.position)

        try:
            await self.lock_panel(db, data.panel_id)
            existing = await self.fetch_breakers_for_panel(db, data.panel_id)
            ensure_no_conflict(existing, classification.normalized)

            fields = data.model_dump(exclude={"panel_id", "position"})
            async with db.begin_nested():
                breaker = Breaker(
                    panel_id=data.panel_id,
                    position=classification.normalized,
                    **fields,
                )
                db.add(breaker)
                await db.flush()

                if classification.kind is PositionKind.COMBINED_TANDEM:
                    half_a, half_b = await self.apply_split(db, breaker, existing)
                    return [half_a, half_b]

            logger.info(
                "Breaker %s created at %s on panel %s",
                breaker.id, breaker.position, data.panel_id,
            )
            return [breaker]

        except CircuitMapError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating breaker: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the breaker. Please try again.",
                context={"panel_id": str(data.panel_id), "error_type": type(e).__name__},
            )

    async def update_breaker(
        self,
        db: AsyncSession,
        breaker_id: UUID,
        data: BreakerUpdate,
    ) -> Breaker:
        """
        Apply a partial update. A changed position goes through the same gate
        as create, with this breaker excluded from the scan so keeping (or
        re-typing) its own position never conflicts with itself.

        Combined tandem tokens are rejected here: they only exist as create or
        import input, and a panel at rest must not hold one.
        """
        breaker = await self.get_breaker(db, breaker_id)
        changes = data.model_dump(exclude_unset=True)

        try:
            if "position" in changes:
                classification = require_valid(changes["position"])
                if classification.kind is PositionKind.COMBINED_TANDEM:
                    raise InvalidPositionFormatError(
                        position=classification.normalized,
                        description="Combined tandem positions can only be used when creating breakers",
                    )
                await self.lock_panel(db, breaker.panel_id)
                existing = await self.fetch_breakers_for_panel(db, breaker.panel_id)
                ensure_no_conflict(existing, classification.normalized, exclude_breaker_id=breaker.id)
                changes["position"] = classification.normalized

            for field, value in changes.items():
                setattr(breaker, field, value)
            await db.flush()
            logger.info("Breaker %s updated: %s", breaker.id, sorted(changes))
            return breaker

        except CircuitMapError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating breaker %s: %s", breaker_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the breaker. Please try again.",
                context={"breaker_id": str(breaker_id), "error_type": type(e).__name__},
            )

    async def delete_breaker(self, db: AsyncSession, breaker_id: UUID) -> None:
        """
        Delete a breaker. Its position becomes free immediately; devices that
        pointed at it are detached, sibling tandem halves are untouched.
        """
        breaker = await self.get_breaker(db, breaker_id)
        try:
            await db.execute(
                update(Device).where(Device.breaker_id == breaker.id).values(breaker_id=None)
            )
            await db.delete(breaker)
            await db.flush()
            logger.info("Breaker %s deleted (position %s freed)", breaker_id, breaker.position)
        except SQLAlchemyError as e:
            logger.error("Database error deleting breaker %s: %s", breaker_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the breaker. Please try again.",
                context={"breaker_id": str(breaker_id), "error_type": type(e).__name__},
            )

    # ── Tandem split ──────────────────────────────────────────────────────

    async def split_breaker(self, db: AsyncSession, breaker_id: UUID) -> List[Breaker]:
        """
        Split one combined tandem breaker ("14A/14B") into two records.

        Both the patch of the existing record and the insert of the sibling
        run inside one SAVEPOINT: either both land or neither does.

        Raises:
            NotFoundError, NotCombinedTandemError, PositionOccupiedError, DatabaseError
        """
        breaker = await self.get_breaker(db, breaker_id)
        try:
            await self.lock_panel(db, breaker.panel_id)
            existing = await self.fetch_breakers_for_panel(db, breaker.panel_id)
            async with db.begin_nested():
                half_a, half_b = await self.apply_split(db, breaker, existing)
            return [half_a, half_b]

        except CircuitMapError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error splitting breaker %s: %s", breaker_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not split the breaker. Please try again.",
                context={"breaker_id": str(breaker_id), "error_type": type(e).__name__},
            )

    async def apply_split(
        self,
        db: AsyncSession,
        breaker: Breaker,
        panel_breakers: Sequence[Breaker],
    ) -> Tuple[Breaker, Breaker]:
        """
        Plan and apply one split on the current transaction.

        The caller owns the transaction boundary (a SAVEPOINT per split).
        Nothing is written when planning fails.
        """
        plan = split_combined_tandem(breaker, panel_breakers)

        breaker.position = plan.breaker_a.position
        breaker.label = plan.breaker_a.label
        sibling = Breaker(**plan.breaker_b.as_fields())
        db.add(sibling)
        await db.flush()

        logger.info(
            "Split tandem %s on panel %s into %s (%s) and %s (%s)",
            plan.source_position, breaker.panel_id,
            breaker.position, breaker.id, sibling.position, sibling.id,
        )
        return breaker, sibling


# ── Singleton Instance ────────────────────────────────────────────────────
breaker_service = BreakerService()
