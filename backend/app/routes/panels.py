"""
CircuitMap Backend — Panel Route Handlers
===========================================

What:  Panel CRUD, tandem migration and JSON export/import.
Who:   Called by the panel list, the panel editor and the import dialog.

Endpoints:
    POST   /api/panels                       create (201)
    GET    /api/panels                       list, newest first
    GET    /api/panels/{id}                  panel with its breakers
    DELETE /api/panels/{id}                  delete with breakers and devices
    GET    /api/panels/{id}/breakers         breakers only
    POST   /api/panels/{id}/migrate-tandems  split every combined tandem
    GET    /api/panels/{id}/export           download the JSON document
    POST   /api/panels/import                create a panel from a document
"""

import logging
import re
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.breaker import BreakerListResponse, BreakerResponse
from app.schemas.common import ErrorResponse
from app.schemas.panel import (
    ImportResponse,
    MigrationResponse,
    PanelCreate,
    PanelDetailResponse,
    PanelExport,
    PanelListResponse,
    PanelResponse,
)
from app.services.breaker_service import breaker_service
from app.services.panel_service import panel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Panels"])

_not_found = {404: {"description": "Panel not found", "model": ErrorResponse}}

# Anything outside [a-z0-9] becomes "-" in download file names
_UNSAFE_FILENAME_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def export_filename(panel_name: str) -> str:
    """circuitmap-<safe-name>-<YYYY-MM-DD>.json"""
    safe_name = _UNSAFE_FILENAME_RE.sub("-", panel_name).lower()
    date = datetime.now(timezone.utc).date().isoformat()
    return f"circuitmap-{safe_name}-{date}.json"


@router.post(
    "/panels",
    response_model=PanelResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a panel",
)
async def create_panel(
    payload: PanelCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PanelResponse:
    panel = await panel_service.create_panel(db, payload)
    return PanelResponse.model_validate(panel)


@router.get(
    "/panels",
    response_model=PanelListResponse,
    summary="List panels",
)
async def list_panels(
    response: Response,
    limit: int = Query(default=50, ge=1, le=200, description="Maximum panels returned"),
    db: AsyncSession = Depends(get_db_session),
) -> PanelListResponse:
    panels, total = await panel_service.list_panels(db, limit=limit)
    response.headers["X-Total-Count"] = str(total)
    return PanelListResponse(
        panels=[PanelResponse.model_validate(p) for p in panels],
        total_count=total,
    )


@router.get(
    "/panels/{panel_id}",
    response_model=PanelDetailResponse,
    responses=_not_found,
    summary="Get a panel with its breakers",
)
async def get_panel(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PanelDetailResponse:
    panel, breakers = await panel_service.get_panel_with_breakers(db, panel_id)
    detail = PanelDetailResponse.model_validate(panel)
    detail.breakers = [BreakerResponse.model_validate(b) for b in breakers]
    return detail


@router.delete(
    "/panels/{panel_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_not_found,
    summary="Delete a panel",
)
async def delete_panel(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await panel_service.delete_panel(db, panel_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/panels/{panel_id}/breakers",
    response_model=BreakerListResponse,
    responses=_not_found,
    summary="List breakers on a panel",
)
async def list_breakers(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> BreakerListResponse:
    breakers = await breaker_service.list_breakers(db, panel_id)
    return BreakerListResponse(breakers=[BreakerResponse.model_validate(b) for b in breakers])


@router.post(
    "/panels/{panel_id}/migrate-tandems",
    response_model=MigrationResponse,
    responses=_not_found,
    summary="Split every combined tandem breaker on a panel",
    description=(
        "Each combined tandem ('14A/14B') is split on its own. Breakers whose "
        "target halves are already occupied are skipped and listed in "
        "`skipped`; they never abort the rest of the migration."
    ),
)
async def migrate_tandems(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MigrationResponse:
    result = await panel_service.migrate_tandems(db, panel_id)
    return MigrationResponse(
        migrated=result.migrated,
        skipped=result.skipped,
        message=result.message,
    )


@router.get(
    "/panels/{panel_id}/export",
    response_model=PanelExport,
    responses=_not_found,
    summary="Export a panel as JSON",
    description="Download document (version 1.0) with breakers and devices.",
)
async def export_panel(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    document = await panel_service.export_panel(db, panel_id)
    return JSONResponse(
        content=document.model_dump(mode="json", by_alias=True),
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(document.panel.name)}"',
        },
    )


@router.post(
    "/panels/import",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid position or too many breakers", "model": ErrorResponse},
        409: {"description": "Two imported breakers collide", "model": ErrorResponse},
    },
    summary="Import a panel from an export document",
)
async def import_panel(
    document: PanelExport,
    db: AsyncSession = Depends(get_db_session),
) -> ImportResponse:
    panel, created, migration = await panel_service.import_panel(db, document)
    return ImportResponse(
        panel_id=panel.id,
        message=f'Panel "{panel.name}" imported successfully',
        breakers_created=created,
        tandems_migrated=migration.migrated,
    )
