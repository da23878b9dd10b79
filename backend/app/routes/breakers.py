"""
CircuitMap Backend — Breaker Route Handlers
=============================================

What:  Breaker CRUD plus the explicit tandem split.
How:   Thin handlers; BreakerService owns validation, locking and the
       transaction steps. Errors map to status codes in app.main.

Endpoints:
    POST   /api/breakers              create (201; two records for "14A/14B")
    GET    /api/breakers/{id}         fetch one
    PATCH  /api/breakers/{id}         partial update, position re-validated
    DELETE /api/breakers/{id}         delete (204)
    POST   /api/breakers/{id}/split   split a combined tandem into halves
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.breaker import (
    BreakerCreate,
    BreakerListResponse,
    BreakerResponse,
    BreakerUpdate,
)
from app.schemas.common import ErrorResponse
from app.services.breaker_service import breaker_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Breakers"])

_position_errors = {
    400: {"description": "Invalid position format", "model": ErrorResponse},
    404: {"description": "Panel or breaker not found", "model": ErrorResponse},
    409: {"description": "Position conflict", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/breakers",
    response_model=BreakerListResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_position_errors,
    summary="Create a breaker",
    description=(
        "Validates the position grammar and checks it against the panel's "
        "existing breakers. A combined tandem position such as '14A/14B' "
        "creates two breakers, one per half."
    ),
)
async def create_breaker(
    payload: BreakerCreate,
    db: AsyncSession = Depends(get_db_session),
) -> BreakerListResponse:
    created = await breaker_service.create_breaker(db, payload)
    message = "Breaker created" if len(created) == 1 else "Tandem breaker created as two halves"
    return BreakerListResponse(
        message=message,
        breakers=[BreakerResponse.model_validate(b) for b in created],
    )


@router.get(
    "/breakers/{breaker_id}",
    response_model=BreakerResponse,
    responses={404: {"description": "Breaker not found", "model": ErrorResponse}},
    summary="Get a single breaker",
)
async def get_breaker(
    breaker_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> BreakerResponse:
    breaker = await breaker_service.get_breaker(db, breaker_id)
    return BreakerResponse.model_validate(breaker)


@router.patch(
    "/breakers/{breaker_id}",
    response_model=BreakerResponse,
    responses=_position_errors,
    summary="Update a breaker",
    description=(
        "Partial update. A new position is validated like on create, ignoring "
        "the breaker being edited. Combined tandem positions are rejected."
    ),
)
async def update_breaker(
    breaker_id: UUID,
    payload: BreakerUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> BreakerResponse:
    breaker = await breaker_service.update_breaker(db, breaker_id, payload)
    return BreakerResponse.model_validate(breaker)


@router.delete(
    "/breakers/{breaker_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Breaker not found", "model": ErrorResponse}},
    summary="Delete a breaker",
)
async def delete_breaker(
    breaker_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await breaker_service.delete_breaker(db, breaker_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/breakers/{breaker_id}/split",
    response_model=BreakerListResponse,
    responses=_position_errors,
    summary="Split a combined tandem breaker",
    description=(
        "Turns a breaker at '14A/14B' into two breakers at '14A' and '14B'. "
        "The existing record becomes half A and keeps its devices; half B is "
        "a new record with the same electrical attributes. Fails with 409 "
        "when either half is already occupied."
    ),
)
async def split_breaker(
    breaker_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> BreakerListResponse:
    halves = await breaker_service.split_breaker(db, breaker_id)
    return BreakerListResponse(
        message=f"Split into {halves[0].position} and {halves[1].position}",
        breakers=[BreakerResponse.model_validate(b) for b in halves],
    )
