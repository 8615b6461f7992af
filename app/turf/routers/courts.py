from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_admin, require_staff
from app.turf.models.courts import SportType, CourtStatus
from app.turf.schemas.courts import (
    CourtCreate,
    CourtUpdate,
    CourtStatusUpdate,
    CourtRead,
    CourtListResponse,
)
from app.turf.crud.courts import (
    get_court_by_id,
    get_courts,
    create_court,
    update_court,
    set_court_status,
    delete_court,
)

router = APIRouter(prefix="/courts", tags=["Courts"])


@router.get("/", response_model=CourtListResponse)
@limiter.limit("60/minute")
async def list_courts(
    request: Request,
    sport_type: Optional[SportType] = Query(None, description="Filter by sport"),
    court_status: Optional[CourtStatus] = Query(None, alias="status"),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    courts = await get_courts(
        db,
        sport_type=sport_type.value if sport_type else None,
        status=court_status.value if court_status else None,
    )
    return CourtListResponse(
        courts=[CourtRead.model_validate(court) for court in courts], total=len(courts)
    )


@router.get("/{court_id}", response_model=CourtRead)
@limiter.limit("60/minute")
async def get_court(
    request: Request,
    court_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    return await get_court_by_id(db, court_id)


@router.post("/", response_model=CourtRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_court(
    request: Request,
    court: CourtCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a court.

    - **name**: unique per sport type
    - **weekday_price** / **weekend_price**: hourly rates
    """
    return await create_court(db, court)


@router.put("/{court_id}", response_model=CourtRead)
@limiter.limit("20/minute")
async def update_existing_court(
    request: Request,
    court: CourtUpdate,
    court_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await update_court(db, court_id, court)


@router.patch("/{court_id}/status", response_model=CourtRead)
@limiter.limit("20/minute")
async def change_court_status(
    request: Request,
    body: CourtStatusUpdate,
    court_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await set_court_status(db, court_id, body.status)


@router.delete("/{court_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_court(
    request: Request,
    court_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await delete_court(db, court_id)
