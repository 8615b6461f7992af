from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_staff
from app.turf.schemas.calendar import CalendarDayResponse
from app.turf.crud.calendar import get_day_calendar

router = APIRouter(prefix="/calendar", tags=["Calendar"])


@router.get("/day", response_model=CalendarDayResponse)
@limiter.limit("60/minute")
async def day_calendar(
    request: Request,
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    """Active courts with their bookings for the day; RECURRING bookings are read-only"""
    calendar = await get_day_calendar(db, day)
    await db.commit()
    return calendar
