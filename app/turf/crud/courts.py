from typing import List, Optional

from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.core.exceptions import NotFoundError, DuplicateError, BusinessLogicError
from app.core.logging_utils import log_business_event
from app.turf.models.bookings import Booking
from app.turf.models.courts import Court, CourtStatus
from app.turf.schemas.courts import CourtCreate, CourtUpdate


async def get_court_by_id(session: AsyncSession, court_id: int) -> Court:
    result = await session.execute(select(Court).where(Court.id == court_id))
    court = result.scalar_one_or_none()
    if not court:
        raise NotFoundError("Court", str(court_id))
    return court


async def _ensure_unique_name(
    session: AsyncSession, name: str, sport_type: str, exclude_id: Optional[int] = None
):
    conditions = [func.lower(Court.name) == name.lower(), Court.sport_type == sport_type]
    if exclude_id is not None:
        conditions.append(Court.id != exclude_id)
    result = await session.execute(select(Court.id).where(and_(*conditions)))
    if result.first():
        raise DuplicateError("Court", "name", f"{name} ({sport_type})")


@db_operation
async def get_courts(
    session: AsyncSession,
    sport_type: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Court]:
    query = select(Court)
    if sport_type:
        query = query.where(Court.sport_type == sport_type)
    if status:
        query = query.where(Court.status == status)
    result = await session.execute(query.order_by(Court.sport_type, Court.name))
    return list(result.scalars().all())


@db_operation
async def create_court(session: AsyncSession, data: CourtCreate) -> Court:
    await _ensure_unique_name(session, data.name, data.sport_type.value)

    court = Court(
        name=data.name,
        sport_type=data.sport_type.value,
        weekday_price=data.weekday_price,
        weekend_price=data.weekend_price,
        status=data.status.value,
    )
    session.add(court)
    await session.commit()
    await session.refresh(court)

    log_business_event("court_created", "court", court.id, {"name": court.name})
    return court


@db_operation
async def update_court(session: AsyncSession, court_id: int, data: CourtUpdate) -> Court:
    court = await get_court_by_id(session, court_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in update_data and update_data["name"] != court.name:
        await _ensure_unique_name(session, update_data["name"], court.sport_type, court.id)

    if "status" in update_data:
        update_data["status"] = data.status.value

    for field, value in update_data.items():
        setattr(court, field, value)

    await session.commit()
    await session.refresh(court)
    return court


@db_operation
async def set_court_status(session: AsyncSession, court_id: int, status: CourtStatus) -> Court:
    court = await get_court_by_id(session, court_id)
    court.status = status.value
    await session.commit()
    await session.refresh(court)

    log_business_event("court_status_changed", "court", court.id, {"status": status.value})
    return court


@db_operation
async def delete_court(session: AsyncSession, court_id: int) -> None:
    """Корт с бронями удалить нельзя, его можно только деактивировать"""
    court = await get_court_by_id(session, court_id)

    result = await session.execute(
        select(func.count()).select_from(Booking).where(Booking.court_id == court.id)
    )
    if (result.scalar() or 0) > 0:
        raise BusinessLogicError(
            "Court has bookings; set it INACTIVE instead of deleting",
            {"court_id": court.id},
        )

    await session.delete(court)
    await session.commit()
    log_business_event("court_deleted", "court", court_id)
