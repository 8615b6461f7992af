from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import SlotConflictError
from app.turf.models.booking_slots import BookingSlot, SlotStatus
from app.turf.services.date_utils import normalize_to_midnight
from app.turf.services.slot_generator import generate_slots


async def check_slot_availability(
    session: AsyncSession,
    court_id: int,
    booking_date: date,
    start_time: str,
    end_time: str,
    exclude_booking_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Проверяет, свободны ли слоты корта на дату.

    Учитываются только BOOKED-слоты; отменённые и завершённые не мешают.
    exclude_booking_id исключает слоты редактируемой брони.

    Returns:
        {"available": bool, "conflicts": отсортированный список занятых слотов}
    """
    slots = generate_slots(start_time, end_time)
    normalized_date = normalize_to_midnight(booking_date)

    conditions = [
        BookingSlot.court_id == court_id,
        BookingSlot.booking_date == normalized_date,
        BookingSlot.slot_time.in_(slots),
        BookingSlot.status == SlotStatus.booked.value,
    ]
    if exclude_booking_id is not None:
        conditions.append(BookingSlot.booking_id != exclude_booking_id)

    result = await session.execute(
        select(BookingSlot.slot_time).where(and_(*conditions)).distinct()
    )
    conflicts = sorted(row[0] for row in result.fetchall())

    return {"available": not conflicts, "conflicts": conflicts}


def raise_conflict_error(conflicts: Optional[List[str]] = None, race: bool = False):
    raise SlotConflictError(conflicts, race=race)
