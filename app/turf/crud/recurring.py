"""Recurring Booking CRUD - rules and regeneration of their bookings"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.core.exceptions import NotFoundError, ValidationError, ConflictError
from app.core.logging_utils import log_business_event
from app.turf.models.booking_slots import BookingSlot
from app.turf.models.bookings import Booking, BookingStatus
from app.turf.models.payments import Payment
from app.turf.models.recurring_bookings import RecurringBooking, RecurringStatus
from app.turf.schemas.recurring import RecurringRuleCreate, RecurringRuleUpdate
from app.turf.services.booking_core import get_active_court
from app.turf.services.recurring_generator import generate_dates, process_recurring_booking
from app.turf.services.slot_validation import check_slot_availability

logger = logging.getLogger(__name__)

EMPTY_REPORT = {"success": 0, "failed": 0, "conflicts": []}


def _rule_values(data: RecurringRuleCreate) -> Dict[str, Any]:
    values = data.model_dump()
    values["recurrence_type"] = data.recurrence_type.value
    values["days_of_week"] = [day.value for day in data.days_of_week]
    values["discount_type"] = data.discount_type.value
    return values


async def get_rule_by_id(session: AsyncSession, rule_id: int) -> RecurringBooking:
    result = await session.execute(
        select(RecurringBooking).where(RecurringBooking.id == rule_id)
    )
    rule = result.scalar_one_or_none()
    if not rule:
        raise NotFoundError("Recurring booking", str(rule_id))
    return rule


async def delete_bookings_by_ids(session: AsyncSession, booking_ids: List[int]) -> int:
    """Удаляет брони вместе со слотами и платежами (без commit)"""
    if not booking_ids:
        return 0
    await session.execute(delete(BookingSlot).where(BookingSlot.booking_id.in_(booking_ids)))
    await session.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
    await session.execute(delete(Booking).where(Booking.id.in_(booking_ids)))
    return len(booking_ids)


async def _prevalidate(session: AsyncSession, data: RecurringRuleCreate) -> List[date]:
    """
    Проверка до создания правила: хотя бы одна дата, и не все даты заняты.
    """
    await get_active_court(session, data.court_id)

    dates = generate_dates(data)
    if not dates:
        raise ValidationError("No valid dates found in the specified range")

    conflicted = 0
    for booking_date in dates:
        availability = await check_slot_availability(
            session, data.court_id, booking_date, data.start_time, data.end_time
        )
        if not availability["available"]:
            conflicted += 1

    if conflicted == len(dates):
        raise ConflictError(
            "Double Booking: The selected time slot is already fully booked for ALL selected dates.",
            {"dates": len(dates)},
        )
    return dates


@db_operation
async def create_recurring_rule(
    session: AsyncSession, data: RecurringRuleCreate, created_by: int
) -> Tuple[RecurringBooking, Dict[str, Any]]:
    """Создаёт правило и сразу генерирует брони в той же транзакции"""
    await _prevalidate(session, data)

    rule = RecurringBooking(
        **_rule_values(data),
        status=RecurringStatus.active.value,
        created_by=created_by,
    )
    session.add(rule)
    await session.flush()

    report = await process_recurring_booking(rule.id, session=session)

    await session.commit()
    await session.refresh(rule)

    log_business_event(
        "recurring_rule_created", "recurring_booking", rule.id, report
    )
    return rule, report


@db_operation
async def get_recurring_rules(
    session: AsyncSession, status: Optional[str] = None
) -> List[RecurringBooking]:
    query = select(RecurringBooking)
    if status:
        query = query.where(RecurringBooking.status == status)
    result = await session.execute(
        query.order_by(RecurringBooking.created_at.desc(), RecurringBooking.id.desc())
    )
    return list(result.scalars().all())


@db_operation
async def update_recurring_rule(
    session: AsyncSession, rule_id: int, data: RecurringRuleUpdate
) -> Tuple[RecurringBooking, Dict[str, Any]]:
    """
    Обновляет правило, удаляет его будущие BOOKED брони (с сегодняшнего дня)
    и заново генерирует их по новым условиям.
    """
    rule = await get_rule_by_id(session, rule_id)
    await get_active_court(session, data.court_id)

    for field, value in _rule_values(data).items():
        setattr(rule, field, value)
    await session.flush()

    today = date.today()
    result = await session.execute(
        select(Booking.id).where(
            and_(
                Booking.recurring_id == rule.id,
                Booking.status == BookingStatus.booked.value,
                Booking.booking_date >= today,
            )
        )
    )
    removed = await delete_bookings_by_ids(session, [row[0] for row in result.fetchall()])

    if rule.status == RecurringStatus.active.value:
        report = await process_recurring_booking(rule.id, session=session, from_date=today)
    else:
        report = dict(EMPTY_REPORT, conflicts=[])

    await session.commit()
    await session.refresh(rule)

    log_business_event(
        "recurring_rule_updated",
        "recurring_booking",
        rule.id,
        {"removed_bookings": removed, **report},
    )
    return rule, report


@db_operation
async def set_recurring_status(
    session: AsyncSession, rule_id: int, status: RecurringStatus
) -> RecurringBooking:
    rule = await get_rule_by_id(session, rule_id)
    rule.status = status.value
    await session.commit()
    await session.refresh(rule)

    log_business_event(
        "recurring_status_changed", "recurring_booking", rule.id, {"status": status.value}
    )
    return rule


@db_operation
async def delete_recurring_rule(session: AsyncSession, rule_id: int) -> int:
    """Удаляет правило и все брони, созданные по нему. Возвращает число удалённых броней"""
    rule = await get_rule_by_id(session, rule_id)

    result = await session.execute(select(Booking.id).where(Booking.recurring_id == rule.id))
    removed = await delete_bookings_by_ids(session, [row[0] for row in result.fetchall()])

    await session.execute(delete(RecurringBooking).where(RecurringBooking.id == rule.id))
    await session.commit()

    log_business_event(
        "recurring_rule_deleted", "recurring_booking", rule_id, {"removed_bookings": removed}
    )
    return removed
