"""
Recurring bookings: развёртка правила в даты и генерация броней по датам.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from app.core.config import RECURRING_DEFAULT_WINDOW_MONTHS
from app.core.database import transaction_scope
from app.core.exceptions import BaseAppException, NotFoundError
from app.core.logging_utils import log_business_event
from app.turf.models.bookings import BookingSource
from app.turf.models.payments import PaymentMode
from app.turf.models.recurring_bookings import (
    RecurringBooking,
    RecurrenceType,
    RecurringStatus,
    WEEKDAY_CODES,
)
from app.turf.schemas.bookings import BookingCreate
from app.turf.services.booking_core import create_single_booking
from app.turf.services.date_utils import normalize_to_midnight, add_months

logger = logging.getLogger(__name__)

GENERATED_PAYMENT_NOTE = "Generated via Recurring Rule"


def _field(rule, name):
    if isinstance(rule, dict):
        return rule.get(name)
    return getattr(rule, name, None)


def _value(item):
    return getattr(item, "value", item)


def generate_dates(
    rule,
    default_window_months: int = RECURRING_DEFAULT_WINDOW_MONTHS,
    from_date: Optional[date] = None,
) -> List[date]:
    """
    Разворачивает правило в список дат (по возрастанию).

    Без end_date окно ограничено start_date + default_window_months.
    WEEKLY: дни недели из days_of_week. MONTHLY: день месяца == fixed_date.
    from_date сдвигает начало обхода вперёд (перегенерация с сегодняшнего дня).

    Args:
        rule: RecurringBooking, схема правила или dict с теми же полями
    """
    start = normalize_to_midnight(_field(rule, "start_date"))
    end = normalize_to_midnight(_field(rule, "end_date"))
    if end is None:
        end = add_months(start, default_window_months)

    current = start
    if from_date is not None:
        current = max(current, normalize_to_midnight(from_date))

    recurrence_type = _value(_field(rule, "recurrence_type"))
    target_days = {
        WEEKDAY_CODES.index(_value(day).upper())
        for day in (_field(rule, "days_of_week") or [])
    }
    fixed_date = _field(rule, "fixed_date")

    dates = []
    while current <= end:
        if recurrence_type == RecurrenceType.weekly.value:
            if current.weekday() in target_days:
                dates.append(current)
        elif recurrence_type == RecurrenceType.monthly.value:
            if current.day == fixed_date:
                dates.append(current)
        current += timedelta(days=1)

    return dates


def booking_data_for(rule: RecurringBooking, booking_date: date) -> BookingCreate:
    return BookingCreate(
        customer_name=rule.customer_name,
        customer_phone=rule.customer_phone,
        sport_type=rule.sport_type,
        court_id=rule.court_id,
        booking_date=booking_date,
        start_time=rule.start_time,
        end_time=rule.end_time,
        discount_type=rule.discount_type,
        discount_value=rule.discount_value or 0,
        advance_paid=rule.advance_paid or 0,
        payment_mode=PaymentMode.cash,
        payment_notes=GENERATED_PAYMENT_NOTE,
    )


async def process_recurring_booking(
    rule_id: int,
    session: Optional[AsyncSession] = None,
    session_factory: Optional[async_sessionmaker] = None,
    from_date: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Создаёт брони по всем датам правила.

    Каждая дата выполняется в своём SAVEPOINT: ошибка бизнес-логики по одной
    дате откатывает только её и попадает в conflicts, остальные даты идут дальше.
    С внешней сессией транзакцию закрывает вызывающий; без неё открывается своя
    и коммитится в конце.

    Returns:
        {"success": int, "failed": int, "conflicts": [{"date": "YYYY-MM-DD", "reason": str}]}
    """
    async with transaction_scope(session, session_factory) as db:
        result = await db.execute(
            select(RecurringBooking).where(RecurringBooking.id == rule_id)
        )
        rule = result.scalar_one_or_none()
        if not rule or rule.status != RecurringStatus.active.value:
            raise NotFoundError("Active recurring booking", str(rule_id))

        dates = generate_dates(rule, from_date=from_date)
        report = {"success": 0, "failed": 0, "conflicts": []}

        for booking_date in dates:
            try:
                async with db.begin_nested():
                    await create_single_booking(
                        db,
                        booking_data_for(rule, booking_date),
                        created_by=rule.created_by,
                        source=BookingSource.recurring,
                        recurring_id=rule.id,
                    )
                report["success"] += 1
            except BaseAppException as e:
                report["failed"] += 1
                report["conflicts"].append(
                    {"date": booking_date.isoformat(), "reason": e.message}
                )
                logger.info(
                    f"Recurring date skipped: {booking_date.isoformat()}",
                    extra={"rule_id": rule.id, "reason": e.message, "error_code": e.error_code},
                )

        log_business_event(
            "recurring_rule_processed",
            "recurring_booking",
            rule.id,
            {"dates": len(dates), "success": report["success"], "failed": report["failed"]},
        )
        return report
