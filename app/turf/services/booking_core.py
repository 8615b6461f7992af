"""
Booking Core - создание одной брони вместе со слотами и платежом.

Используется и ручным созданием брони, и генерацией по recurring-правилу.
Транзакцией владеет вызывающий код: здесь нет commit/rollback, только flush
внутри SAVEPOINT, чтобы ошибка вставки не портила внешнюю транзакцию.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import (
    NotFoundError,
    CourtInactiveError,
    InvalidTimeRangeError,
    AdvanceExceedsTotalError,
)
from app.core.error_handlers import constraint_name
from app.core.logging_utils import log_business_event
from app.turf.crud.settings import get_weekend_days
from app.turf.models.booking_slots import BookingSlot, SlotStatus, BOOKED_SLOT_INDEX
from app.turf.models.bookings import Booking, BookingStatus, BookingSource
from app.turf.models.courts import Court
from app.turf.models.payments import Payment, PaymentStatus
from app.turf.schemas.bookings import BookingCreate
from app.turf.services.date_utils import normalize_to_midnight
from app.turf.services.pricing import calculate_price, apply_discount
from app.turf.services.slot_generator import generate_slots
from app.turf.services.slot_validation import check_slot_availability, raise_conflict_error

logger = logging.getLogger(__name__)


def is_booked_slot_violation(exc: IntegrityError) -> bool:
    """True when the insert lost the race on the BOOKED-slot unique index"""
    return constraint_name(exc) == BOOKED_SLOT_INDEX


async def get_active_court(session: AsyncSession, court_id: int) -> Court:
    result = await session.execute(select(Court).where(Court.id == court_id))
    court = result.scalar_one_or_none()
    if not court:
        raise NotFoundError("Court", str(court_id))
    if not court.is_active:
        raise CourtInactiveError(court_id)
    return court


async def purge_inactive_slots(
    session: AsyncSession, court_id: int, booking_date, slots: Iterable[str]
):
    """Удаляет старые CANCELLED/COMPLETED слоты на тех же позициях"""
    await session.execute(
        delete(BookingSlot)
        .where(
            and_(
                BookingSlot.court_id == court_id,
                BookingSlot.booking_date == booking_date,
                BookingSlot.slot_time.in_(list(slots)),
                BookingSlot.status != SlotStatus.booked.value,
            )
        )
        .execution_options(synchronize_session=False)
    )


def build_slot_rows(booking: Booking, slots: List[str]) -> List[BookingSlot]:
    return [
        BookingSlot(
            booking_id=booking.id,
            court_id=booking.court_id,
            booking_date=booking.booking_date,
            slot_time=slot_time,
            status=SlotStatus.booked.value,
        )
        for slot_time in slots
    ]


async def create_single_booking(
    session: AsyncSession,
    data: BookingCreate,
    created_by: int,
    source: BookingSource = BookingSource.manual,
    recurring_id: Optional[int] = None,
    skip_availability_check: bool = False,
) -> Booking:
    """
    Создаёт бронь, её слоты и платёж в рамках переданной сессии.

    Raises:
        NotFoundError: корт не найден
        CourtInactiveError: корт не ACTIVE
        InvalidTimeRangeError: пустой диапазон времени
        SlotConflictError: слоты заняты (проверка или гонка на уникальном индексе)
        AdvanceExceedsTotalError: аванс больше итоговой суммы
    """
    if source == BookingSource.recurring and recurring_id is None:
        raise ValueError("Recurring bookings must reference their rule")

    booking_date = normalize_to_midnight(data.booking_date)

    court = await get_active_court(session, data.court_id)

    slots = generate_slots(data.start_time, data.end_time)
    if not slots:
        raise InvalidTimeRangeError(data.start_time, data.end_time)

    if not skip_availability_check:
        availability = await check_slot_availability(
            session, court.id, booking_date, data.start_time, data.end_time
        )
        if not availability["available"]:
            raise_conflict_error(availability["conflicts"])

        await purge_inactive_slots(session, court.id, booking_date, slots)

    weekend_days = await get_weekend_days(session)
    base_amount = calculate_price(court, len(slots), booking_date, weekend_days)
    final_amount = apply_discount(base_amount, data.discount_type.value, data.discount_value)

    advance_paid = Decimal(str(data.advance_paid or 0))
    if data.payment_status == PaymentStatus.paid:
        advance_paid = Decimal(final_amount)

    if advance_paid > final_amount:
        raise AdvanceExceedsTotalError(advance_paid, final_amount)

    booking = Booking(
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        sport_type=data.sport_type or court.sport_type,
        court_id=court.id,
        booking_date=booking_date,
        start_time=data.start_time,
        end_time=data.end_time,
        total_slots=len(slots),
        base_amount=base_amount,
        discount_type=data.discount_type.value,
        discount_value=data.discount_value,
        final_amount=final_amount,
        status=BookingStatus.booked.value,
        source=source.value,
        recurring_id=recurring_id,
        created_by=created_by,
    )

    try:
        async with session.begin_nested():
            session.add(booking)
            await session.flush()

            session.add_all(build_slot_rows(booking, slots))

            payment = Payment(
                booking_id=booking.id,
                total_amount=final_amount,
                payment_mode=data.payment_mode.value,
                payment_notes=data.payment_notes,
            )
            payment.apply_advance(advance_paid)
            session.add(payment)
            await session.flush()
    except IntegrityError as e:
        if is_booked_slot_violation(e):
            logger.warning(
                "Slot race lost on insert",
                extra={
                    "court_id": court.id,
                    "booking_date": booking_date.isoformat(),
                    "start_time": data.start_time,
                    "end_time": data.end_time,
                },
            )
            raise_conflict_error(slots, race=True)
        raise

    log_business_event(
        "booking_created",
        "booking",
        booking.id,
        {
            "court_id": court.id,
            "booking_date": booking_date,
            "slots": len(slots),
            "final_amount": final_amount,
            "source": source.value,
            "recurring_id": recurring_id,
        },
    )
    return booking


async def replace_booking_slots(session: AsyncSession, booking: Booking, slots: List[str]):
    """
    Пересоздаёт слоты брони как BOOKED (редактирование, повторная активация).
    booking уже должен содержать новые court_id/booking_date.
    """
    try:
        async with session.begin_nested():
            await session.execute(
                delete(BookingSlot)
                .where(BookingSlot.booking_id == booking.id)
                .execution_options(synchronize_session=False)
            )
            await purge_inactive_slots(session, booking.court_id, booking.booking_date, slots)
            session.add_all(build_slot_rows(booking, slots))
            await session.flush()
    except IntegrityError as e:
        if is_booked_slot_violation(e):
            raise_conflict_error(slots, race=True)
        raise
