"""Booking CRUD - create/list/edit/cancel/delete of single bookings"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.core.exceptions import NotFoundError, AdvanceExceedsTotalError, BusinessLogicError
from app.core.logging_utils import log_business_event
from app.turf.crud.settings import get_weekend_days
from app.turf.models.booking_slots import BookingSlot
from app.turf.models.bookings import Booking, BookingStatus, BookingSource
from app.turf.models.courts import Court
from app.turf.models.payments import Payment, PaymentStatus
from app.turf.schemas.bookings import (
    BookingCreate,
    BookingUpdate,
    BookingListItem,
    BookingRead,
    PaymentSummary,
)
from app.turf.services.booking_core import (
    create_single_booking,
    get_active_court,
    replace_booking_slots,
)
from app.turf.services.date_utils import normalize_to_midnight
from app.turf.services.pricing import calculate_price, apply_discount
from app.turf.services.slot_generator import generate_slots
from app.turf.services.slot_validation import check_slot_availability, raise_conflict_error

logger = logging.getLogger(__name__)


def get_display_status(booking: Booking, now: Optional[datetime] = None) -> str:
    """BOOKED бронь, время окончания которой наступило, показывается как COMPLETED до прохода sweeper-а"""
    if booking.status != BookingStatus.booked.value:
        return booking.status

    now = now or datetime.now()
    ends_at = datetime.combine(
        booking.booking_date, datetime.strptime(booking.end_time, "%H:%M").time()
    )
    if now >= ends_at:
        return BookingStatus.completed.value
    return booking.status


def to_list_item(
    booking: Booking, payment: Optional[Payment], court_name: Optional[str] = None
) -> BookingListItem:
    return BookingListItem(
        **BookingRead.model_validate(booking).model_dump(),
        court_name=court_name,
        display_status=get_display_status(booking),
        payment=PaymentSummary.model_validate(payment) if payment else None,
    )


async def get_booking_by_id(session: AsyncSession, booking_id: int) -> Booking:
    result = await session.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking", str(booking_id))
    return booking


async def get_payment_for_booking(session: AsyncSession, booking_id: int) -> Optional[Payment]:
    result = await session.execute(select(Payment).where(Payment.booking_id == booking_id))
    return result.scalar_one_or_none()


@db_operation
async def create_booking(
    session: AsyncSession, data: BookingCreate, created_by: int
) -> Booking:
    """Ручное создание брони в собственной транзакции"""
    booking = await create_single_booking(
        session, data, created_by=created_by, source=BookingSource.manual
    )
    await session.commit()
    return booking


@db_operation
async def get_bookings(
    session: AsyncSession,
    booking_date: Optional[date] = None,
    court_id: Optional[int] = None,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Tuple[Booking, Optional[Payment], str]]:
    """Список броней (новые сверху) с платежом и названием корта"""
    query = (
        select(Booking, Payment, Court.name)
        .join(Court, Court.id == Booking.court_id)
        .outerjoin(Payment, Payment.booking_id == Booking.id)
    )

    conditions = []
    if booking_date:
        conditions.append(Booking.booking_date == normalize_to_midnight(booking_date))
    if court_id:
        conditions.append(Booking.court_id == court_id)
    if status:
        conditions.append(Booking.status == status)
    if payment_status:
        conditions.append(Payment.status == payment_status)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Booking.customer_name.ilike(pattern),
                Booking.customer_phone.ilike(pattern),
            )
        )

    if conditions:
        query = query.where(and_(*conditions))

    query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
    result = await session.execute(query)
    return [(row[0], row[1], row[2]) for row in result.all()]


@db_operation
async def get_booking_detail(
    session: AsyncSession, booking_id: int
) -> Tuple[Booking, Optional[Payment], str]:
    result = await session.execute(
        select(Booking, Payment, Court.name)
        .join(Court, Court.id == Booking.court_id)
        .outerjoin(Payment, Payment.booking_id == Booking.id)
        .where(Booking.id == booking_id)
    )
    row = result.first()
    if not row:
        raise NotFoundError("Booking", str(booking_id))
    return row[0], row[1], row[2]


@db_operation
async def update_booking_status(
    session: AsyncSession, booking_id: int, status: BookingStatus
) -> Booking:
    """
    CANCELLED/COMPLETED переводит слоты в тот же статус (история сохраняется).
    Возврат в BOOKED требует свободных слотов: проверка без учёта самой брони,
    затем слоты пересоздаются как BOOKED.
    """
    booking = await get_booking_by_id(session, booking_id)
    previous = booking.status

    if previous != BookingStatus.booked.value and status != BookingStatus.booked:
        raise BusinessLogicError(
            f"Cannot change booking status from {previous} to {status.value}",
            {"from": previous, "to": status.value},
        )

    if status in (BookingStatus.cancelled, BookingStatus.completed):
        await session.execute(
            update(BookingSlot)
            .where(BookingSlot.booking_id == booking.id)
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
    elif status == BookingStatus.booked and previous != BookingStatus.booked.value:
        availability = await check_slot_availability(
            session,
            booking.court_id,
            booking.booking_date,
            booking.start_time,
            booking.end_time,
            exclude_booking_id=booking.id,
        )
        if not availability["available"]:
            raise_conflict_error(availability["conflicts"])

        slots = generate_slots(booking.start_time, booking.end_time)
        await replace_booking_slots(session, booking, slots)

    booking.status = status.value
    await session.commit()
    await session.refresh(booking)

    log_business_event(
        "booking_status_changed",
        "booking",
        booking.id,
        {"from": previous, "to": status.value},
    )
    return booking


@db_operation
async def update_booking(
    session: AsyncSession, booking_id: int, data: BookingUpdate
) -> Booking:
    """Полное редактирование: пересчёт цены, слотов и платежа"""
    booking = await get_booking_by_id(session, booking_id)
    payment = await get_payment_for_booking(session, booking.id)

    court_id = data.court_id if data.court_id is not None else booking.court_id
    booking_date = normalize_to_midnight(data.booking_date) or booking.booking_date
    start_time = data.start_time or booking.start_time
    end_time = data.end_time or booking.end_time
    status = data.status.value if data.status else booking.status
    discount_type = data.discount_type.value if data.discount_type else booking.discount_type
    discount_value = (
        data.discount_value if data.discount_value is not None else booking.discount_value
    )

    schedule_changed = (
        court_id != booking.court_id
        or booking_date != booking.booking_date
        or start_time != booking.start_time
        or end_time != booking.end_time
    )
    was_active = booking.status == BookingStatus.booked.value
    is_active = status == BookingStatus.booked.value

    court = await get_active_court(session, court_id)
    slots = generate_slots(start_time, end_time)

    if is_active and (schedule_changed or not was_active):
        availability = await check_slot_availability(
            session, court_id, booking_date, start_time, end_time,
            exclude_booking_id=booking.id,
        )
        if not availability["available"]:
            raise_conflict_error(availability["conflicts"])

    weekend_days = await get_weekend_days(session)
    base_amount = calculate_price(court, len(slots), booking_date, weekend_days)
    final_amount = apply_discount(base_amount, discount_type, discount_value)

    # платёж
    advance = data.advance_paid
    if advance is None:
        advance = payment.advance_paid if payment else Decimal("0")
    if data.payment_status == PaymentStatus.paid:
        advance = Decimal(final_amount)
    elif data.payment_status == PaymentStatus.pending:
        advance = Decimal("0")

    if Decimal(str(advance)) > final_amount:
        raise AdvanceExceedsTotalError(advance, final_amount)

    if data.customer_name is not None:
        booking.customer_name = data.customer_name.strip()
    if data.customer_phone is not None:
        booking.customer_phone = data.customer_phone
    if court_id != booking.court_id:
        booking.sport_type = court.sport_type
    booking.court_id = court_id
    booking.booking_date = booking_date
    booking.start_time = start_time
    booking.end_time = end_time
    booking.total_slots = len(slots)
    booking.base_amount = base_amount
    booking.discount_type = discount_type
    booking.discount_value = discount_value
    booking.final_amount = final_amount
    booking.status = status

    if is_active:
        if schedule_changed or not was_active:
            await replace_booking_slots(session, booking, slots)
    else:
        await session.execute(
            delete(BookingSlot)
            .where(BookingSlot.booking_id == booking.id)
            .execution_options(synchronize_session=False)
        )

    if payment is None:
        payment = Payment(booking_id=booking.id, total_amount=final_amount)
        session.add(payment)
    payment.total_amount = final_amount
    payment.apply_advance(advance, data.payment_status)
    if data.payment_mode is not None:
        payment.payment_mode = data.payment_mode.value
    if data.payment_notes is not None:
        payment.payment_notes = data.payment_notes

    await session.commit()
    await session.refresh(booking)

    log_business_event(
        "booking_updated",
        "booking",
        booking.id,
        {
            "schedule_changed": schedule_changed,
            "status": status,
            "final_amount": final_amount,
            "payment_status": payment.status,
        },
    )
    return booking


@db_operation
async def delete_booking(session: AsyncSession, booking_id: int) -> None:
    """Удаляет слоты, платёж и саму бронь"""
    booking = await get_booking_by_id(session, booking_id)

    await session.execute(delete(BookingSlot).where(BookingSlot.booking_id == booking.id))
    await session.execute(delete(Payment).where(Payment.booking_id == booking.id))
    await session.execute(delete(Booking).where(Booking.id == booking.id))
    await session.commit()

    log_business_event("booking_deleted", "booking", booking_id)
