"""Payment CRUD - list/get/mark-paid/mode"""
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.core.exceptions import NotFoundError
from app.core.logging_utils import log_business_event
from app.turf.models.bookings import Booking, BookingStatus
from app.turf.models.courts import Court
from app.turf.models.payments import Payment, PaymentMode, PaymentStatus
from app.turf.schemas.payments import PaymentRead, booking_reference


def to_payment_read(payment: Payment, booking: Booking, court_name: Optional[str]) -> PaymentRead:
    return PaymentRead(
        id=payment.id,
        booking_id=payment.booking_id,
        booking_reference=booking_reference(payment.booking_id),
        total_amount=payment.total_amount,
        advance_paid=payment.advance_paid,
        balance_amount=payment.balance_amount,
        payment_mode=payment.payment_mode,
        payment_notes=payment.payment_notes,
        status=payment.status,
        payment_date=payment.payment_date,
        customer_name=booking.customer_name,
        customer_phone=booking.customer_phone,
        court_id=booking.court_id,
        court_name=court_name,
        booking_date=booking.booking_date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        booking_status=booking.status,
    )


def _base_query():
    return (
        select(Payment, Booking, Court.name)
        .join(Booking, Booking.id == Payment.booking_id)
        .join(Court, Court.id == Booking.court_id)
    )


@db_operation
async def get_payments(
    session: AsyncSession,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    court_id: Optional[int] = None,
    payment_status: Optional[str] = None,
) -> List[Tuple[Payment, Booking, str]]:
    """Платежи по неотменённым броням, новые сверху"""
    conditions = [Booking.status != BookingStatus.cancelled.value]
    if date_from:
        conditions.append(Booking.booking_date >= date_from)
    if date_to:
        conditions.append(Booking.booking_date <= date_to)
    if court_id:
        conditions.append(Booking.court_id == court_id)
    if payment_status:
        conditions.append(Payment.status == payment_status)

    result = await session.execute(
        _base_query()
        .where(and_(*conditions))
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    return [(row[0], row[1], row[2]) for row in result.all()]


@db_operation
async def get_payment(session: AsyncSession, payment_id: int) -> Tuple[Payment, Booking, str]:
    result = await session.execute(_base_query().where(Payment.id == payment_id))
    row = result.first()
    if not row:
        raise NotFoundError("Payment", str(payment_id))
    return row[0], row[1], row[2]


@db_operation
async def mark_payment_paid(
    session: AsyncSession,
    payment_id: int,
    payment_mode: Optional[PaymentMode] = None,
    payment_notes: Optional[str] = None,
) -> Tuple[Payment, Booking, str]:
    payment, booking, court_name = await get_payment(session, payment_id)

    payment.apply_advance(payment.total_amount, PaymentStatus.paid)
    payment.payment_date = datetime.now(timezone.utc)
    if payment_mode is not None:
        payment.payment_mode = payment_mode.value
    if payment_notes is not None:
        payment.payment_notes = payment_notes

    await session.commit()
    await session.refresh(payment)

    log_business_event(
        "payment_marked_paid",
        "payment",
        payment.id,
        {"booking_id": payment.booking_id, "amount": payment.total_amount},
    )
    return payment, booking, court_name


@db_operation
async def update_payment_mode(
    session: AsyncSession, payment_id: int, payment_mode: PaymentMode
) -> Tuple[Payment, Booking, str]:
    payment, booking, court_name = await get_payment(session, payment_id)
    payment.payment_mode = payment_mode.value
    await session.commit()
    await session.refresh(payment)
    return payment, booking, court_name
