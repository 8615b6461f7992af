from datetime import date

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.turf.crud.bookings import get_display_status
from app.turf.crud.settings import get_settings
from app.turf.models.bookings import Booking, BookingStatus, BookingSource
from app.turf.models.courts import Court, CourtStatus
from app.turf.models.payments import Payment
from app.turf.schemas.calendar import CalendarBooking, CalendarCourt, CalendarDayResponse


@db_operation
async def get_day_calendar(session: AsyncSession, day: date) -> CalendarDayResponse:
    """Активные корты и их неотменённые брони за день"""
    settings = await get_settings(session)

    courts_result = await session.execute(
        select(Court)
        .where(Court.status == CourtStatus.active.value)
        .order_by(Court.sport_type, Court.name)
    )
    courts = courts_result.scalars().all()

    bookings_result = await session.execute(
        select(Booking, Payment)
        .outerjoin(Payment, Payment.booking_id == Booking.id)
        .where(
            and_(
                Booking.booking_date == day,
                Booking.status != BookingStatus.cancelled.value,
            )
        )
        .order_by(Booking.start_time)
    )

    by_court = {}
    for booking, payment in bookings_result.all():
        by_court.setdefault(booking.court_id, []).append(
            CalendarBooking(
                id=booking.id,
                customer_name=booking.customer_name,
                customer_phone=booking.customer_phone,
                start_time=booking.start_time,
                end_time=booking.end_time,
                total_slots=booking.total_slots,
                final_amount=booking.final_amount,
                status=booking.status,
                display_status=get_display_status(booking),
                source=booking.source,
                recurring_id=booking.recurring_id,
                read_only=booking.source == BookingSource.recurring.value,
                payment_status=payment.status if payment else None,
                advance_paid=payment.advance_paid if payment else None,
                balance_amount=payment.balance_amount if payment else None,
            )
        )

    return CalendarDayResponse(
        date=day,
        opening_time=settings.opening_time,
        closing_time=settings.closing_time,
        courts=[
            CalendarCourt(
                court_id=court.id,
                court_name=court.name,
                sport_type=court.sport_type,
                bookings=by_court.get(court.id, []),
            )
            for court in courts
        ],
    )
