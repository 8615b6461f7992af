from decimal import Decimal

import pytest
from sqlalchemy.future import select

from app.core.exceptions import (
    AdvanceExceedsTotalError,
    BusinessLogicError,
    CourtInactiveError,
    InvalidTimeRangeError,
    NotFoundError,
    SlotConflictError,
    ValidationError,
)
from app.turf.crud.bookings import update_booking_status
from app.turf.models.booking_slots import BookingSlot, SlotStatus
from app.turf.models.bookings import Booking, BookingSource, BookingStatus, DiscountType
from app.turf.models.courts import CourtStatus
from app.turf.models.payments import Payment, PaymentStatus
from app.turf.services.booking_core import create_single_booking
from app.turf.services.slot_validation import check_slot_availability

from tests.conftest import MONDAY, booking_data, create_court


async def _slots(session, booking_id):
    result = await session.execute(
        select(BookingSlot)
        .where(BookingSlot.booking_id == booking_id)
        .order_by(BookingSlot.slot_time)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _payment(session, booking_id):
    result = await session.execute(
        select(Payment)
        .where(Payment.booking_id == booking_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def test_booking_creates_slots_and_payment(session, court):
    booking = await create_single_booking(session, booking_data(court.id), created_by=7)
    await session.commit()

    slots = await _slots(session, booking.id)
    payment = await _payment(session, booking.id)

    assert booking.total_slots == 4
    assert booking.final_amount == 400
    assert booking.status == BookingStatus.booked.value
    assert booking.source == BookingSource.manual.value
    assert booking.sport_type == court.sport_type
    assert booking.created_by == 7
    assert [s.slot_time for s in slots] == ["06:00", "06:15", "06:30", "06:45"]
    assert all(s.status == SlotStatus.booked.value for s in slots)
    assert payment.total_amount == 400
    assert payment.status == PaymentStatus.pending.value
    assert payment.balance_amount == Decimal("400")


async def test_adjacent_bookings_do_not_conflict(session, court):
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await create_single_booking(
        session, booking_data(court.id, start_time="07:00", end_time="08:00"), created_by=1
    )
    await session.commit()

    availability = await check_slot_availability(session, court.id, MONDAY, "06:00", "08:00")
    assert availability["available"] is False
    assert len(availability["conflicts"]) == 8


async def test_overlapping_booking_lists_conflicting_slots(session, court):
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()

    with pytest.raises(SlotConflictError) as exc_info:
        await create_single_booking(
            session, booking_data(court.id, start_time="06:30", end_time="07:30"), created_by=1
        )

    assert exc_info.value.conflicts == ["06:30", "06:45"]
    assert exc_info.value.race is False
    assert exc_info.value.status_code == 409


async def test_unaligned_range_inside_a_booking_is_refused(session, court):
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()

    with pytest.raises(InvalidTimeRangeError):
        await create_single_booking(
            session, booking_data(court.id, start_time="06:10", end_time="06:40"), created_by=1
        )

    ranges = (
        await session.execute(select(Booking.start_time, Booking.end_time))
    ).all()
    assert ranges == [("06:00", "07:00")]


async def test_same_slot_on_another_court_is_free(session, session_factory, court):
    other = await create_court(session_factory, name="Court B")
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await create_single_booking(session, booking_data(other.id), created_by=1)
    await session.commit()


async def test_availability_check_is_read_only(session, court):
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()

    first = await check_slot_availability(session, court.id, MONDAY, "06:00", "06:30")
    second = await check_slot_availability(session, court.id, MONDAY, "06:00", "06:30")

    assert first == second == {"available": False, "conflicts": ["06:00", "06:15"]}


async def test_cancelled_booking_frees_its_slots(session, court):
    booking = await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()

    await update_booking_status(session, booking.id, BookingStatus.cancelled)

    slots = await _slots(session, booking.id)
    assert all(s.status == SlotStatus.cancelled.value for s in slots)

    availability = await check_slot_availability(session, court.id, MONDAY, "06:00", "07:00")
    assert availability == {"available": True, "conflicts": []}

    again = await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()
    assert again.id != booking.id


@pytest.mark.parametrize(
    "first,second",
    [
        (BookingStatus.cancelled, BookingStatus.completed),
        (BookingStatus.completed, BookingStatus.cancelled),
    ],
)
async def test_inactive_booking_only_goes_back_to_booked(session, court, first, second):
    booking = await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()
    await update_booking_status(session, booking.id, first)

    with pytest.raises(BusinessLogicError):
        await update_booking_status(session, booking.id, second)

    slots = await _slots(session, booking.id)
    assert all(s.status == first.value for s in slots)

    reactivated = await update_booking_status(session, booking.id, BookingStatus.booked)
    assert reactivated.status == BookingStatus.booked.value


async def test_reactivation_fails_when_slots_were_taken(session, court):
    booking = await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()
    await update_booking_status(session, booking.id, BookingStatus.cancelled)

    await create_single_booking(
        session, booking_data(court.id, start_time="06:45", end_time="07:15"), created_by=1
    )
    await session.commit()

    with pytest.raises(SlotConflictError) as exc_info:
        await update_booking_status(session, booking.id, BookingStatus.booked)
    assert exc_info.value.conflicts == ["06:45"]


async def test_percent_discount_and_partial_advance(session, court):
    booking = await create_single_booking(
        session,
        booking_data(
            court.id,
            discount_type=DiscountType.percent,
            discount_value=Decimal("50"),
            advance_paid=Decimal("100"),
        ),
        created_by=1,
    )
    await session.commit()
    payment = await _payment(session, booking.id)

    assert booking.base_amount == Decimal("400")
    assert booking.final_amount == 200
    assert payment.status == PaymentStatus.partial.value
    assert payment.advance_paid == Decimal("100")
    assert payment.balance_amount == Decimal("100")


async def test_paid_status_settles_full_amount(session, court):
    booking = await create_single_booking(
        session, booking_data(court.id, payment_status=PaymentStatus.paid), created_by=1
    )
    await session.commit()
    payment = await _payment(session, booking.id)

    assert payment.status == PaymentStatus.paid.value
    assert payment.advance_paid == Decimal("400")
    assert payment.balance_amount == Decimal("0")


async def test_advance_above_final_amount_is_rejected(session, court):
    with pytest.raises(AdvanceExceedsTotalError):
        await create_single_booking(
            session, booking_data(court.id, advance_paid=Decimal("500")), created_by=1
        )


async def test_inactive_court_is_rejected(session_factory, session):
    court = await create_court(session_factory, status=CourtStatus.inactive)
    with pytest.raises(CourtInactiveError):
        await create_single_booking(session, booking_data(court.id), created_by=1)


async def test_unknown_court_is_rejected(session):
    with pytest.raises(NotFoundError):
        await create_single_booking(session, booking_data(999), created_by=1)


async def test_recurring_source_requires_rule(session, court):
    with pytest.raises(ValueError):
        await create_single_booking(
            session, booking_data(court.id), created_by=1, source=BookingSource.recurring
        )


async def test_insert_race_is_reported_as_conflict(session, court):
    """Уникальный индекс ловит двойную бронь даже без предварительной проверки"""
    await create_single_booking(session, booking_data(court.id), created_by=1)
    await session.commit()

    with pytest.raises(SlotConflictError) as exc_info:
        await create_single_booking(
            session, booking_data(court.id), created_by=1, skip_availability_check=True
        )
    assert exc_info.value.race is True
    assert exc_info.value.conflicts == ["06:00", "06:15", "06:30", "06:45"]

    # внешняя транзакция пригодна к работе после отката savepoint
    await create_single_booking(
        session, booking_data(court.id, start_time="08:00", end_time="09:00"), created_by=1
    )
    await session.commit()


def test_percent_discount_over_hundred_is_invalid():
    with pytest.raises(ValidationError):
        booking_data(1, discount_type=DiscountType.percent, discount_value=Decimal("150"))
