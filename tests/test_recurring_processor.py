from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.future import select

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.turf.crud.recurring import (
    create_recurring_rule,
    delete_recurring_rule,
    set_recurring_status,
    update_recurring_rule,
)
from app.turf.models.bookings import Booking, BookingSource
from app.turf.models.payments import Payment
from app.turf.models.recurring_bookings import RecurringBooking, RecurringStatus
from app.turf.schemas.recurring import RecurringRuleCreate, RecurringRuleUpdate
from app.turf.services.booking_core import create_single_booking
from app.turf.services.recurring_generator import (
    GENERATED_PAYMENT_NOTE,
    process_recurring_booking,
)

from tests.conftest import booking_data


def rule_data(court_id: int, **overrides) -> dict:
    values = {
        "customer_name": "Thursday League",
        "customer_phone": "9876543210",
        "court_id": court_id,
        "recurrence_type": "WEEKLY",
        "days_of_week": ["MON"],
        "start_time": "18:00",
        "end_time": "19:00",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 31),
    }
    values.update(overrides)
    return values


def next_monday(after: date) -> date:
    return after + timedelta(days=7 - after.weekday())


async def _rule_bookings(session, rule_id):
    result = await session.execute(
        select(Booking)
        .where(Booking.recurring_id == rule_id)
        .order_by(Booking.booking_date)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def test_rule_generates_bookings_and_reports_conflicts(session, court):
    """Пять понедельников, два уже заняты: три брони создаются, две попадают в отчёт"""
    for taken in (date(2024, 1, 8), date(2024, 1, 22)):
        await create_single_booking(
            session,
            booking_data(court.id, booking_date=taken, start_time="18:30", end_time="19:30"),
            created_by=1,
        )
    await session.commit()

    rule, report = await create_recurring_rule(
        session, RecurringRuleCreate(**rule_data(court.id)), created_by=3
    )

    assert report["success"] == 3
    assert report["failed"] == 2
    assert [c["date"] for c in report["conflicts"]] == ["2024-01-08", "2024-01-22"]
    assert all("already booked" in c["reason"] for c in report["conflicts"])

    bookings = await _rule_bookings(session, rule.id)
    assert [b.booking_date for b in bookings] == [
        date(2024, 1, 1),
        date(2024, 1, 15),
        date(2024, 1, 29),
    ]
    assert all(b.source == BookingSource.recurring.value for b in bookings)
    assert all(b.created_by == 3 for b in bookings)

    payment = (
        await session.execute(select(Payment).where(Payment.booking_id == bookings[0].id))
    ).scalar_one()
    assert payment.payment_notes == GENERATED_PAYMENT_NOTE


async def test_rule_terms_apply_to_each_booking(session, court):
    rule, report = await create_recurring_rule(
        session,
        RecurringRuleCreate(
            **rule_data(
                court.id,
                discount_type="FLAT",
                discount_value=Decimal("100"),
                advance_paid=Decimal("50"),
            )
        ),
        created_by=1,
    )
    assert report["success"] == 5

    bookings = await _rule_bookings(session, rule.id)
    assert {b.final_amount for b in bookings} == {300}


async def test_fully_booked_rule_is_rejected(session, court):
    for monday in (1, 8, 15, 22, 29):
        await create_single_booking(
            session,
            booking_data(
                court.id,
                booking_date=date(2024, 1, monday),
                start_time="18:00",
                end_time="19:00",
            ),
            created_by=1,
        )
    await session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await create_recurring_rule(session, RecurringRuleCreate(**rule_data(court.id)), created_by=1)
    assert "Double Booking" in exc_info.value.message

    rules = (await session.execute(select(RecurringBooking))).scalars().all()
    assert rules == []


async def test_rule_without_dates_is_rejected(session, court):
    data = rule_data(
        court.id,
        recurrence_type="MONTHLY",
        days_of_week=[],
        fixed_date=31,
        start_date=date(2024, 4, 1),
        end_date=date(2024, 4, 30),
    )
    with pytest.raises(ValidationError):
        await create_recurring_rule(session, RecurringRuleCreate(**data), created_by=1)


async def test_processor_runs_in_its_own_transaction(session_factory, court):
    async with session_factory() as session:
        rule = RecurringBooking(
            customer_name="Morning Club",
            customer_phone="9876543210",
            court_id=court.id,
            recurrence_type="MONTHLY",
            days_of_week=[],
            fixed_date=10,
            start_time="07:00",
            end_time="08:00",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 31),
            created_by=5,
        )
        session.add(rule)
        await session.commit()

    report = await process_recurring_booking(rule.id, session_factory=session_factory)
    assert report == {"success": 3, "failed": 0, "conflicts": []}

    async with session_factory() as session:
        bookings = await _rule_bookings(session, rule.id)
    assert [b.booking_date for b in bookings] == [
        date(2024, 1, 10),
        date(2024, 2, 10),
        date(2024, 3, 10),
    ]


async def test_paused_rule_is_not_processed(session, court):
    rule, _ = await create_recurring_rule(
        session, RecurringRuleCreate(**rule_data(court.id)), created_by=1
    )
    await set_recurring_status(session, rule.id, RecurringStatus.paused)

    with pytest.raises(NotFoundError):
        await process_recurring_booking(rule.id, session=session)


async def test_update_rebuilds_future_bookings(session, court):
    start = next_monday(date.today()) + timedelta(days=7)
    data = rule_data(court.id, start_date=start, end_date=start + timedelta(days=27))

    rule, report = await create_recurring_rule(session, RecurringRuleCreate(**data), created_by=1)
    assert report["success"] == 4

    data["days_of_week"] = ["TUE"]
    rule, report = await update_recurring_rule(session, rule.id, RecurringRuleUpdate(**data))

    assert report["success"] == 4
    bookings = await _rule_bookings(session, rule.id)
    assert len(bookings) == 4
    assert all(b.booking_date.weekday() == 1 for b in bookings)


async def test_delete_rule_removes_its_bookings(session, court):
    rule, report = await create_recurring_rule(
        session, RecurringRuleCreate(**rule_data(court.id)), created_by=1
    )

    removed = await delete_recurring_rule(session, rule.id)

    assert removed == report["success"] == 5
    assert await _rule_bookings(session, rule.id) == []
    assert (await session.execute(select(Payment))).scalars().all() == []
