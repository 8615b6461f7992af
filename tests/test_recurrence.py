from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.turf.models.recurring_bookings import RecurrenceType
from app.turf.schemas.recurring import RecurringRuleCreate
from app.turf.services.date_utils import add_months, normalize_to_midnight
from app.turf.services.recurring_generator import generate_dates


def weekly(days, start, end=None):
    return {
        "recurrence_type": RecurrenceType.weekly.value,
        "days_of_week": days,
        "start_date": start,
        "end_date": end,
    }


def monthly(day, start, end=None):
    return {
        "recurrence_type": RecurrenceType.monthly.value,
        "fixed_date": day,
        "start_date": start,
        "end_date": end,
    }


def test_weekly_default_window_is_three_months_inclusive():
    dates = generate_dates(weekly(["MON", "WED"], date(2024, 1, 1)))

    assert dates[0] == date(2024, 1, 1)
    assert dates[1] == date(2024, 1, 3)
    assert dates[-1] == date(2024, 4, 1)
    assert all(d.weekday() in (0, 2) for d in dates)
    assert dates == sorted(dates)
    assert len(dates) == 27


def test_weekly_with_explicit_end_date():
    dates = generate_dates(weekly(["FRI"], date(2024, 1, 1), date(2024, 1, 31)))
    assert dates == [date(2024, 1, 5), date(2024, 1, 12), date(2024, 1, 19), date(2024, 1, 26)]


def test_monthly_fixed_date():
    dates = generate_dates(monthly(15, date(2024, 1, 1), date(2024, 3, 31)))
    assert dates == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]


def test_monthly_31st_skips_short_months():
    dates = generate_dates(monthly(31, date(2024, 1, 1), date(2024, 4, 30)))
    assert dates == [date(2024, 1, 31), date(2024, 3, 31)]


def test_monthly_without_matching_day_is_empty():
    assert generate_dates(monthly(31, date(2024, 4, 1), date(2024, 4, 30))) == []


def test_from_date_moves_start_forward():
    dates = generate_dates(
        weekly(["MON"], date(2024, 1, 1), date(2024, 1, 31)), from_date=date(2024, 1, 10)
    )
    assert dates == [date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29)]


def test_schema_rule_is_accepted():
    rule = RecurringRuleCreate(
        customer_name="Team Falcons",
        customer_phone="9876543210",
        court_id=1,
        recurrence_type="WEEKLY",
        days_of_week=["TUE", "TUE"],
        start_time="18:00",
        end_time="19:00",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 14),
    )
    assert [d.value for d in rule.days_of_week] == ["TUE"]
    assert generate_dates(rule) == [date(2024, 1, 2), date(2024, 1, 9)]


def test_weekly_rule_requires_days():
    with pytest.raises(ValidationError):
        RecurringRuleCreate(
            customer_name="Team Falcons",
            customer_phone="9876543210",
            court_id=1,
            recurrence_type="WEEKLY",
            start_time="18:00",
            end_time="19:00",
            start_date=date(2024, 1, 1),
        )


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_normalize_to_midnight_accepts_strings_and_datetimes():
    assert normalize_to_midnight("2024-01-01") == date(2024, 1, 1)
    assert normalize_to_midnight("2024-01-01T18:30:00Z") == date(2024, 1, 1)
    assert normalize_to_midnight(None) is None


def test_normalize_to_midnight_rejects_garbage():
    with pytest.raises(ValidationError):
        normalize_to_midnight("01/01/2024")
