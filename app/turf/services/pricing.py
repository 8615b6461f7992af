import math
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from app.core.config import DEFAULT_WEEKEND_DAYS, SLOT_DURATION_MINUTES
from app.turf.models.bookings import DiscountType
from app.turf.models.recurring_bookings import WEEKDAY_CODES

SLOTS_PER_HOUR = 60 // SLOT_DURATION_MINUTES


def is_weekend(booking_date: date, weekend_days: Optional[Iterable[str]] = None) -> bool:
    days = weekend_days if weekend_days is not None else DEFAULT_WEEKEND_DAYS
    return WEEKDAY_CODES[booking_date.weekday()] in {d.upper() for d in days}


def calculate_price(
    court,
    slot_count: int,
    booking_date: date,
    weekend_days: Optional[Iterable[str]] = None,
) -> Decimal:
    """
    Базовая стоимость: (часовая ставка / 4) * количество слотов.
    Ставка выходного дня берётся, если день недели входит в weekend_days из Settings.
    """
    if is_weekend(booking_date, weekend_days):
        hourly_rate = court.weekend_price
    else:
        hourly_rate = court.weekday_price

    slot_price = Decimal(str(hourly_rate)) / SLOTS_PER_HOUR
    return slot_price * slot_count


def apply_discount(base_amount, discount_type: str, discount_value) -> int:
    """Итоговая сумма после скидки: округление вверх до целого, не меньше 0"""
    base = Decimal(str(base_amount))
    value = Decimal(str(discount_value or 0))

    if discount_type == DiscountType.percent.value:
        amount = base - (base * value) / 100
    elif discount_type == DiscountType.flat.value:
        amount = base - value
    else:
        amount = base

    return max(0, math.ceil(amount))
