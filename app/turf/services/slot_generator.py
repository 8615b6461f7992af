from typing import List

from app.core.config import SLOT_DURATION_MINUTES
from app.core.exceptions import InvalidTimeRangeError
from app.core.validations import time_to_minutes


def minutes_to_label(minutes: int) -> str:
    """405 -> '06:45'"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slots(start_time: str, end_time: str) -> List[str]:
    """
    Разбивает диапазон на 15-минутные слоты.

    ("06:00", "07:00") -> ["06:00", "06:15", "06:30", "06:45"]
    Начало входит, конец нет. Часы работы здесь не проверяются.
    Обе границы должны лежать на сетке слотов (:00, :15, :30, :45).
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)

    if end <= start:
        raise InvalidTimeRangeError(start_time, end_time)
    if start % SLOT_DURATION_MINUTES or end % SLOT_DURATION_MINUTES:
        raise InvalidTimeRangeError(
            start_time,
            end_time,
            f"Start and end time must be multiples of {SLOT_DURATION_MINUTES} minutes",
        )

    return [
        minutes_to_label(minute)
        for minute in range(start, end, SLOT_DURATION_MINUTES)
    ]
