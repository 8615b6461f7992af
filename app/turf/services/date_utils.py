import calendar
from datetime import date, datetime
from typing import Optional, Union

from app.core.exceptions import ValidationError

DateLike = Union[date, datetime, str]


def normalize_to_midnight(value: Optional[DateLike]) -> Optional[date]:
    """
    Приводит дату к началу дня: время отбрасывается, остаётся только дата.
    Принимает date, datetime или ISO-строку ('2024-01-01' или '2024-01-01T10:30:00').
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD", {"value": value})

    raise ValidationError("Invalid date value", {"value": str(value)})


def add_months(value: date, months: int) -> date:
    """Сдвиг на N месяцев; день обрезается до последнего дня целевого месяца (31 янв + 1 = 29 фев)"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))
