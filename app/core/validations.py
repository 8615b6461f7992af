import re
from app.core.exceptions import ValidationError

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"
_TIME_RE = re.compile(TIME_PATTERN)


def clean_phone_number(phone: str) -> str:
    """
    Очищает и валидирует номер телефона клиента.
    Пробелы, скобки и дефисы убираются, ведущий '+' сохраняется.
    """
    if not phone or not phone.strip():
        raise ValidationError("Phone number cannot be empty")

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if len(digits) < 7 or len(digits) > 15:
        raise ValidationError("Phone number must be between 7 and 15 digits")

    return prefix + digits


def validate_time_string(value: str) -> str:
    """Проверяет формат HH:mm (24 часа)"""
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ValidationError(
            "Invalid time format. Use HH:mm", {"value": str(value)}
        )
    return value


def time_to_minutes(value: str) -> int:
    """'06:45' -> 405"""
    validate_time_string(value)
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)
