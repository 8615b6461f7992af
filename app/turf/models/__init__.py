from .courts import Court, SportType, CourtStatus
from .bookings import Booking, BookingStatus, BookingSource, DiscountType
from .booking_slots import BookingSlot, SlotStatus, BOOKED_SLOT_INDEX
from .payments import Payment, PaymentStatus, PaymentMode
from .recurring_bookings import (
    RecurringBooking,
    RecurrenceType,
    RecurringStatus,
    Weekday,
    WEEKDAY_CODES,
)
from .settings import Settings

__all__ = [
    "Court",
    "SportType",
    "CourtStatus",
    "Booking",
    "BookingStatus",
    "BookingSource",
    "DiscountType",
    "BookingSlot",
    "SlotStatus",
    "BOOKED_SLOT_INDEX",
    "Payment",
    "PaymentStatus",
    "PaymentMode",
    "RecurringBooking",
    "RecurrenceType",
    "RecurringStatus",
    "Weekday",
    "WEEKDAY_CODES",
    "Settings",
]
