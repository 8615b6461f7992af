"""Turf Schemas Package"""
from .courts import (
    CourtCreate,
    CourtUpdate,
    CourtStatusUpdate,
    CourtRead,
    CourtListResponse,
)

from .bookings import (
    BookingCreate,
    BookingUpdate,
    BookingStatusUpdate,
    BookingRead,
    BookingListItem,
    BookingListResponse,
    BookingDetail,
    BookingCreateResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    PaymentSummary,
)

from .payments import (
    PaymentRead,
    PaymentListResponse,
    MarkPaidRequest,
    PaymentModeUpdate,
    booking_reference,
)

from .recurring import (
    RecurringRuleCreate,
    RecurringRuleUpdate,
    RecurringStatusUpdate,
    RecurringRuleRead,
    RecurringRuleResponse,
    RecurringRuleListResponse,
    GenerationReport,
    DateConflict,
)

from .settings import SettingsRead, SettingsUpdate

from .calendar import CalendarBooking, CalendarCourt, CalendarDayResponse
