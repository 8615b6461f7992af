"""Turf Routers Package"""
from .courts import router as courts_router
from .bookings import router as bookings_router
from .payments import router as payments_router
from .recurring import router as recurring_router
from .settings import router as settings_router
from .calendar import router as calendar_router

__all__ = [
    "courts_router",
    "bookings_router",
    "payments_router",
    "recurring_router",
    "settings_router",
    "calendar_router",
]
