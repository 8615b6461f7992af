from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel


class CalendarBooking(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    start_time: str
    end_time: str
    total_slots: int
    final_amount: int
    status: str
    display_status: str
    source: str
    recurring_id: Optional[int] = None
    # Generated bookings are edited through their recurring rule
    read_only: bool = False
    payment_status: Optional[str] = None
    advance_paid: Optional[Decimal] = None
    balance_amount: Optional[Decimal] = None


class CalendarCourt(BaseModel):
    court_id: int
    court_name: str
    sport_type: str
    bookings: List[CalendarBooking]


class CalendarDayResponse(BaseModel):
    date: date
    opening_time: str
    closing_time: str
    courts: List[CalendarCourt]
