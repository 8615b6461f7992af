from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from app.turf.models.payments import PaymentMode


def booking_reference(booking_id: int) -> str:
    """Human-facing booking number, e.g. BK-0042"""
    return f"BK-{booking_id:04d}"


class PaymentRead(BaseModel):
    id: int
    booking_id: int
    booking_reference: str
    total_amount: int
    advance_paid: Decimal
    balance_amount: Decimal
    payment_mode: str
    payment_notes: Optional[str] = None
    status: str
    payment_date: Optional[datetime] = None

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    court_id: Optional[int] = None
    court_name: Optional[str] = None
    booking_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    booking_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
    payments: List[PaymentRead]
    total: int


class MarkPaidRequest(BaseModel):
    payment_mode: Optional[PaymentMode] = None
    payment_notes: Optional[str] = Field(None, max_length=500)


class PaymentModeUpdate(BaseModel):
    payment_mode: PaymentMode
