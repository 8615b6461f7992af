from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from app.core.exceptions import ValidationError
from app.core.validations import clean_phone_number, validate_time_string
from app.turf.models.bookings import BookingStatus, DiscountType
from app.turf.models.payments import PaymentMode, PaymentStatus


def _check_discount(discount_type: DiscountType, discount_value: Decimal):
    if discount_type == DiscountType.percent and discount_value > 100:
        raise ValidationError(
            "Percent discount cannot exceed 100", {"discount_value": str(discount_value)}
        )


class BookingCreate(BaseModel):
    """Input of a single booking, manual or generated from a recurring rule"""
    customer_name: str = Field(..., min_length=1, max_length=120)
    customer_phone: str
    sport_type: Optional[str] = Field(None, description="Defaults to the court's sport")
    court_id: int
    booking_date: date
    start_time: str = Field(..., examples=["06:00"])
    end_time: str = Field(..., examples=["07:00"])

    discount_type: DiscountType = DiscountType.none
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)

    advance_paid: Decimal = Field(default=Decimal("0"), ge=0)
    payment_mode: PaymentMode = PaymentMode.cash
    payment_notes: Optional[str] = Field(None, max_length=500)
    payment_status: Optional[PaymentStatus] = Field(
        None, description="PAID marks the booking fully paid regardless of advance"
    )

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValidationError("Customer name cannot be empty")
        return v.strip()

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)

    @model_validator(mode="after")
    def validate_discount(self):
        _check_discount(self.discount_type, self.discount_value)
        return self


class AvailabilityRequest(BaseModel):
    court_id: int
    booking_date: date
    start_time: str
    end_time: str
    exclude_booking_id: Optional[int] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)


class AvailabilityResponse(BaseModel):
    available: bool
    conflicts: List[str] = Field(default_factory=list)


class BookingCreateResponse(BaseModel):
    success: bool = True
    message: str
    booking_id: int


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingUpdate(BaseModel):
    """Полное редактирование брони; пропущенные поля остаются прежними"""
    customer_name: Optional[str] = Field(None, min_length=1, max_length=120)
    customer_phone: Optional[str] = None
    court_id: Optional[int] = None
    booking_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: Optional[BookingStatus] = None

    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)

    advance_paid: Optional[Decimal] = Field(None, ge=0)
    payment_mode: Optional[PaymentMode] = None
    payment_status: Optional[PaymentStatus] = None
    payment_notes: Optional[str] = Field(None, max_length=500)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v):
        if v is not None:
            return clean_phone_number(v)
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if v is not None:
            return validate_time_string(v)
        return v


class PaymentSummary(BaseModel):
    id: int
    total_amount: int
    advance_paid: Decimal
    balance_amount: Decimal
    payment_mode: str
    status: str
    payment_notes: Optional[str] = None
    payment_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingRead(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    sport_type: str
    court_id: int
    booking_date: date
    start_time: str
    end_time: str
    total_slots: int
    base_amount: Decimal
    discount_type: str
    discount_value: Decimal
    final_amount: int
    status: str
    source: str
    recurring_id: Optional[int] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingListItem(BookingRead):
    court_name: Optional[str] = None
    display_status: str
    payment: Optional[PaymentSummary] = None


class BookingListResponse(BaseModel):
    bookings: List[BookingListItem]
    total: int


class BookingDetail(BookingListItem):
    pass
