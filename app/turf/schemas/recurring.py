from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from app.core.exceptions import ValidationError
from app.core.validations import clean_phone_number, validate_time_string
from app.turf.models.bookings import DiscountType
from app.turf.models.recurring_bookings import RecurrenceType, RecurringStatus, Weekday


class RecurringRuleBase(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=120)
    customer_phone: str
    sport_type: Optional[str] = None
    court_id: int

    recurrence_type: RecurrenceType
    days_of_week: List[Weekday] = Field(default_factory=list)
    fixed_date: Optional[int] = Field(None, ge=1, le=31)

    start_time: str
    end_time: str
    start_date: date
    end_date: Optional[date] = None

    monthly_amount: Decimal = Field(default=Decimal("0"), ge=0)
    advance_paid: Decimal = Field(default=Decimal("0"), ge=0, description="Advance applied to each generated booking")
    discount_type: DiscountType = DiscountType.none
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)

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

    @field_validator("days_of_week")
    @classmethod
    def unique_days(cls, v):
        # сохраняем порядок, убираем повторы
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_rule(self):
        if self.recurrence_type == RecurrenceType.weekly and not self.days_of_week:
            raise ValidationError("Weekly recurrence requires at least one day of week")
        if self.recurrence_type == RecurrenceType.monthly and self.fixed_date is None:
            raise ValidationError("Monthly recurrence requires fixed_date (1-31)")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValidationError(
                "End date cannot be before start date",
                {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()},
            )
        if self.discount_type == DiscountType.percent and self.discount_value > 100:
            raise ValidationError("Percent discount cannot exceed 100")
        return self


class RecurringRuleCreate(RecurringRuleBase):
    pass


class RecurringRuleUpdate(RecurringRuleBase):
    """Rules are replaced as a whole; generated bookings are rebuilt afterwards"""
    pass


class RecurringStatusUpdate(BaseModel):
    status: RecurringStatus


class RecurringRuleRead(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    sport_type: Optional[str] = None
    court_id: int
    recurrence_type: str
    days_of_week: List[str] = Field(default_factory=list)
    fixed_date: Optional[int] = None
    start_time: str
    end_time: str
    start_date: date
    end_date: Optional[date] = None
    monthly_amount: Decimal
    advance_paid: Decimal
    discount_type: str
    discount_value: Decimal
    status: str
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DateConflict(BaseModel):
    date: str
    reason: str


class GenerationReport(BaseModel):
    success: int = 0
    failed: int = 0
    conflicts: List[DateConflict] = Field(default_factory=list)


class RecurringRuleResponse(BaseModel):
    rule: RecurringRuleRead
    report: GenerationReport
    message: str


class RecurringRuleListResponse(BaseModel):
    rules: List[RecurringRuleRead]
    total: int
