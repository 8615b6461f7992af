"""Recurring Booking Model - Template that expands into concrete bookings"""
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    ForeignKey,
    JSON,
    CheckConstraint,
)
from sqlalchemy.sql import func
from app.core.database import Base


class RecurrenceType(str, Enum):
    weekly = "WEEKLY"
    monthly = "MONTHLY"


class RecurringStatus(str, Enum):
    active = "ACTIVE"
    paused = "PAUSED"


class Weekday(str, Enum):
    # Order matches date.weekday(): Monday is 0
    mon = "MON"
    tue = "TUE"
    wed = "WED"
    thu = "THU"
    fri = "FRI"
    sat = "SAT"
    sun = "SUN"


WEEKDAY_CODES = [day.value for day in Weekday]


class RecurringBooking(Base):
    __tablename__ = "recurring_bookings"

    id = Column(Integer, primary_key=True, index=True)

    customer_name = Column(String(120), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    sport_type = Column(String(20), nullable=True)

    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False, index=True)

    recurrence_type = Column(String(10), nullable=False)
    days_of_week = Column(JSON, nullable=False, default=list)  # ["MON", "WED"]
    fixed_date = Column(Integer, nullable=True)  # 1..31 for MONTHLY

    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    # Monetary terms applied to every generated booking
    monthly_amount = Column(Numeric(10, 2), default=0, nullable=False)
    advance_paid = Column(Numeric(10, 2), default=0, nullable=False)
    discount_type = Column(String(10), default="NONE", nullable=False)
    discount_value = Column(Numeric(10, 2), default=0, nullable=False)

    status = Column(String(10), default=RecurringStatus.active.value, nullable=False)

    created_by = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "fixed_date IS NULL OR (fixed_date >= 1 AND fixed_date <= 31)",
            name="ck_recurring_fixed_date_range",
        ),
    )

    __mapper_args__ = {"eager_defaults": True}

    @property
    def is_active(self) -> bool:
        return self.status == RecurringStatus.active.value

    def __repr__(self):
        return f"<RecurringBooking(id={self.id}, court_id={self.court_id}, type={self.recurrence_type}, status={self.status})>"
