"""Booking Model - One reservation of a court for a contiguous time range on one day"""
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class BookingStatus(str, Enum):
    booked = "BOOKED"
    cancelled = "CANCELLED"
    completed = "COMPLETED"


class BookingSource(str, Enum):
    manual = "MANUAL"
    recurring = "RECURRING"


class DiscountType(str, Enum):
    none = "NONE"
    percent = "PERCENT"
    flat = "FLAT"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    customer_name = Column(String(120), nullable=False)
    customer_phone = Column(String(20), nullable=False, index=True)
    sport_type = Column(String(20), nullable=False)

    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False)

    # Date only; all slot bookkeeping happens per calendar day
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:mm"
    end_time = Column(String(5), nullable=False)  # "HH:mm", exclusive

    total_slots = Column(Integer, nullable=False)
    base_amount = Column(Numeric(10, 2), nullable=False)
    discount_type = Column(String(10), default=DiscountType.none.value, nullable=False)
    discount_value = Column(Numeric(10, 2), default=0, nullable=False)
    final_amount = Column(Integer, nullable=False)

    status = Column(String(20), default=BookingStatus.booked.value, nullable=False)
    source = Column(String(20), default=BookingSource.manual.value, nullable=False)
    recurring_id = Column(
        Integer,
        ForeignKey("recurring_bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_by = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    court = relationship("Court", lazy="raise")
    payment = relationship(
        "Payment", uselist=False, back_populates="booking", lazy="raise"
    )

    __table_args__ = (
        Index("ix_bookings_court_date", "court_id", "booking_date"),
        Index("ix_bookings_status_date", "status", "booking_date"),
        CheckConstraint("final_amount >= 0", name="ck_bookings_final_amount_positive"),
        # Generated bookings always point back at their rule
        CheckConstraint(
            "source <> 'RECURRING' OR recurring_id IS NOT NULL",
            name="ck_bookings_recurring_reference",
        ),
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, court_id={self.court_id}, date={self.booking_date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
