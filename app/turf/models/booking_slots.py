"""Booking Slot Model - One row per 15-minute unit held by a booking"""
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.sql import func
from app.core.database import Base


class SlotStatus(str, Enum):
    booked = "BOOKED"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


BOOKED_SLOT_INDEX = "uq_booking_slots_booked"


class BookingSlot(Base):
    __tablename__ = "booking_slots"

    id = Column(Integer, primary_key=True)

    booking_id = Column(
        Integer,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    slot_time = Column(String(5), nullable=False)  # "06:15"

    status = Column(String(20), default=SlotStatus.booked.value, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        # At most one BOOKED row per court/day/slot. Cancelled and completed
        # history rows are outside the predicate and may repeat.
        Index(
            BOOKED_SLOT_INDEX,
            "court_id",
            "booking_date",
            "slot_time",
            unique=True,
            postgresql_where=text("status = 'BOOKED'"),
            sqlite_where=text("status = 'BOOKED'"),
        ),
        Index("ix_booking_slots_lookup", "court_id", "booking_date", "status"),
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return f"<BookingSlot(court_id={self.court_id}, date={self.booking_date}, slot={self.slot_time}, status={self.status})>"
