"""Payment Model - Money side of a booking, one row per booking"""
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Text,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class PaymentStatus(str, Enum):
    pending = "PENDING"
    partial = "PARTIAL"
    paid = "PAID"


class PaymentMode(str, Enum):
    cash = "CASH"
    upi = "UPI"
    card = "CARD"
    online = "ONLINE"


def derive_payment_status(advance_paid, total_amount) -> PaymentStatus:
    """PENDING with nothing paid, PAID once the advance covers the total, PARTIAL between"""
    advance = Decimal(str(advance_paid or 0))
    if advance <= 0:
        return PaymentStatus.pending
    if advance >= Decimal(str(total_amount)):
        return PaymentStatus.paid
    return PaymentStatus.partial


def balance_for(advance_paid, total_amount) -> Decimal:
    balance = Decimal(str(total_amount)) - Decimal(str(advance_paid or 0))
    return max(Decimal("0"), balance)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    booking_id = Column(
        Integer,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    total_amount = Column(Integer, nullable=False)
    advance_paid = Column(Numeric(10, 2), default=0, nullable=False)
    balance_amount = Column(Numeric(10, 2), default=0, nullable=False)

    payment_mode = Column(String(10), default=PaymentMode.cash.value, nullable=False)
    payment_notes = Column(Text, nullable=True)
    status = Column(String(10), default=PaymentStatus.pending.value, nullable=False, index=True)

    payment_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    booking = relationship("Booking", back_populates="payment", lazy="raise")

    __mapper_args__ = {"eager_defaults": True}

    def apply_advance(self, advance_paid, status: PaymentStatus = None):
        """Set advance, balance and status together so they never drift apart"""
        self.advance_paid = Decimal(str(advance_paid or 0))
        self.balance_amount = balance_for(self.advance_paid, self.total_amount)
        self.status = (status or derive_payment_status(self.advance_paid, self.total_amount)).value

    def __repr__(self):
        return f"<Payment(id={self.id}, booking_id={self.booking_id}, total={self.total_amount}, status={self.status})>"
