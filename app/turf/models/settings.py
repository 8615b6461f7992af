from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.config import (
    DEFAULT_TURF_NAME,
    DEFAULT_OPENING_TIME,
    DEFAULT_CLOSING_TIME,
    DEFAULT_WEEKEND_DAYS,
    DEFAULT_CURRENCY,
    SLOT_DURATION_MINUTES,
)


class Settings(Base):
    """Singleton row with turf-wide operating rules"""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    turf_name = Column(String(120), nullable=False, default=DEFAULT_TURF_NAME)
    opening_time = Column(String(5), nullable=False, default=DEFAULT_OPENING_TIME)
    closing_time = Column(String(5), nullable=False, default=DEFAULT_CLOSING_TIME)
    # Fixed; not writable through the API
    slot_duration = Column(Integer, nullable=False, default=SLOT_DURATION_MINUTES)
    weekend_days = Column(JSON, nullable=False, default=lambda: list(DEFAULT_WEEKEND_DAYS))
    currency = Column(String(10), nullable=False, default=DEFAULT_CURRENCY)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return f"<Settings(turf_name={self.turf_name}, {self.opening_time}-{self.closing_time})>"
