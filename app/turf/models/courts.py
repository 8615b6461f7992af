from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from app.core.database import Base


class SportType(str, Enum):
    football = "Football"
    cricket = "Cricket"
    badminton = "Badminton"
    pickleball = "Pickleball"


class CourtStatus(str, Enum):
    active = "ACTIVE"
    inactive = "INACTIVE"


class Court(Base):
    __tablename__ = "courts"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    sport_type = Column(String(20), nullable=False, index=True)

    # Hourly rates; one slot costs a quarter of the rate
    weekday_price = Column(Numeric(10, 2), nullable=False)
    weekend_price = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), default=CourtStatus.active.value, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("name", "sport_type", name="uq_courts_name_sport_type"),
    )

    __mapper_args__ = {"eager_defaults": True}

    @property
    def is_active(self) -> bool:
        return self.status == CourtStatus.active.value

    def __repr__(self):
        return f"<Court(id={self.id}, name={self.name}, sport_type={self.sport_type}, status={self.status})>"
