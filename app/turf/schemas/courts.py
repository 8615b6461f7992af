from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from app.core.exceptions import ValidationError
from app.turf.models.courts import SportType, CourtStatus


class CourtBase(BaseModel):
    """Base court schema"""
    name: str = Field(..., min_length=1, max_length=100)
    sport_type: SportType
    weekday_price: Decimal = Field(..., ge=0, description="Hourly rate Mon-Fri")
    weekend_price: Decimal = Field(..., ge=0, description="Hourly rate on weekend days")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValidationError("Court name cannot be empty")
        return v.strip()


class CourtCreate(CourtBase):
    status: CourtStatus = CourtStatus.active


class CourtUpdate(BaseModel):
    """Sport type is fixed once the court exists"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    weekday_price: Optional[Decimal] = Field(None, ge=0)
    weekend_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[CourtStatus] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            if not v.strip():
                raise ValidationError("Court name cannot be empty")
            return v.strip()
        return v


class CourtStatusUpdate(BaseModel):
    status: CourtStatus


class CourtRead(BaseModel):
    id: int
    name: str
    sport_type: str
    weekday_price: Decimal
    weekend_price: Decimal
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CourtListResponse(BaseModel):
    courts: List[CourtRead]
    total: int
