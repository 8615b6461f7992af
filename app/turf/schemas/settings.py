from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from app.core.exceptions import ValidationError
from app.core.validations import validate_time_string, time_to_minutes
from app.turf.models.recurring_bookings import Weekday


class SettingsRead(BaseModel):
    turf_name: str
    opening_time: str
    closing_time: str
    slot_duration: int
    weekend_days: List[str]
    currency: str
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SettingsUpdate(BaseModel):
    """slot_duration is not accepted here"""
    turf_name: Optional[str] = Field(None, min_length=1, max_length=120)
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    weekend_days: Optional[List[Weekday]] = None
    currency: Optional[str] = Field(None, min_length=1, max_length=10)

    model_config = ConfigDict(extra="forbid")

    @field_validator("opening_time", "closing_time")
    @classmethod
    def validate_time(cls, v):
        if v is not None:
            return validate_time_string(v)
        return v

    @field_validator("weekend_days")
    @classmethod
    def validate_weekend_days(cls, v):
        if v is not None and len(v) == 0:
            raise ValidationError("At least one weekend day is required")
        return list(dict.fromkeys(v)) if v else v

    @model_validator(mode="after")
    def validate_hours(self):
        if self.opening_time and self.closing_time:
            if time_to_minutes(self.closing_time) <= time_to_minutes(self.opening_time):
                raise ValidationError("Closing time must be after opening time")
        return self
