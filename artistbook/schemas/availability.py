# artistbook/schemas/availability.py
"""
Pydantic schemas for availability API.

Wire format keeps the camelCase keys the booking widget consumes.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class AvailabilityRequest(BaseModel):
    """Legacy POST body."""
    artist_id: Optional[str] = Field(default=None, alias="artistId")
    date: Optional[str] = None
    duration: Optional[int] = None

    model_config = {"populate_by_name": True}


class AvailableSlotRead(BaseModel):
    start: datetime
    end: datetime
    local: str = Field(description='"HH:MM" in the provider\'s display frame')

    model_config = {"from_attributes": True}


class WorkingHoursWindow(BaseModel):
    start: str
    end: str


class AvailabilityResponse(BaseModel):
    """Slots for a day. working_hours is null when the provider is closed."""
    slots: list[AvailableSlotRead]
    working_hours: Optional[WorkingHoursWindow] = Field(default=None, alias="workingHours")
    timezone: str
    date: date
    message: Optional[str] = None

    model_config = {"from_attributes": True, "populate_by_name": True}
