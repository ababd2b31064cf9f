# artistbook/schemas/artist_settings.py

from typing import Literal
from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.slots.config import parse_time_of_day, time_str_to_minutes


class DayScheduleRead(BaseModel):
    start: str
    end: str
    enabled: bool


class DayScheduleUpdate(DayScheduleRead):
    """Validated on write: "HH:MM" times, start < end on enabled days."""

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v: str) -> str:
        if parse_time_of_day(v) is None:
            raise ValueError('time must be "HH:MM"')
        return v

    @model_validator(mode="after")
    def check_order(self):
        if self.enabled and time_str_to_minutes(self.start) >= time_str_to_minutes(self.end):
            raise ValueError("start must be before end on enabled days")
        return self


class ArtistSettingsUpdate(BaseModel):
    # Keys "0" (Sunday) .. "6" (Saturday)
    working_hours: dict[Literal["0", "1", "2", "3", "4", "5", "6"], DayScheduleUpdate]
    slot_interval: Literal[15, 30, 60] = 30
    buffer_minutes: int = Field(default=0, ge=0, le=240)
    timezone: str = "America/Santiago"
    min_advance_hours: float = Field(default=2, ge=0)
    max_advance_days: int = Field(default=60, ge=0, le=365)

    model_config = {"from_attributes": True}


class ArtistSettingsRead(BaseModel):
    artist_id: str
    working_hours: dict[str, DayScheduleRead]
    slot_interval: int
    buffer_minutes: int
    timezone: str
    min_advance_hours: float
    max_advance_days: int
    is_default: bool = False

    model_config = {"from_attributes": True}

