# artistbook/schemas/bookings.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


BookingStatusLiteral = Literal["PENDING", "CONFIRMED", "COMPLETED", "CANCELLED"]


class BookingCreate(BaseModel):
    artist_id: str
    service_id: Optional[int] = None
    client_name: str = "Guest"

    start_time: datetime
    # Used when no service is given; otherwise the service duration wins
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=480)

    status: Literal["PENDING", "CONFIRMED"] = "PENDING"
    deposit_paid: bool = False

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingRead(BaseModel):
    id: int

    artist_id: str
    service_id: Optional[int] = None
    client_name: str

    start_time: datetime
    end_time: datetime

    status: BookingStatusLiteral
    deposit_paid: bool

    price_snapshot: Optional[float] = None
    duration_snapshot: Optional[int] = None
    service_name_snapshot: Optional[str] = None
    cancel_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
