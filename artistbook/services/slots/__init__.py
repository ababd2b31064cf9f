# artistbook/services/slots/__init__.py
"""
Slots calculation module.

Engine: pure day slot generation (no storage, injected clock)
Cache: full day grid in Redis Sorted Sets, advance notice applied on read
Availability: storage glue (settings, bookings, horizon) for the API
"""

from .config import (
    DaySchedule,
    ProviderSettings,
    DEFAULT_PROVIDER_SETTINGS,
    parse_working_hours,
)
from .engine import (
    AvailableSlot,
    BookingStatus,
    DayAvailability,
    ExistingBooking,
    compute_day_availability,
    generate_slots,
    ranges_overlap,
)
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_artist_cache
from .availability import calculate_artist_availability

__all__ = [
    "DaySchedule",
    "ProviderSettings",
    "DEFAULT_PROVIDER_SETTINGS",
    "parse_working_hours",
    "AvailableSlot",
    "BookingStatus",
    "DayAvailability",
    "ExistingBooking",
    "compute_day_availability",
    "generate_slots",
    "ranges_overlap",
    "SlotsRedisStore",
    "invalidate_artist_cache",
    "calculate_artist_availability",
]
