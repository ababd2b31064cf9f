# artistbook/services/slots/engine.py
"""
Availability engine: day-bound slot generation with conflict detection.

Pure functions, no storage and no clock reads. The caller passes `now`.

Time model (simplified, no IANA conversion):
  working hours "HH:MM" are placed on the target date as UTC instants,
  booking timestamps are normalized to UTC, `timezone` is a display label.

Slot grid is anchored to the working-day start:
  start = working_start + k * slot_interval

A candidate is emitted when its occupancy window
  [start, start + duration + buffer)
fits into working hours and does not intersect any active booking.
The visible slot end excludes the buffer.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Iterable

from .config import MINUTES_IN_DAY, ProviderSettings, minutes_to_time_str, parse_time_of_day

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class ExistingBooking:
    """Booking as consumed by the engine. Timestamps may be raw strings."""
    start_time: datetime | str | None
    end_time: datetime | str | None
    status: BookingStatus | str = BookingStatus.PENDING


@dataclass(frozen=True)
class BookedRange:
    """Validated, UTC-normalized occupied range [start, end)."""
    start: datetime
    end: datetime


@dataclass(frozen=True)
class AvailableSlot:
    start: datetime
    end: datetime
    local_label: str  # "HH:MM"


@dataclass(frozen=True)
class DayAvailability:
    """Slots for a day plus the nominal working-hours window (None = closed)."""
    date: date
    slots: list[AvailableSlot]
    working_hours: tuple[str, str] | None
    timezone: str


# ── Time helpers ─────────────────────────────────────────────────────────


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC, aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: Any) -> datetime | None:
    """Parse datetime or ISO-8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def day_start(target_date: date) -> datetime:
    """UTC midnight of target_date."""
    if isinstance(target_date, datetime):
        target_date = target_date.date()
    return datetime.combine(target_date, time.min, tzinfo=timezone.utc)


def weekday_index(target_date: date) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (target_date.weekday() + 1) % 7


def format_local_label(instant: datetime) -> str:
    """Render "HH:MM" in the provider's nominal frame (UTC, no conversion)."""
    instant = to_utc(instant)
    return minutes_to_time_str(instant.hour * 60 + instant.minute)


def ranges_overlap(
    start1: datetime,
    end1: datetime,
    start2: datetime,
    end2: datetime,
) -> bool:
    """Half-open interval intersection. Touching endpoints do not overlap."""
    return start1 < end2 and end1 > start2


# ── Validation ───────────────────────────────────────────────────────────


def _require_settings(settings: Any) -> None:
    if not isinstance(settings, ProviderSettings):
        raise TypeError(
            f"settings must be ProviderSettings, got {type(settings).__name__}"
        )


def _is_cancelled(status: Any) -> bool:
    if isinstance(status, BookingStatus):
        return status is BookingStatus.CANCELLED
    return isinstance(status, str) and status.strip().upper() == BookingStatus.CANCELLED.value


def clean_bookings(bookings: Iterable[ExistingBooking] | None) -> list[BookedRange]:
    """
    Drop cancelled and malformed bookings.

    Returns ranges sorted by start. Invalid rows are skipped, never fatal.
    """
    ranges: list[BookedRange] = []
    dropped = 0

    for booking in bookings or ():
        if _is_cancelled(booking.status):
            continue

        start = parse_instant(booking.start_time)
        end = parse_instant(booking.end_time)
        if start is None or end is None or start >= end:
            dropped += 1
            continue

        ranges.append(BookedRange(start=start, end=end))

    if dropped:
        logger.debug("Dropped %d malformed booking(s) from conflict check", dropped)

    ranges.sort(key=lambda r: r.start)
    return ranges


def working_window(
    target_date: date,
    settings: ProviderSettings,
) -> tuple[datetime, datetime] | None:
    """
    Working-hours window of target_date as UTC instants.

    None when the day is missing, disabled, unparseable or empty (start >= end).
    """
    _require_settings(settings)

    day = settings.day(weekday_index(target_date))
    if day is None or not day.enabled:
        return None

    start = parse_time_of_day(day.start)
    end = parse_time_of_day(day.end)
    if start is None or end is None:
        return None

    midnight = day_start(target_date)
    working_start = midnight + timedelta(hours=start[0], minutes=start[1])
    working_end = midnight + timedelta(hours=end[0], minutes=end[1])
    if working_start >= working_end:
        return None

    return working_start, working_end


def is_within_booking_horizon(
    target_date: date,
    settings: ProviderSettings,
    now: datetime,
) -> bool:
    """True if target_date (UTC midnight) is not past now + max_advance_days."""
    _require_settings(settings)
    horizon = to_utc(now) + timedelta(days=settings.max_advance_days)
    return day_start(target_date) <= horizon


# ── Generation ───────────────────────────────────────────────────────────


def generate_day_slots(
    target_date: date,
    service_duration_minutes: int,
    settings: ProviderSettings,
    existing_bookings: Iterable[ExistingBooking] | None,
    not_before: datetime | None = None,
) -> list[AvailableSlot]:
    """
    Generate slots for a day, optionally not starting before `not_before`.

    Without `not_before` the whole grid is returned (used by the slot cache).
    Clamping keeps the grid anchored to the working start, so the clamped
    result equals the full result filtered by start >= not_before.
    """
    _require_settings(settings)

    if service_duration_minutes <= 0 or service_duration_minutes > MINUTES_IN_DAY:
        return []

    window = working_window(target_date, settings)
    if window is None:
        return []
    working_start, working_end = window

    booked = clean_bookings(existing_bookings)

    candidate = working_start
    if not_before is not None:
        candidate = max(candidate, to_utc(not_before))

    interval = timedelta(minutes=settings.slot_interval)
    offset = candidate - working_start
    if offset % interval:
        steps = -(-offset // interval)  # ceil
        candidate = working_start + steps * interval

    duration = timedelta(minutes=service_duration_minutes)
    occupancy = duration + timedelta(minutes=settings.buffer_minutes)

    slots: list[AvailableSlot] = []
    while True:
        occupancy_end = candidate + occupancy
        if occupancy_end > working_end:
            break

        has_conflict = any(
            ranges_overlap(candidate, occupancy_end, r.start, r.end)
            for r in booked
        )
        if not has_conflict:
            slots.append(AvailableSlot(
                start=candidate,
                end=candidate + duration,
                local_label=format_local_label(candidate),
            ))

        candidate += interval

    return slots


def generate_slots(
    target_date: date,
    service_duration_minutes: int,
    settings: ProviderSettings,
    existing_bookings: Iterable[ExistingBooking] | None,
    now: datetime,
) -> list[AvailableSlot]:
    """
    Available slots for target_date.

    Empty list for closed days, bad hours, non-positive duration, dates past
    the booking horizon, or when nothing fits. Raises TypeError only for
    contract violations (missing settings or clock).
    """
    _require_settings(settings)
    if now is None:
        raise TypeError("now is required")

    now = to_utc(now)
    if not is_within_booking_horizon(target_date, settings, now):
        return []

    min_booking_instant = now + timedelta(hours=settings.min_advance_hours)
    return generate_day_slots(
        target_date,
        service_duration_minutes,
        settings,
        existing_bookings,
        not_before=min_booking_instant,
    )


def compute_day_availability(
    target_date: date,
    service_duration_minutes: int,
    settings: ProviderSettings,
    existing_bookings: Iterable[ExistingBooking] | None,
    now: datetime,
) -> DayAvailability:
    """Slots plus the nominal working hours, so "closed" differs from "fully booked"."""
    slots = generate_slots(
        target_date, service_duration_minutes, settings, existing_bookings, now
    )

    hours = None
    if working_window(target_date, settings) is not None:
        day = settings.day(weekday_index(target_date))
        hours = (day.start, day.end)

    return DayAvailability(
        date=target_date,
        slots=slots,
        working_hours=hours,
        timezone=settings.timezone,
    )
