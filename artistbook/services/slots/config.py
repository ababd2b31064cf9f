# artistbook/services/slots/config.py
"""
Provider configuration for slots calculation.

Stored format of working_hours (JSON, keys are weekdays, Sunday = "0"):
{
  "0": {"start": "00:00", "end": "00:00", "enabled": false},
  "1": {"start": "09:00", "end": "18:00", "enabled": true},
  ...
}

The engine works with a fixed 7-entry tuple indexed by weekday instead.
"""

import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Sequence

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
MINUTES_IN_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class DaySchedule:
    """Working hours of a single weekday ("HH:MM" strings)."""
    start: str
    end: str
    enabled: bool = True

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "enabled": self.enabled}


@dataclass(frozen=True)
class ProviderSettings:
    """
    Booking configuration of a single provider.

    Attributes:
        working_hours: 7 entries indexed by weekday (0 = Sunday, 6 = Saturday).
                       None means the day is not configured (closed).
        slot_interval: Grid step in minutes for candidate start times
        buffer_minutes: Turnover time appended after each booking
        timezone: Display label only, no conversion is applied
        min_advance_hours: Minimum hours between now and a slot start
        max_advance_days: How many days ahead bookings are accepted
    """
    working_hours: tuple[DaySchedule | None, ...]
    slot_interval: int = 30
    buffer_minutes: int = 0
    timezone: str = "UTC"
    min_advance_hours: float = 0
    max_advance_days: int = 60

    def __post_init__(self):
        """Validate configuration."""
        if len(self.working_hours) != DAYS_IN_WEEK:
            raise ValueError(
                f"working_hours must have {DAYS_IN_WEEK} entries, got {len(self.working_hours)}"
            )
        if self.slot_interval <= 0:
            raise ValueError(f"slot_interval must be positive, got {self.slot_interval}")
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must be >= 0, got {self.buffer_minutes}")
        if self.min_advance_hours < 0:
            raise ValueError(f"min_advance_hours must be >= 0, got {self.min_advance_hours}")
        if self.max_advance_days < 0:
            raise ValueError(f"max_advance_days must be >= 0, got {self.max_advance_days}")

    def day(self, weekday: int) -> DaySchedule | None:
        """Schedule for weekday (0 = Sunday)."""
        return self.working_hours[weekday]

    def working_hours_dict(self) -> dict[str, dict]:
        """Serialize working hours back to the stored JSON shape."""
        return {
            str(weekday): day.to_dict()
            for weekday, day in enumerate(self.working_hours)
            if day is not None
        }


DEFAULT_WORKING_HOURS: tuple[DaySchedule, ...] = (
    DaySchedule("00:00", "00:00", enabled=False),  # Sunday
    DaySchedule("09:00", "18:00"),
    DaySchedule("09:00", "18:00"),
    DaySchedule("09:00", "18:00"),
    DaySchedule("09:00", "18:00"),
    DaySchedule("09:00", "18:00"),
    DaySchedule("10:00", "15:00"),  # Saturday
)

DEFAULT_PROVIDER_SETTINGS = ProviderSettings(
    working_hours=DEFAULT_WORKING_HOURS,
    slot_interval=30,
    buffer_minutes=0,
    timezone="America/Santiago",
    min_advance_hours=2,
    max_advance_days=60,
)


def closed_provider_settings(timezone: str | None = None) -> ProviderSettings:
    """Defaults with every day closed, used when stored settings are unusable."""
    return replace(
        DEFAULT_PROVIDER_SETTINGS,
        working_hours=(None,) * DAYS_IN_WEEK,
        timezone=timezone or DEFAULT_PROVIDER_SETTINGS.timezone,
    )


# ── Time helpers ─────────────────────────────────────────────────────────


def parse_time_of_day(value: Any) -> tuple[int, int] | None:
    """Parse "H:MM" / "HH:MM" into (hour, minute). None if malformed."""
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight. Raises ValueError if malformed."""
    parsed = parse_time_of_day(value)
    if parsed is None:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = parsed
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


# ── Stored settings parsing ──────────────────────────────────────────────


def _parse_day(raw: Any) -> DaySchedule | None:
    if not isinstance(raw, dict):
        return None
    start = raw.get("start")
    end = raw.get("end")
    if not isinstance(start, str) or not isinstance(end, str):
        return None
    return DaySchedule(start=start, end=end, enabled=bool(raw.get("enabled", False)))


def parse_working_hours(raw: str | dict | None) -> tuple[DaySchedule | None, ...]:
    """
    Build the 7-entry weekday tuple from stored working hours.

    Accepts a JSON string or a dict keyed by weekday ("0".."6" or 0..6).
    Malformed entries become None, which the engine treats as a closed day.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            logger.warning("Invalid working_hours JSON, treating all days as closed")
            raw = {}

    if not isinstance(raw, dict):
        return (None,) * DAYS_IN_WEEK

    days: list[DaySchedule | None] = []
    for weekday in range(DAYS_IN_WEEK):
        value = raw.get(str(weekday), raw.get(weekday))
        days.append(_parse_day(value))
    return tuple(days)


def build_provider_settings(
    working_hours: str | dict | Sequence[DaySchedule | None] | None,
    slot_interval: int,
    buffer_minutes: int,
    timezone: str,
    min_advance_hours: float,
    max_advance_days: int,
) -> ProviderSettings:
    """Build ProviderSettings from stored (row-like) values."""
    if isinstance(working_hours, (str, dict)) or working_hours is None:
        days = parse_working_hours(working_hours)
    else:
        days = tuple(working_hours)

    return ProviderSettings(
        working_hours=days,
        slot_interval=slot_interval,
        buffer_minutes=buffer_minutes,
        timezone=timezone,
        min_advance_hours=min_advance_hours,
        max_advance_days=max_advance_days,
    )
