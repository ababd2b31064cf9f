# artistbook/services/slots/availability.py
"""
Provider availability for a day.

Glue between storage and the pure engine:
- Provider settings (stored row or documented defaults)
- Booking horizon (max_advance_days) → empty list with a message
- Existing bookings of the day
- Day slot grid (cached in Redis Sorted Set when Redis is available)
"""

import logging
from datetime import date, datetime, timedelta, timezone

from redis import Redis, RedisError
from sqlalchemy.orm import Session

from .config import (
    DEFAULT_PROVIDER_SETTINGS,
    ProviderSettings,
    build_provider_settings,
    closed_provider_settings,
)
from .engine import (
    AvailableSlot,
    BookingStatus,
    ExistingBooking,
    compute_day_availability,
    day_start,
    generate_day_slots,
    is_within_booking_horizon,
    parse_instant,
    ranges_overlap,
    to_utc,
    weekday_index,
    working_window,
)
from .redis_store import DEFAULT_TTL_SECONDS, SlotsRedisStore

logger = logging.getLogger(__name__)


def format_instant(value: datetime) -> str:
    """Storage format for booking timestamps (ISO 8601, UTC)."""
    return to_utc(value).isoformat()


def calculate_artist_availability(
    db: Session,
    artist_id: str,
    target_date: date,
    duration: int,
    now: datetime | None = None,
    redis: Redis | None = None,
    cache_ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> dict:
    """
    Calculate available slots for a provider on a day.

    Returns:
        Dict for AvailabilityResponse. working_hours is None when the
        provider is closed that day or the date is past the horizon.
    """
    now = to_utc(now or datetime.now(timezone.utc))
    settings, _ = load_provider_settings(db, artist_id)

    result = {
        "date": target_date,
        "slots": [],
        "working_hours": None,
        "timezone": settings.timezone,
    }

    # Step 1: Booking horizon
    if not is_within_booking_horizon(target_date, settings, now):
        result["message"] = (
            f"Bookings can only be made up to {settings.max_advance_days} days in advance"
        )
        return result

    # Step 2: Closed day
    if working_window(target_date, settings) is None:
        return result

    # Step 3: Slots (cache or engine)
    if redis is not None:
        slots = _get_cached_slots(
            redis, db, artist_id, target_date, duration, settings, now, cache_ttl_seconds
        )
        day = settings.day(weekday_index(target_date))
        result["working_hours"] = {"start": day.start, "end": day.end}
    else:
        bookings = get_day_bookings(db, artist_id, target_date)
        availability = compute_day_availability(target_date, duration, settings, bookings, now)
        slots = availability.slots
        start, end = availability.working_hours
        result["working_hours"] = {"start": start, "end": end}

    result["slots"] = [_slot_to_dict(slot) for slot in slots]
    return result


# ── Settings ─────────────────────────────────────────────────────────────


def load_provider_settings(db: Session, artist_id: str) -> tuple[ProviderSettings, bool]:
    """
    Load provider settings.

    Returns:
        (settings, is_default). Defaults are used when no row is stored.
        A stored row that fails validation yields every day closed.
    """
    row = _get_settings_row(db, artist_id)
    if row is None:
        return DEFAULT_PROVIDER_SETTINGS, True

    try:
        return settings_from_row(row), False
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid stored settings for artist {artist_id}, treating as closed: {e}")
        return closed_provider_settings(row.timezone), False


def settings_from_row(row) -> ProviderSettings:
    return build_provider_settings(
        working_hours=row.working_hours,
        slot_interval=row.slot_interval,
        buffer_minutes=row.buffer_minutes,
        timezone=row.timezone,
        min_advance_hours=row.min_advance_hours,
        max_advance_days=row.max_advance_days,
    )


# ── Cache ────────────────────────────────────────────────────────────────


def _get_cached_slots(
    redis: Redis,
    db: Session,
    artist_id: str,
    target_date: date,
    duration: int,
    settings: ProviderSettings,
    now: datetime,
    cache_ttl_seconds: int,
) -> list[AvailableSlot]:
    """
    Read the day grid from Redis, computing and storing it on a miss.

    The cache version is read before bookings are loaded, so a grid built
    from bookings that an invalidation has since superseded is stored under
    an outdated key.
    """
    store = SlotsRedisStore(redis, cache_ttl_seconds)
    min_booking_instant = now + timedelta(hours=settings.min_advance_hours)
    grid = None

    try:
        version = store.get_version(artist_id, target_date)
        cached = store.get_available_slots(artist_id, target_date, duration, now, version)
        if cached is not None:
            return cached

        # Cache miss: calculate the full grid and store
        bookings = get_day_bookings(db, artist_id, target_date)
        grid = generate_day_slots(target_date, duration, settings, bookings)
        store.store_day_slots(artist_id, target_date, duration, grid, settings, now, version)
    except RedisError as e:
        logger.warning(f"Slots cache unavailable, computing directly: {e}")
        if grid is None:
            bookings = get_day_bookings(db, artist_id, target_date)
            grid = generate_day_slots(target_date, duration, settings, bookings)

    return [slot for slot in grid if slot.start >= min_booking_instant]


def _slot_to_dict(slot: AvailableSlot) -> dict:
    return {
        "start": slot.start,
        "end": slot.end,
        "local": slot.local_label,
    }


# ── Bookings ─────────────────────────────────────────────────────────────


def get_day_bookings(db: Session, artist_id: str, target_date: date) -> list[ExistingBooking]:
    """Active bookings of the provider intersecting the UTC day of target_date."""
    start = day_start(target_date)
    end = start + timedelta(days=1)
    rows = _get_bookings_in_range(db, artist_id, start, end)
    return [
        ExistingBooking(
            start_time=row.start_time,
            end_time=row.end_time,
            status=row.status,
        )
        for row in rows
    ]


def find_conflicting_bookings(
    db: Session,
    artist_id: str,
    start: datetime,
    end: datetime,
    buffer_minutes: int = 0,
    exclude_id: int | None = None,
    for_update: bool = False,
) -> list:
    """
    Active bookings overlapping the occupancy window [start, end + buffer).

    Rows with malformed timestamps are ignored. for_update locks the
    matched rows on dialects that support SELECT ... FOR UPDATE.
    """
    start = to_utc(start)
    occupancy_end = to_utc(end) + timedelta(minutes=buffer_minutes)
    rows = _get_bookings_in_range(db, artist_id, start, occupancy_end, for_update)

    conflicts = []
    for row in rows:
        if exclude_id is not None and row.id == exclude_id:
            continue
        row_start = parse_instant(row.start_time)
        row_end = parse_instant(row.end_time)
        if row_start is None or row_end is None or row_start >= row_end:
            continue
        if ranges_overlap(start, occupancy_end, row_start, row_end):
            conflicts.append(row)

    return conflicts


# ── Database helpers ─────────────────────────────────────────────────────


def _get_settings_row(db: Session, artist_id: str):
    """Get stored settings for provider."""
    from ...models import ArtistSettings
    return db.query(ArtistSettings).filter(ArtistSettings.artist_id == artist_id).first()


def _get_bookings_in_range(
    db: Session,
    artist_id: str,
    start: datetime,
    end: datetime,
    for_update: bool = False,
) -> list:
    """Non-cancelled bookings with start_time < end and end_time > start."""
    from ...models import Bookings

    query = (
        db.query(Bookings)
        .filter(
            Bookings.artist_id == artist_id,
            Bookings.status != BookingStatus.CANCELLED.value,
            Bookings.start_time < format_instant(end),
            Bookings.end_time > format_instant(start),
        )
        .order_by(Bookings.start_time)
    )
    if for_update:
        query = query.with_for_update()
    return query.all()
