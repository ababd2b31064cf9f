# artistbook/services/slots/invalidator.py
"""
Cache invalidation for provider slots.

Triggers:
✓ Booking created / cancelled → invalidate the booking's date
✓ Provider settings saved → invalidate all dates

Versions are bumped first, then old keys are deleted to free memory.
A request that read bookings before the bump writes under the old
version, which no reader asks for afterwards.

Redis failures are logged and swallowed: a stale cache entry expires on
its own, and the write that triggered invalidation has already committed.
"""

import logging
from datetime import date, datetime, timedelta

from redis import Redis, RedisError

from .engine import parse_instant
from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def invalidate_artist_cache(
    redis: Redis | None,
    artist_id: str,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached slots for a provider.

    Args:
        redis: Redis client, or None when caching is disabled
        artist_id: Provider ID
        dates: Specific dates to invalidate, or None for all cached dates

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0

    store = SlotsRedisStore(redis)
    try:
        store.bump_version(artist_id, dates)
        deleted = store.delete_day_slots(artist_id, dates)
    except RedisError as e:
        logger.warning(f"Slots cache invalidation failed for artist {artist_id}: {e}")
        return 0

    logger.info(f"Invalidated {deleted} slots cache key(s) for artist {artist_id}")
    return deleted


def get_affected_dates(
    start_time: datetime | str,
    end_time: datetime | str,
) -> list[date]:
    """
    UTC dates touched by a booking range [start_time, end_time].

    Returns empty list if either timestamp is malformed.
    """
    start = parse_instant(start_time)
    end = parse_instant(end_time)
    if start is None or end is None:
        return []

    if start > end:
        start, end = end, start

    dates = []
    current = start.date()
    while current <= end.date():
        dates.append(current)
        current += timedelta(days=1)

    return dates
