# artistbook/services/slots/redis_store.py
"""
Redis storage for computed day slots using Sorted Sets.

Key format: slots:day:{artist_id}:{date}:{duration}:{version}
Value: Sorted Set where member = "HH:MM" (slot start), score = expire_ts
       (slot_start − min_advance_hours, unix timestamp).

Stored slots are the full (unclamped) day grid. Advance notice is applied
on read: ZRANGEBYSCORE key {now_ts} +inf → only slots still bookable.
Sentinel: "__empty__" with score=0 marks "calculated, zero slots".

Version: "{artist_ver}.{day_ver}" from the counters
slots:ver:{artist_id} and slots:ver:{artist_id}:{date}. Invalidation
bumps the counters, so a grid computed from bookings read before the
bump is written under a key no reader asks for.
"""

from datetime import date, datetime, timedelta

from redis import Redis

from .config import ProviderSettings, time_str_to_minutes
from .engine import AvailableSlot, day_start


EMPTY_SENTINEL = "__empty__"
DEFAULT_TTL_SECONDS = 86400


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


def _counter(value) -> int:
    return int(value) if value is not None else 0


class SlotsRedisStore:
    """Redis storage wrapper using Sorted Sets for slot data."""

    KEY_PREFIX = "slots:day"
    VERSION_PREFIX = "slots:ver"

    def __init__(self, redis: Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, artist_id: str, dt: date, duration: int, version: str) -> str:
        return f"{self.KEY_PREFIX}:{artist_id}:{dt.isoformat()}:{duration}:{version}"

    def _day_pattern(self, artist_id: str, dt: date | None = None) -> str:
        if dt is None:
            return f"{self.KEY_PREFIX}:{artist_id}:*"
        return f"{self.KEY_PREFIX}:{artist_id}:{dt.isoformat()}:*"

    def _artist_version_key(self, artist_id: str) -> str:
        return f"{self.VERSION_PREFIX}:{artist_id}"

    def _day_version_key(self, artist_id: str, dt: date) -> str:
        return f"{self.VERSION_PREFIX}:{artist_id}:{dt.isoformat()}"

    # ── Version ──────────────────────────────────────────────────────────

    def get_version(self, artist_id: str, dt: date) -> str:
        """Current cache version of a provider's day. Read it before loading bookings."""
        artist_ver, day_ver = self.redis.mget(
            self._artist_version_key(artist_id),
            self._day_version_key(artist_id, dt),
        )
        return f"{_counter(artist_ver)}.{_counter(day_ver)}"

    def bump_version(self, artist_id: str, dates: list[date] | None = None) -> None:
        """
        Move readers to a new key version.

        Args:
            artist_id: Provider ID
            dates: Specific dates, or None to bump every date of the provider.
        """
        if dates:
            keys = [self._day_version_key(artist_id, dt) for dt in dates]
        else:
            keys = [self._artist_version_key(artist_id)]

        # Counters outlive any data key written under the old version
        pipe = self.redis.pipeline()
        for key in keys:
            pipe.incr(key)
            pipe.expire(key, self.ttl_seconds * 2)
        pipe.execute()

    # ── Write ────────────────────────────────────────────────────────────

    def store_day_slots(
        self,
        artist_id: str,
        dt: date,
        duration: int,
        slots: list[AvailableSlot],
        settings: ProviderSettings,
        now: datetime,
        version: str,
    ) -> None:
        """
        Store the full slot grid of a day.

        Args:
            artist_id: Provider ID
            dt: Target date
            duration: Service duration the grid was computed for
            slots: Unclamped slots. Empty list → sentinel is stored.
            settings: Provider settings (min_advance_hours feeds the score)
            now: Current time, caps the key lifetime at now + ttl
            version: Value of get_version() taken before bookings were read
        """
        key = self._key(artist_id, dt, duration, version)
        advance = timedelta(hours=settings.min_advance_hours)
        max_lifetime = int(now.timestamp()) + self.ttl_seconds

        pipe = self.redis.pipeline()

        # Remove old data
        pipe.delete(key)

        if slots:
            mapping = {
                slot.local_label: (slot.start - advance).timestamp()
                for slot in slots
            }
            pipe.zadd(key, mapping)
            max_expire = max(mapping.values())
            # Key lives until the last slot expires + 1 minute buffer
            pipe.expireat(key, min(int(max_expire) + 60, max_lifetime))
        else:
            # Empty day: sentinel so EXISTS returns True
            pipe.zadd(key, {EMPTY_SENTINEL: 0})
            end_of_day = day_start(dt) + timedelta(days=1)
            pipe.expireat(key, min(int(end_of_day.timestamp()) + 60, max_lifetime))

        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_available_slots(
        self,
        artist_id: str,
        dt: date,
        duration: int,
        now: datetime,
        version: str,
    ) -> list[AvailableSlot] | None:
        """
        Get slots still bookable at `now`.

        Returns:
            Slots ordered by start, or None on cache miss.
        """
        key = self._key(artist_id, dt, duration, version)
        if not self.redis.exists(key):
            return None

        members = self.redis.zrangebyscore(key, now.timestamp(), "+inf")
        labels = [_decode(m) for m in members if _decode(m) != EMPTY_SENTINEL]

        midnight = day_start(dt)
        slots = []
        for label in labels:
            start = midnight + timedelta(minutes=time_str_to_minutes(label))
            slots.append(AvailableSlot(
                start=start,
                end=start + timedelta(minutes=duration),
                local_label=label,
            ))

        slots.sort(key=lambda s: s.start)
        return slots

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_slots(
        self,
        artist_id: str,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached slots (every duration) for the given dates.

        Args:
            artist_id: Provider ID
            dates: Specific dates, or None to delete all for the provider.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = []
            for dt in dates:
                keys.extend(self.redis.keys(self._day_pattern(artist_id, dt)))
        else:
            keys = self.redis.keys(self._day_pattern(artist_id))

        if not keys:
            return 0

        return self.redis.delete(*keys)
