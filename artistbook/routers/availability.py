# artistbook/routers/availability.py
"""
Availability API endpoints.

GET  /availability - Available slots for a provider, date and service duration
POST /availability - Legacy body form, same response
"""

import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_now
from ..redis_client import get_redis
from ..schemas.availability import AvailabilityRequest, AvailabilityResponse
from ..services.slots import calculate_artist_availability
from ..validators import is_uuid, parse_target_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_duration(value: str | int | None) -> int:
    """
    Requested duration in minutes.

    Leading digits are read ("10abc" → 10). Missing, zero or
    non-numeric input falls back to the default.
    """
    if isinstance(value, int):
        return value or settings.default_service_duration
    match = _LEADING_INT_RE.match(value or "")
    if not match:
        return settings.default_service_duration
    return int(match.group(1)) or settings.default_service_duration


def _get_availability(
    artist_id: str,
    date_str: str,
    duration_raw: str | int | None,
    db: Session,
    redis: Redis | None,
    now: datetime,
) -> dict:
    artist_id = artist_id.strip()
    date_str = date_str.strip()

    if not artist_id or not date_str:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: artistId and date (YYYY-MM-DD)",
        )

    if not is_uuid(artist_id):
        raise HTTPException(status_code=400, detail="Invalid artistId format")

    target_date = parse_target_date(date_str)
    if target_date is None:
        raise HTTPException(status_code=400, detail="Invalid date format. Expected YYYY-MM-DD")

    duration = parse_duration(duration_raw)
    if not settings.min_service_duration <= duration <= settings.max_service_duration:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Invalid duration. Must be between {settings.min_service_duration} "
                f"and {settings.max_service_duration} minutes"
            ),
        )

    result = calculate_artist_availability(
        db=db,
        artist_id=artist_id,
        target_date=target_date,
        duration=duration,
        now=now,
        redis=redis,
        cache_ttl_seconds=settings.slots_cache_ttl_seconds,
    )
    logger.debug(
        f"Availability for artist {artist_id} on {target_date}: {len(result['slots'])} slot(s)"
    )
    return result


@router.get("", response_model=AvailabilityResponse)
def get_availability(
    artist_id: str = Query("", alias="artistId"),
    date_str: str = Query("", alias="date"),
    duration: str = Query(""),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Available slots for a provider on a day."""
    return _get_availability(artist_id, date_str, duration, db, redis, now)


@router.post("", response_model=AvailabilityResponse)
def post_availability(
    data: AvailabilityRequest,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Legacy body form of GET /availability."""
    if not data.artist_id or not data.date:
        raise HTTPException(status_code=400, detail="Missing artistId or date")

    return _get_availability(data.artist_id, data.date, data.duration, db, redis, now)
