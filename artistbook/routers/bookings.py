# artistbook/routers/bookings.py
# PATCH = 405, DELETE = 405, cancel via POST /{id}/cancel

import logging
import threading
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models import Bookings as DBBookings
from ..models import Services as DBServices
from ..redis_client import get_redis
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
)
from ..services.slots import BookingStatus, invalidate_artist_cache
from ..services.slots.availability import (
    find_conflicting_bookings,
    format_instant,
    load_provider_settings,
)
from ..services.slots.engine import day_start, to_utc
from ..services.slots.invalidator import get_affected_dates
from ..validators import is_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

_artist_locks: dict[str, threading.Lock] = {}
_artist_locks_guard = threading.Lock()


def _artist_lock(artist_id: str) -> threading.Lock:
    with _artist_locks_guard:
        return _artist_locks.setdefault(artist_id, threading.Lock())


def _reject_overlap(artist_id: str, start: datetime, conflicts: list):
    logger.info(
        f"Booking rejected for artist {artist_id} at {start.isoformat()}: "
        f"overlaps booking {conflicts[0].id}"
    )
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Time slot is no longer available",
    )


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    artist_id: str | None = None,
    target_date: date | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    query = db.query(DBBookings)
    if artist_id:
        query = query.filter(DBBookings.artist_id == artist_id)
    if target_date:
        start = day_start(target_date)
        query = query.filter(
            DBBookings.start_time >= format_instant(start),
            DBBookings.start_time < format_instant(start + timedelta(days=1)),
        )
    return query.order_by(DBBookings.start_time).all()


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    if not is_uuid(data.artist_id):
        raise HTTPException(status_code=400, detail="Invalid artist_id format")

    service = None
    if data.service_id is not None:
        service = db.get(DBServices, data.service_id)
        if not service or not service.is_active or service.artist_id != data.artist_id:
            raise HTTPException(status_code=404, detail="Service not found")

    if service:
        duration = service.duration
    else:
        duration = data.duration_minutes or settings.default_service_duration

    start = to_utc(data.start_time)
    end = start + timedelta(minutes=duration)

    # Check and insert under one lock per artist. The post-flush re-check
    # sees bookings other processes committed since the first check.
    with _artist_lock(data.artist_id):
        provider, _ = load_provider_settings(db, data.artist_id)
        conflicts = find_conflicting_bookings(
            db, data.artist_id, start, end, provider.buffer_minutes, for_update=True
        )
        if conflicts:
            _reject_overlap(data.artist_id, start, conflicts)

        obj = DBBookings(
            artist_id=data.artist_id,
            service_id=service.id if service else None,
            client_name=data.client_name,
            start_time=format_instant(start),
            end_time=format_instant(end),
            status=data.status,
            deposit_paid=int(data.deposit_paid),
            price_snapshot=service.price if service else None,
            duration_snapshot=duration,
            service_name_snapshot=service.name if service else None,
        )
        db.add(obj)
        db.flush()

        conflicts = find_conflicting_bookings(
            db, data.artist_id, start, end, provider.buffer_minutes, exclude_id=obj.id
        )
        if conflicts:
            db.rollback()
            _reject_overlap(data.artist_id, start, conflicts)

        db.commit()

    db.refresh(obj)
    logger.info(f"Booking {obj.id} created for artist {obj.artist_id} at {obj.start_time}")

    invalidate_artist_cache(redis, obj.artist_id, get_affected_dates(start, end))
    return obj


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    if obj.status == BookingStatus.CANCELLED.value:
        raise HTTPException(status_code=400, detail="Booking already cancelled")

    if obj.status == BookingStatus.COMPLETED.value:
        raise HTTPException(status_code=400, detail="Completed booking cannot be cancelled")

    obj.status = BookingStatus.CANCELLED.value
    obj.cancel_reason = data.reason if data else None
    obj.updated_at = func.current_timestamp()
    db.commit()
    db.refresh(obj)
    logger.info(f"Booking {obj.id} cancelled")

    invalidate_artist_cache(
        redis, obj.artist_id, get_affected_dates(obj.start_time, obj.end_time)
    )
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
