# artistbook/routers/artist_settings.py
# GET returns stored settings or documented defaults, PUT = upsert

import json
import logging

from fastapi import APIRouter, Depends
from redis import Redis
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ArtistSettings as DBArtistSettings
from ..redis_client import get_redis
from ..schemas.artist_settings import ArtistSettingsRead, ArtistSettingsUpdate
from ..services.slots import invalidate_artist_cache
from ..services.slots.availability import load_provider_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artist_settings", tags=["artist_settings"])


@router.get("/{artist_id}", response_model=ArtistSettingsRead)
def get_artist_settings(artist_id: str, db: Session = Depends(get_db)):
    provider, is_default = load_provider_settings(db, artist_id)
    return ArtistSettingsRead(
        artist_id=artist_id,
        working_hours=provider.working_hours_dict(),
        slot_interval=provider.slot_interval,
        buffer_minutes=provider.buffer_minutes,
        timezone=provider.timezone,
        min_advance_hours=provider.min_advance_hours,
        max_advance_days=provider.max_advance_days,
        is_default=is_default,
    )


@router.put("/{artist_id}", response_model=ArtistSettingsRead)
def put_artist_settings(
    artist_id: str,
    data: ArtistSettingsUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    values = data.model_dump()
    values["working_hours"] = json.dumps(values["working_hours"], sort_keys=True)

    obj = (
        db.query(DBArtistSettings)
        .filter(DBArtistSettings.artist_id == artist_id)
        .first()
    )
    if obj is None:
        obj = DBArtistSettings(artist_id=artist_id, **values)
        db.add(obj)
    else:
        for field, value in values.items():
            setattr(obj, field, value)
        obj.updated_at = func.current_timestamp()

    db.commit()
    logger.info(f"Settings saved for artist {artist_id}")

    invalidate_artist_cache(redis, artist_id)

    return get_artist_settings(artist_id, db)
