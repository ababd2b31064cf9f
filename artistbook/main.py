import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis import RedisError

from .config import settings
from .init_db import init_db
from .redis_client import redis_client
from .routers import artist_settings, availability, bookings, services

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    yield


app = FastAPI(title="Artistbook API", lifespan=lifespan)

app.include_router(availability.router)
app.include_router(artist_settings.router)
app.include_router(services.router)
app.include_router(bookings.router)


@app.get("/health")
def health():
    if redis_client is None:
        return {"redis": None}
    try:
        return {"redis": redis_client.ping()}
    except RedisError:
        return {"redis": False}
