# artistbook/redis_client.py
"""
Shared Redis client.

Caching is optional: without REDIS_URL the client is None and slots are
computed on every request.
"""

from redis import Redis

from .config import settings

redis_client: Redis | None = (
    Redis.from_url(settings.redis_url, socket_timeout=2.0)
    if settings.redis_url
    else None
)


# FastAPI dependency
def get_redis() -> Redis | None:
    return redis_client
