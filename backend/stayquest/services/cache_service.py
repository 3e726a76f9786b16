"""
Read-through Redis cache for nearby lodging searches.

Every map pan on the client is a nearby search, and the places provider
bills per call, so results are kept for REDIS_CACHE_TTL seconds under

    places:nearby:{lat}:{lng}:{radius}

with coordinates rounded to 4 decimals (about 11m). Entries only expire;
nothing here writes places data, so there is nothing to invalidate.

Redis is optional. With REDIS_ENABLED off, or when the server cannot be
reached, every lookup is a miss and searches go straight to the provider.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis

from stayquest.core.config import get_settings
from stayquest.core.logging import get_logger
from stayquest.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

NEARBY_PREFIX = "places:nearby"

_redis_client: Optional[redis.Redis] = None


async def _connect() -> Optional[redis.Redis]:
    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except redis.RedisError as e:
        redis_connection_errors.inc()
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None
    logger.info("redis_connected", url=settings.REDIS_URL)
    return client


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, connected on first use. None when caching is off or down."""
    global _redis_client
    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is None:
        _redis_client = await _connect()
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def make_nearby_key(lat: float, lng: float, radius: int) -> str:
    return f"{NEARBY_PREFIX}:{round(lat, 4)}:{round(lng, 4)}:{radius}"


async def get_cached_places(key: str) -> Optional[list[dict[str, Any]]]:
    client = await get_redis()
    if client is None:
        return None
    try:
        raw = await client.get(key)
    except redis.RedisError as e:
        logger.warning("places_cache_read_failed", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=raw is not None)
    if raw is None:
        return None
    logger.debug("places_cache_hit", key=key)
    return json.loads(raw)


async def set_cached_places(key: str, places: list[dict[str, Any]]) -> None:
    client = await get_redis()
    if client is None:
        return
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(places))
    except redis.RedisError as e:
        logger.warning("places_cache_write_failed", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Cache section of the health payload."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}
    try:
        stats = await client.info("stats")
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = stats.get("keyspace_hits", 0)
    misses = stats.get("keyspace_misses", 0)
    lookups = hits + misses
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(100 * hits / lookups, 2) if lookups else 0.0,
    }
