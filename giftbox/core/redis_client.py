"""Shared async Redis connection for device preferences.

Redis is optional. While it is unreachable, ``get_redis`` returns None,
preference reads fall back to defaults and writes are dropped. A failed
connection attempt is not retried for ``REDIS_RETRY_SECONDS`` so requests
do not each pay the connect timeout.
"""

import logging
import time

import redis.asyncio as aioredis

from giftbox.config import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None
_retry_at: float = 0.0


def device_hash_key(device_id: str) -> str:
    """Name of the hash holding one device's preferences."""
    return f"{settings.PREFERENCE_KEY_PREFIX}:{device_id}"


async def get_redis() -> aioredis.Redis | None:
    """The shared client, or None while Redis is unavailable."""
    global _redis, _retry_at
    if _redis is not None:
        return _redis
    if time.monotonic() < _retry_at:
        return None

    client = aioredis.from_url(
        settings.REDIS_URL, decode_responses=True, socket_connect_timeout=1,
    )
    try:
        await client.ping()
    except Exception:
        logger.warning(
            "Redis unavailable at %s, device preferences use defaults for %ss",
            settings.REDIS_URL, settings.REDIS_RETRY_SECONDS,
        )
        _retry_at = time.monotonic() + settings.REDIS_RETRY_SECONDS
        await client.aclose()
        return None

    _redis = client
    logger.info("Redis connected at %s", settings.REDIS_URL)
    return _redis


async def redis_status() -> str:
    """``ok``, ``unavailable`` (not configured or unreachable) or ``error``."""
    try:
        client = await get_redis()
        if client is None:
            return "unavailable"
        await client.ping()
    except Exception:
        logger.exception("Redis ping failed")
        return "error"
    return "ok"


async def close_redis() -> None:
    global _redis, _retry_at
    if _redis is not None:
        await _redis.aclose()
        _redis = None
        logger.info("Redis connection closed")
    _retry_at = 0.0
