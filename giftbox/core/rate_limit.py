"""Shared rate limiter instance.

Link requests are created without authentication, so the endpoint is
throttled per client address. Counters live in Redis when it is reachable
and in memory otherwise (development / tests).
"""

import logging

import redis as sync_redis
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = ["120/minute"]


def _create_limiter() -> Limiter:
    from giftbox.config import settings

    try:
        client = sync_redis.from_url(settings.REDIS_URL, socket_connect_timeout=1)
        client.ping()
        client.close()
    except Exception:
        logger.warning("Rate limiter: Redis unavailable, using in-memory storage")
        return Limiter(key_func=get_remote_address, default_limits=DEFAULT_LIMITS)

    logger.info("Rate limiter: Redis storage (%s)", settings.REDIS_URL)
    return Limiter(
        key_func=get_remote_address,
        default_limits=DEFAULT_LIMITS,
        storage_uri=settings.REDIS_URL,
        key_prefix="giftbox",
    )


limiter = _create_limiter()
