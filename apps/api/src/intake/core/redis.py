"""
Redis Connection

Shared async Redis client backing the submission rate limiter.
Redis is optional outside production: when it cannot be reached the
rate limiter falls back to process memory.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from intake.core.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


async def init_redis() -> Redis | None:
    """
    Connect to Redis and verify the connection with PING.

    Raises in production; elsewhere logs and leaves the client unset.
    """
    global _client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        await client.close()
        if settings.is_production:
            raise
        logger.warning(f"Redis unavailable, rate limiting will use memory: {e}")
        return None

    _client = client
    return _client


def get_redis_client() -> Redis | None:
    """Return the connected client, or None when Redis is not in use."""
    return _client


async def redis_status() -> str:
    """Report 'connected', 'not initialized' or an error string."""
    if _client is None:
        return "not initialized"
    try:
        await _client.ping()
        return "connected"
    except (RedisError, OSError) as e:
        return f"error: {e}"


async def close_redis() -> None:
    """Close the shared client."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None
