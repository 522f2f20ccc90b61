"""
Rate Limiting

Sliding-window rate limiting for public endpoints, backed by the shared
Redis client with an in-memory fallback when Redis is not connected.
The intake form is unauthenticated, so submissions are limited per client IP.
"""

import logging
import time

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from intake.core.config import settings
from intake.core.redis import get_redis_client

logger = logging.getLogger(__name__)

# key -> request timestamps inside the current window
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a client exceeds its request budget."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "success": False,
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """Sorted-set sliding window. Returns True if the request is allowed."""
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Single-process fallback. Returns True if the request is allowed."""
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request identified by ``key`` is within its limit.

    Args:
        key: Unique key for the limited action (e.g. "submit:203.0.113.7")
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is allowed, False if the limit is exceeded
    """
    client = get_redis_client()
    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def limit_submissions(request: Request) -> None:
    """
    FastAPI dependency limiting application submissions per client IP.

    Raises:
        RateLimitExceeded: HTTP 429 when the client is over budget
    """
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:submit:{client_ip}"
    limit = settings.submission_rate_limit
    window = settings.submission_rate_window_seconds

    if not await check_rate_limit(key, limit, window):
        logger.warning(f"Submission rate limit exceeded for {client_ip}: {limit}/{window}s")
        raise RateLimitExceeded(limit, window)


__all__ = ["RateLimitExceeded", "check_rate_limit", "limit_submissions"]
