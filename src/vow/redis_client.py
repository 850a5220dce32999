"""Redis connection pool.

Only the rate limiter uses Redis. With no ``redis_url`` configured the
pool is never opened and rate limiting is off.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Open the pool used for rate-limit counters."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client; RuntimeError when rate limiting is disabled."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def redis_status() -> str:
    """Readiness value: ``disabled`` without a pool, ``ok`` on ping, ``error: ...`` otherwise."""
    if _pool is None:
        return "disabled"
    try:
        await _pool.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc}"
    return "ok"
