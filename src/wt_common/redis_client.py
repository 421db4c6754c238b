"""Redis connection backing the inbound rate-limit counters.

Balances, positions and orders never touch Redis; PostgreSQL is the only store.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def count_hit(key: str, window_seconds: int) -> int:
    """INCR a fixed-window counter; the first hit of a window sets its TTL."""
    redis = await get_redis()
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, window_seconds)
    return count


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
