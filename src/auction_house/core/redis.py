"""Shared Redis client for the bid rate limiter."""

from typing import Optional

import redis.asyncio as redis

from auction_house.core.config import settings

_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Return the process-wide client, creating its pool on first use.

    Timeouts are short: the rate limiter fails open, so a slow Redis must
    not hold up bid submission.
    """
    global _client
    if _client is None:
        _client = redis.from_url(
            settings.REDIS_URL,
            max_connections=50,
            decode_responses=True,
            socket_timeout=0.5,
            socket_connect_timeout=0.5,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
