from __future__ import annotations

import logging

from redis.asyncio import Redis

from enrollment.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


def build_redis(settings: Settings) -> Redis:
    """Client for the expiring stores: str in and out, bounded socket waits."""
    return Redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_timeout_seconds,
        socket_connect_timeout=settings.redis_timeout_seconds,
        health_check_interval=30,
    )


def get_redis() -> Redis:
    """Process-wide client, created on first use."""
    global _client
    if _client is None:
        _client = build_redis(get_settings())
        logger.info("redis client created")
    return _client


async def close_redis() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
        logger.info("redis client closed")
