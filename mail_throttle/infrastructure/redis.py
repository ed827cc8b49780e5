"""
Redis Connection Module

Asynchronous Redis clients for the shared throttle counters.

Workers are long-lived, so most callers want one client for the life of the
process (``create_redis_client``). ``get_redis`` wraps the same construction
in an async generator for frameworks with generator-style dependencies,
closing the connection once the caller is done with it.

**Security Note**: Use a ``rediss://`` URL (REDIS_SSL=true) when Redis is
reached over an untrusted network, and never log the assembled URL since it
may carry the password.
"""

from typing import AsyncIterator, Optional

from redis.asyncio import Redis
import logging

from mail_throttle.core.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Optional[Settings] = None) -> Redis:
    """
    Builds an asynchronous Redis client from settings.

    Socket and connect timeouts are bounded by REDIS_SOCKET_TIMEOUT so that a
    dead Redis turns into a store failure quickly instead of pinning a worker.
    """
    settings = settings or get_settings()
    return Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


async def get_redis(settings: Optional[Settings] = None) -> AsyncIterator[Redis]:
    """
    Provides an asynchronous Redis client, closed after use.

    Yields:
        Redis: An asynchronous Redis client instance.
    """
    redis = create_redis_client(settings)
    logger.debug("Redis connection created")
    try:
        yield redis
    finally:
        await redis.aclose()
        logger.debug("Redis connection closed")
