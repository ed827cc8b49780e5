"""
Redis implementation of the shared counter store.

Each throttle key is a plain Redis counter. One Lua script increments it,
sets the window expiry on the first hit, and compares the count with the
limit, so the whole check runs as a single atomic step on the server no
matter how many worker processes call it at once. The script never blocks:
an attempt over the limit is answered immediately with a DENY.

The window starts with the first attempt on an idle key and ends when the
key expires, after which the next attempt starts a fresh window.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import NoScriptError, RedisError

from mail_throttle.core.circuit_breaker import CircuitBreaker, CircuitBreakerError
from mail_throttle.core.config.settings import Settings, get_settings
from mail_throttle.core.exceptions import StoreUnavailableError
from mail_throttle.domain.throttling.repositories import ThrottleStore
from mail_throttle.domain.throttling.value_objects import AcquireResult, ThrottleKey
from mail_throttle.infrastructure.redis import create_redis_client

logger = structlog.get_logger(__name__)

ACQUIRE_SCRIPT = """
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], window)
end
local ttl = redis.call('TTL', KEYS[1])
if ttl < 0 then
    redis.call('EXPIRE', KEYS[1], window)
    ttl = window
end
if current > limit then
    return {0, current, ttl}
end
return {1, current, ttl}
"""

STORE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisThrottleStore(ThrottleStore):
    """
    ``ThrottleStore`` backed by Redis.

    The script is loaded once and run by SHA; if Redis lost its script cache
    (restart, failover) it is loaded again transparently.
    """

    def __init__(self, redis_client: redis.Redis, breaker: Optional[CircuitBreaker] = None):
        """
        Args:
            redis_client: The async Redis client instance.
            breaker: Optional circuit breaker guarding every acquire.
        """
        self.redis = redis_client
        self.breaker = breaker
        self._acquire_sha: Optional[str] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        redis_client: Optional[redis.Redis] = None,
    ) -> RedisThrottleStore:
        settings = settings or get_settings()
        breaker = None
        if settings.MAIL_THROTTLE_BREAKER_ENABLED:
            breaker = CircuitBreaker(
                failure_threshold=settings.MAIL_THROTTLE_BREAKER_FAILURE_THRESHOLD,
                reset_timeout=settings.MAIL_THROTTLE_BREAKER_RESET_TIMEOUT,
                name="mail-throttle-store",
            )
        return cls(redis_client or create_redis_client(settings), breaker=breaker)

    async def _register_scripts(self) -> str:
        """Load the acquire script and cache its SHA."""
        if self._acquire_sha is None:
            self._acquire_sha = await self.redis.script_load(ACQUIRE_SCRIPT)
        return self._acquire_sha

    async def _run_acquire(self, key: str, limit: int, window_seconds: int) -> Any:
        sha = await self._register_scripts()
        try:
            return await self.redis.evalsha(sha, 1, key, limit, window_seconds)
        except NoScriptError:
            logger.info("Throttle script missing from Redis, reloading", key=key)
            self._acquire_sha = None
            sha = await self._register_scripts()
            return await self.redis.evalsha(sha, 1, key, limit, window_seconds)

    async def try_acquire(self, key: ThrottleKey, limit: int, window_seconds: int) -> AcquireResult:
        try:
            if self.breaker is not None:
                raw = await self.breaker.execute(self._run_acquire, key.value, limit, window_seconds)
            else:
                raw = await self._run_acquire(key.value, limit, window_seconds)
        except CircuitBreakerError as exc:
            raise StoreUnavailableError(str(exc), key=key.value) from exc
        except STORE_ERRORS as exc:
            logger.error("Throttle store call failed", key=key.value, error=str(exc))
            raise StoreUnavailableError(f"Throttle store call failed: {exc}", key=key.value) from exc

        allowed, count, ttl = (int(part) for part in raw)
        return AcquireResult(allowed=allowed == 1, count=count, limit=limit, reset_after=ttl)

    async def reset(self, key: ThrottleKey) -> bool:
        """Drop the bucket of ``key`` so its window starts over."""
        try:
            await self.redis.delete(key.value)
        except STORE_ERRORS as exc:
            logger.error("Throttle reset failed", key=key.value, error=str(exc))
            return False
        logger.info("Throttle bucket reset", key=key.value)
        return True

    async def health_check(self) -> Dict[str, Any]:
        """Ping Redis and report latency."""
        try:
            start_time = datetime.now()
            await self.redis.ping()
            latency = (datetime.now() - start_time).total_seconds() * 1000

            return {
                'status': 'healthy',
                'latency_ms': latency,
                'connection': 'ok',
                'timestamp': datetime.now().isoformat()
            }
        except STORE_ERRORS as e:
            return {
                'status': 'unhealthy',
                'error': str(e),
                'connection': 'failed',
                'timestamp': datetime.now().isoformat()
            }

    async def close(self) -> None:
        await self.redis.aclose()
