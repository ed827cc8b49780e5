"""Runs the acquire Lua script against an in-process Redis (fakeredis + lupa)."""

import asyncio

import fakeredis
import pytest
import pytest_asyncio

from mail_throttle.domain.throttling.value_objects import ThrottleKey
from mail_throttle.infrastructure.throttle_store import RedisThrottleStore

KEY = ThrottleKey("MyApp:mail-throttle:resend")


@pytest_asyncio.fixture
async def fake_redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.mark.asyncio
async def test_concurrent_acquires_stop_at_rate(fake_redis):
    store = RedisThrottleStore(fake_redis)

    results = await asyncio.gather(*(store.try_acquire(KEY, 2, 1) for _ in range(50)))

    assert sum(r.allowed for r in results) == 2
    assert sorted(r.count for r in results) == list(range(1, 51))
    assert all(r.allowed == (r.count <= 2) for r in results)
    assert all(0 <= r.reset_after <= 1 for r in results)
    assert await fake_redis.ttl(KEY.value) in (0, 1)


@pytest.mark.asyncio
async def test_first_hit_sets_window_expiry(fake_redis):
    store = RedisThrottleStore(fake_redis)

    result = await store.try_acquire(KEY, 5, 60)

    assert result.allowed
    assert result.count == 1
    assert result.reset_after == 60
    assert await fake_redis.get(KEY.value) == "1"
    assert 0 < await fake_redis.ttl(KEY.value) <= 60


@pytest.mark.asyncio
async def test_expired_window_starts_fresh(fake_redis):
    store = RedisThrottleStore(fake_redis)
    for _ in range(3):
        await store.try_acquire(KEY, 2, 60)

    await fake_redis.pexpire(KEY.value, 1)
    await asyncio.sleep(0.05)

    result = await store.try_acquire(KEY, 2, 60)
    assert result.allowed
    assert result.count == 1
    assert result.reset_after == 60


@pytest.mark.asyncio
async def test_counter_without_expiry_gets_one_back(fake_redis):
    store = RedisThrottleStore(fake_redis)
    await store.try_acquire(KEY, 2, 30)
    await fake_redis.persist(KEY.value)
    assert await fake_redis.ttl(KEY.value) == -1

    result = await store.try_acquire(KEY, 2, 30)

    assert result.count == 2
    assert result.reset_after == 30
    assert 0 < await fake_redis.ttl(KEY.value) <= 30


@pytest.mark.asyncio
async def test_reset_drops_real_counter(fake_redis):
    store = RedisThrottleStore(fake_redis)
    await store.try_acquire(KEY, 1, 60)

    assert await store.reset(KEY)
    assert await fake_redis.exists(KEY.value) == 0
    assert (await store.try_acquire(KEY, 1, 60)).allowed
