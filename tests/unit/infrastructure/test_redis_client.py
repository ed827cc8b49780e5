from unittest.mock import AsyncMock, MagicMock

import pytest

from mail_throttle.infrastructure import redis as redis_module
from mail_throttle.infrastructure.redis import create_redis_client, get_redis
from mail_throttle.infrastructure.throttle_store import RedisThrottleStore


@pytest.fixture
def from_url(monkeypatch):
    client = MagicMock()
    client.aclose = AsyncMock()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(redis_module.Redis, "from_url", factory)
    return factory


def test_client_built_from_settings(from_url, make_settings):
    settings = make_settings(REDIS_URL="redis://cache:6379/2", REDIS_SOCKET_TIMEOUT=0.5)

    client = create_redis_client(settings)

    assert client is from_url.return_value
    from_url.assert_called_once_with(
        "redis://cache:6379/2",
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=0.5,
        socket_connect_timeout=0.5,
    )


@pytest.mark.asyncio
async def test_get_redis_closes_client(from_url, settings):
    gen = get_redis(settings)
    client = await gen.__anext__()
    client.aclose.assert_not_awaited()

    with pytest.raises(StopAsyncIteration):
        await gen.__anext__()
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_store_from_settings_uses_client_factory(from_url, settings):
    store = RedisThrottleStore.from_settings(settings)

    assert store.redis is from_url.return_value
    await store.close()
    from_url.return_value.aclose.assert_awaited_once()
