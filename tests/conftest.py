import math
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import NoScriptError

from mail_throttle.core.config.settings import Settings
from mail_throttle.middleware.throttle_mail import set_default_store


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeJob:
    """Queued job exposing the release/attempts shape workers rely on."""

    def __init__(self, mailer=None, attempts=1, mailable=None, notification=None):
        if mailer is not None:
            self.mailer = mailer
        if mailable is not None:
            self.mailable = mailable
        if notification is not None:
            self.notification = notification
        self._attempts = attempts
        self.released_with = []

    def attempts(self):
        return self._attempts

    def release(self, delay):
        self.released_with.append(delay)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client(clock):
    """Mock Redis client emulating the throttle script in memory.

    The evalsha body never awaits, so under asyncio each call is atomic,
    matching what the Lua script guarantees on a real server.
    """
    mock_client = MagicMock()

    counters = {}
    scripts = set()

    async def mock_script_load(script):
        sha = "fake_script_sha_123"
        scripts.add(sha)
        return sha

    async def mock_evalsha(sha, numkeys, key, limit, window):
        if sha not in scripts:
            raise NoScriptError("NOSCRIPT No matching script. Please use EVAL.")
        now = clock()
        count, expires_at = counters.get(key, (0, None))
        if expires_at is not None and now >= expires_at:
            count, expires_at = 0, None
        count += 1
        if expires_at is None:
            expires_at = now + int(window)
        counters[key] = (count, expires_at)
        ttl = max(0, math.ceil(expires_at - now))
        return [0 if count > int(limit) else 1, count, ttl]

    async def mock_delete(*keys):
        deleted = 0
        for key in keys:
            if counters.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def mock_ping():
        return True

    mock_client.script_load = AsyncMock(side_effect=mock_script_load)
    mock_client.evalsha = AsyncMock(side_effect=mock_evalsha)
    mock_client.delete = AsyncMock(side_effect=mock_delete)
    mock_client.ping = AsyncMock(side_effect=mock_ping)
    mock_client.aclose = AsyncMock()

    mock_client.counters = counters
    mock_client.scripts = scripts
    return mock_client


@pytest.fixture
def make_settings():
    """Build isolated settings; keyword arguments override defaults."""
    def _make(**overrides):
        values = {
            "PROJECT_NAME": "MyApp",
            "MAIL_DEFAULT_MAILER": "smtp",
            "MAIL_MAILERS": {
                "smtp": {"transport": "smtp"},
                "resend": {"transport": "resend", "rate_limit": 2, "rate_limit_per": 1},
            },
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture(autouse=True)
def reset_default_store():
    set_default_store(None)
    yield
    set_default_store(None)
