"""Tests for the optional Redis client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.tablehost.core import redis as redis_module
from src.tablehost.core.redis import close_redis, get_redis, reset_redis_state

pytestmark = pytest.mark.unit


@pytest.fixture
def redis_settings(monkeypatch: pytest.MonkeyPatch):
    settings = SimpleNamespace(redis_url=None, redis_pool_size=5)
    monkeypatch.setattr("src.tablehost.core.redis.get_settings", lambda: settings)
    reset_redis_state()
    yield settings
    reset_redis_state()


class TestGetRedis:
    async def test_returns_none_when_not_configured(self, redis_settings) -> None:
        assert await get_redis() is None

    async def test_does_not_retry_after_initial_attempt(self, redis_settings) -> None:
        assert await get_redis() is None

        redis_settings.redis_url = "redis://localhost:6379/0"
        assert await get_redis() is None
        assert redis_module._connection_attempted is True
        assert redis_module._redis is None

    async def test_unreachable_server_degrades_to_none(
        self, redis_settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        redis_settings.redis_url = "redis://localhost:6379/0"
        monkeypatch.setattr(
            "redis.asyncio.Redis.ping", AsyncMock(side_effect=RedisConnectionError("refused"))
        )

        assert await get_redis() is None
        assert redis_module._pool is None

    async def test_connected_client_is_reused(
        self, redis_settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        redis_settings.redis_url = "redis://localhost:6379/0"
        monkeypatch.setattr("redis.asyncio.Redis.ping", AsyncMock(return_value=True))

        first = await get_redis()
        second = await get_redis()

        assert first is not None
        assert first is second

    def test_reset_clears_state(self) -> None:
        redis_module._connection_attempted = True
        redis_module._redis = "dummy"  # type: ignore[assignment]
        redis_module._pool = "dummy"  # type: ignore[assignment]

        reset_redis_state()

        assert redis_module._connection_attempted is False
        assert redis_module._redis is None
        assert redis_module._pool is None


class TestCloseRedis:
    async def test_close_when_not_connected(self, redis_settings) -> None:
        await close_redis()

        assert redis_module._redis is None
        assert redis_module._pool is None
        assert redis_module._connection_attempted is False

    async def test_close_allows_another_attempt(self, redis_settings) -> None:
        await get_redis()
        assert redis_module._connection_attempted is True

        await close_redis()

        assert redis_module._connection_attempted is False


class TestRedisFixtures:
    async def test_mock_redis_is_returned(self, mock_redis) -> None:
        assert await redis_module.get_redis() is mock_redis

    async def test_mock_redis_unavailable_returns_none(self, mock_redis_unavailable) -> None:
        assert await redis_module.get_redis() is None
