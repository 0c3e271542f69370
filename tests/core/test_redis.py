"""
Unit tests for Redis client setup.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from accreda.core import redis as redis_module
from accreda.core.redis import close_redis, get_redis, init_redis


@pytest.fixture(autouse=True)
def reset_client(monkeypatch):
    monkeypatch.setattr(redis_module, "redis_client", None)


def _client(ping_error=None):
    client = MagicMock()
    client.ping = AsyncMock(side_effect=ping_error)
    client.close = AsyncMock()
    return client


class TestInitRedis:
    @pytest.mark.asyncio
    async def test_failed_ping_leaves_no_client(self):
        client = _client(ping_error=RedisConnectionError("Connection refused"))

        with patch("accreda.core.redis.from_url", return_value=client):
            with pytest.raises(RedisConnectionError):
                await init_redis()

        assert await get_redis() is None
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_successful_ping_publishes_client(self):
        client = _client()

        with patch("accreda.core.redis.from_url", return_value=client):
            assert await init_redis() is client

        assert await get_redis() is client

    @pytest.mark.asyncio
    async def test_close_clears_client(self):
        client = _client()

        with patch("accreda.core.redis.from_url", return_value=client):
            await init_redis()
        await close_redis()

        assert await get_redis() is None
        client.close.assert_awaited_once()
