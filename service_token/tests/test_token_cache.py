"""
Unit tests for the token cache backends.
"""

import pytest
from unittest.mock import AsyncMock
from redis.exceptions import ConnectionError as RedisConnectionError

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_token.app.cache.token_cache import (
    ACCESS_TOKEN_KEY,
    InMemoryTokenCache,
    RedisTokenCache,
    build_token_cache,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestInMemoryTokenCache:
    """Test cases for InMemoryTokenCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return InMemoryTokenCache(clock=clock)

    @pytest.mark.asyncio
    async def test_get_missing_key(self, cache):
        assert await cache.get(ACCESS_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_put_then_get(self, cache):
        assert await cache.put(ACCESS_TOKEN_KEY, "abc", expiration_ttl=216000) is True
        assert await cache.get(ACCESS_TOKEN_KEY) == "abc"
        assert cache.ttl(ACCESS_TOKEN_KEY) == 216000

    @pytest.mark.asyncio
    async def test_entry_expires(self, cache, clock):
        await cache.put(ACCESS_TOKEN_KEY, "abc", expiration_ttl=60)

        clock.advance(59)
        assert await cache.get(ACCESS_TOKEN_KEY) == "abc"

        clock.advance(1)
        assert await cache.get(ACCESS_TOKEN_KEY) is None
        assert cache.ttl(ACCESS_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_put_overwrites(self, cache, clock):
        await cache.put(ACCESS_TOKEN_KEY, "old", expiration_ttl=60)
        clock.advance(30)
        await cache.put(ACCESS_TOKEN_KEY, "new", expiration_ttl=60)

        assert await cache.get(ACCESS_TOKEN_KEY) == "new"
        assert cache.ttl(ACCESS_TOKEN_KEY) == 60

    @pytest.mark.asyncio
    async def test_health_and_close(self, cache):
        await cache.put(ACCESS_TOKEN_KEY, "abc", expiration_ttl=60)
        assert await cache.health_check() is True

        await cache.close()
        assert await cache.get(ACCESS_TOKEN_KEY) is None


class TestRedisTokenCache:
    """Test cases for RedisTokenCache."""

    @pytest.fixture
    def redis_client(self):
        """Mock Redis connection."""
        client = AsyncMock()
        client.get.return_value = None
        client.set.return_value = True
        client.ping.return_value = True
        return client

    @pytest.fixture
    def cache(self, redis_client):
        cache = RedisTokenCache("redis://localhost:6379/0")
        cache.redis = redis_client
        return cache

    def test_client_is_lazy(self):
        cache = RedisTokenCache("redis://localhost:6379/0")
        assert cache.redis is None
        assert cache.cache_type == "redis"

    @pytest.mark.asyncio
    async def test_get_hit(self, cache, redis_client):
        redis_client.get.return_value = "abc"

        assert await cache.get(ACCESS_TOKEN_KEY) == "abc"
        redis_client.get.assert_awaited_once_with("access_token")

    @pytest.mark.asyncio
    async def test_get_miss(self, cache):
        assert await cache.get(ACCESS_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_empty_value_is_a_miss(self, cache, redis_client):
        redis_client.get.return_value = ""
        assert await cache.get(ACCESS_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_put_sets_expiration(self, cache, redis_client):
        assert await cache.put(ACCESS_TOKEN_KEY, "abc", expiration_ttl=216000) is True
        redis_client.set.assert_awaited_once_with("access_token", "abc", ex=216000)

    @pytest.mark.asyncio
    async def test_get_error_is_a_miss(self, cache, redis_client):
        redis_client.get.side_effect = RedisConnectionError("down")
        assert await cache.get(ACCESS_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_put_error_reports_failure(self, cache, redis_client):
        redis_client.set.side_effect = RedisConnectionError("down")
        assert await cache.put(ACCESS_TOKEN_KEY, "abc", expiration_ttl=60) is False

    @pytest.mark.asyncio
    async def test_health_check(self, cache, redis_client):
        assert await cache.health_check() is True

        redis_client.ping.side_effect = RedisConnectionError("down")
        assert await cache.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, cache, redis_client):
        await cache.close()

        redis_client.aclose.assert_awaited_once()
        assert cache.redis is None

        # Closing twice is a no-op
        await cache.close()
        redis_client.aclose.assert_awaited_once()


class TestBuildTokenCache:
    """Test cases for cache selection from a URL."""

    @pytest.mark.parametrize("url", [None, ""])
    def test_disabled(self, url):
        assert build_token_cache(url) is None

    def test_memory(self):
        assert isinstance(build_token_cache("memory://"), InMemoryTokenCache)

    @pytest.mark.parametrize("url", [
        "redis://localhost:6379/0",
        "rediss://cache.example.com:6380/1",
        "unix:///var/run/redis.sock",
    ])
    def test_redis(self, url):
        cache = build_token_cache(url)
        assert isinstance(cache, RedisTokenCache)
        assert cache.redis_url == url

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError):
            build_token_cache("memcached://localhost:11211")
