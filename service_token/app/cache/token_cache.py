"""
Token cache backends for the Token service.

The cache holds at most one record, the current OneMap access token, under
a fixed key. It is advisory: a miss or a backend failure only means the
gateway goes to OneMap for a fresh token.
"""

import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger


ACCESS_TOKEN_KEY = "access_token"


class TokenCache(Protocol):
    """Key-value store with per-write expiration."""

    cache_type: str

    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str, expiration_ttl: int) -> bool:
        ...

    async def health_check(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class InMemoryTokenCache:
    """Process-local cache used for local runs and tests."""

    cache_type = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self.logger = get_logger("token.cache.memory")

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: str, expiration_ttl: int) -> bool:
        self._entries[key] = (value, self._clock() + expiration_ttl)
        self.logger.debug("Cached value", cache_key=key, ttl=expiration_ttl)
        return True

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until ``key`` expires, or None if it is not cached."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry[1] - self._clock()

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()


class RedisTokenCache:
    """Redis-backed token cache."""

    cache_type = "redis"

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.logger = get_logger("token.cache.redis")
        self.redis: Optional[redis.Redis] = None

    def _client(self) -> redis.Redis:
        # from_url does not connect; the pool connects on first command
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30
            )
        return self.redis

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client().get(key)
        except RedisError as e:
            self.logger.error("Error reading cached token", cache_key=key, error=str(e))
            return None

        if value:
            self.logger.debug("Cache hit", cache_key=key)
        return value or None

    async def put(self, key: str, value: str, expiration_ttl: int) -> bool:
        try:
            await self._client().set(key, value, ex=expiration_ttl)
        except RedisError as e:
            self.logger.error("Error caching token", cache_key=key, error=str(e))
            return False

        self.logger.debug("Cached token", cache_key=key, ttl=expiration_ttl)
        return True

    async def health_check(self) -> bool:
        try:
            await self._client().ping()
            return True
        except RedisError:
            return False

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache closed")


def build_token_cache(cache_url: Optional[str]) -> Optional[TokenCache]:
    """Create the cache backend named by ``cache_url``.

    ``None`` or an empty string disables caching, ``memory://`` selects the
    in-process cache and ``redis://``/``rediss://``/``unix://`` URLs select Redis.
    """
    if not cache_url:
        return None
    if cache_url.startswith("memory://"):
        return InMemoryTokenCache()
    if cache_url.startswith(("redis://", "rediss://", "unix://")):
        return RedisTokenCache(cache_url)
    raise ValueError(f"Unsupported cache URL scheme: {cache_url}")
