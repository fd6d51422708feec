"""Key/value stores backing the query result cache."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

import redis.asyncio as aioredis
from cachetools import TLRUCache

from pokedex.config import Settings

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    async def close(self) -> None:
        pass


def _expires_at(_key: str, entry: tuple[bytes, int], now: float) -> float:
    return now + entry[1]


class InMemoryCacheStore(CacheStore):
    """Process-local store with per-entry TTL and least-recently-used eviction."""

    def __init__(self, max_entries: int = 1024, timer: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        # Values are (payload, ttl_seconds); the TTL feeds the per-entry expiry
        self._entries = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=timer)

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._entries[key] = (value, ttl_seconds)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)


class RedisCacheStore(CacheStore):
    """Shared store: entries survive restarts and are visible to every instance."""

    KEY_PREFIX = "pokedex:query:"

    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheStore":
        return cls(aioredis.from_url(redis_url))

    async def get(self, key: str) -> bytes | None:
        value = await self.redis.get(self.KEY_PREFIX + key)
        if isinstance(value, str):
            value = value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        await self.redis.set(self.KEY_PREFIX + key, value, ex=ttl_seconds)

    async def clear(self) -> None:
        """Delete this service's entries only. Useful for testing."""
        keys = await self.redis.keys(f"{self.KEY_PREFIX}*")
        if keys:
            await self.redis.delete(*keys)

    async def close(self) -> None:
        """Close Redis connection (call on app shutdown)."""
        await self.redis.aclose()


def create_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "redis":
        logger.info(f"Using Redis query cache at {settings.redis_url}")
        return RedisCacheStore.from_url(settings.redis_url)
    logger.info(f"Using in-memory query cache (max {settings.cache_max_entries} entries)")
    return InMemoryCacheStore(max_entries=settings.cache_max_entries)
