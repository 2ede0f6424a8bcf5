# taxengine/infrastructure/cache/calculation_cache.py
"""
Short-lived cache for GST calculation results.

Values are opaque JSON strings. Backends are best-effort: callers treat any
exception as a miss and carry on.
"""

from __future__ import annotations

import asyncio
import logging
import time

import redis.asyncio as aioredis

from taxengine.core.config import settings
from taxengine.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger("calculation_cache")

KEY_PREFIX = "tax_calc:"


class CalculationCache:
    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise NotImplementedError


class RedisCalculationCache(CalculationCache):
    def __init__(self, client: aioredis.Redis | None = None) -> None:
        self._client = client

    def _redis(self) -> aioredis.Redis:
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    async def get(self, key: str) -> str | None:
        return await self._redis().get(KEY_PREFIX + key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis().set(KEY_PREFIX + key, value, ex=ttl_seconds)


class InMemoryCalculationCache(CalculationCache):
    """Process-local TTL cache for development and tests. Last write wins."""

    def __init__(self, clock=time.monotonic) -> None:
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now + ttl_seconds, value)

    def __len__(self) -> int:
        return len(self._entries)


_cache: CalculationCache | None = None


def get_calculation_cache() -> CalculationCache:
    """Module-level singleton chosen by ``CACHE_BACKEND``."""
    global _cache
    if _cache is None:
        backend = settings.CACHE_BACKEND.lower()
        if backend == "memory":
            _cache = InMemoryCalculationCache()
        else:
            _cache = RedisCalculationCache()
        logger.info("Calculation cache backend: %s", backend)
    return _cache
