"""Key-value cache with TTL.

Redis (``redis.asyncio``) when ``REDIS_URL`` is configured, otherwise an
in-process store with the same semantics.  Values are JSON-serialisable.
"""

from __future__ import annotations

import json
import time
from typing import Any, Protocol

import redis.asyncio as redis

from userdeck.core.config import get_settings
from userdeck.core.logging import get_logger

logger = get_logger(__name__)


class Cache(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class RedisCache:
    def __init__(self, url: str, default_ttl: int) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._default_ttl = default_ttl

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self._client.set(key, json.dumps(value), ex=ttl or self._default_ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


class MemoryCache:
    """In-process cache for a single worker.

    Expired entries are dropped when read, and every ``sweep_every`` writes a
    full sweep removes the ones nobody reads again (refresh token blacklist
    entries, mostly).
    """

    def __init__(self, default_ttl: int, sweep_every: int = 128) -> None:
        self._default_ttl = default_ttl
        self._sweep_every = sweep_every
        self._writes = 0
        self._data: dict[str, tuple[float, str]] = {}

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        if expired:
            logger.debug("Expired cache entries swept", count=len(expired))

    async def get(self, key: str) -> Any | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, raw = entry
        if expires_at <= time.monotonic():
            del self._data[key]
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        now = time.monotonic()
        self._data[key] = (now + (ttl or self._default_ttl), json.dumps(value))
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self._sweep(now)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        self._data.clear()


_cache: Cache | None = None


def get_cache() -> Cache:
    global _cache
    if _cache is None:
        settings = get_settings()
        if settings.redis_url:
            _cache = RedisCache(settings.redis_url, settings.cache_ttl)
            logger.info("Cache backend ready", backend="redis")
        else:
            _cache = MemoryCache(settings.cache_ttl)
            logger.info("Cache backend ready", backend="memory")
    return _cache


async def close_cache() -> None:
    global _cache
    if _cache is not None:
        await _cache.close()
    _cache = None
