"""Per-user session presence and refresh-token blacklist, kept in the cache."""

from __future__ import annotations

import time

from userdeck.core.cache import Cache


def sessions_key(user_id: int) -> str:
    return f"sessions:{user_id}"


def blacklist_key(user_id: int, token_id: str) -> str:
    return f"blacklist:{user_id}:{token_id}"


class SessionsStore:
    """``sessions:<id>`` maps refresh-token ids to their expiry (epoch seconds)."""

    def __init__(self, cache: Cache) -> None:
        self._cache = cache

    async def _live_sessions(self, user_id: int) -> dict[str, float]:
        data = await self._cache.get(sessions_key(user_id)) or {}
        now = time.time()
        return {token_id: exp for token_id, exp in data.items() if exp > now}

    async def add(self, user_id: int, token_id: str, ttl: int) -> None:
        sessions = await self._live_sessions(user_id)
        sessions[token_id] = time.time() + ttl
        longest = int(max(sessions.values()) - time.time()) + 1
        await self._cache.set(sessions_key(user_id), sessions, ttl=longest)

    async def remove(self, user_id: int, token_id: str) -> int:
        """Drop one session; returns how many remain."""
        sessions = await self._live_sessions(user_id)
        sessions.pop(token_id, None)
        if not sessions:
            await self._cache.delete(sessions_key(user_id))
            return 0
        longest = int(max(sessions.values()) - time.time()) + 1
        await self._cache.set(sessions_key(user_id), sessions, ttl=longest)
        return len(sessions)

    async def is_active(self, user_id: int) -> bool:
        data = await self._cache.get(sessions_key(user_id))
        return data is not None

    async def blacklist(self, user_id: int, token_id: str, ttl: int) -> None:
        await self._cache.set(blacklist_key(user_id, token_id), 1, ttl=max(ttl, 1))

    async def is_blacklisted(self, user_id: int, token_id: str) -> bool:
        return await self._cache.get(blacklist_key(user_id, token_id)) is not None
