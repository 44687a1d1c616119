"""Key-value persistence for group sessions, plans and vibe profiles.

Each aggregate is stored whole as one JSON document. The in-memory store is the
default; Redis is used when ``REDIS_ENABLED`` and ``REDIS_URL`` are set.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections import OrderedDict
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel
from redis.asyncio import Redis

from .contracts import EveningPlan, GroupSession, UserVibeProfile
from .settings import settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore(KeyValueStore):
    """Process-local store with per-key TTL and an LRU cap."""

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = max_entries or settings.STORE_MAX_ENTRIES
        self._data: OrderedDict[str, tuple[str, float | None]] = OrderedDict()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [key for key, (_, expires) in self._data.items() if expires is not None and expires <= now]
        for key in expired:
            self._data.pop(key, None)

    async def get(self, key: str) -> Any | None:
        self._evict_expired()
        item = self._data.get(key)
        if item is None:
            return None
        self._data.move_to_end(key)
        return json.loads(item[0])

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        self._evict_expired()
        expires = time.monotonic() + ttl_seconds if ttl_seconds else None
        # stored serialized so callers never share mutable state with the store
        self._data[key] = (json.dumps(value), expires)
        self._data.move_to_end(key)
        while len(self._data) > self.max_entries:
            evicted, _ = self._data.popitem(last=False)
            logger.debug("Store evicted %s", evicted)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._data)


class RedisStore(KeyValueStore):
    def __init__(self, client: Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> RedisStore:
        return cls(Redis.from_url(url, encoding="utf-8", decode_responses=True))

    async def get(self, key: str) -> Any | None:
        raw = await self.client.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        await self.client.set(key, json.dumps(value), ex=ttl_seconds or None)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def aclose(self) -> None:
        await self.client.aclose()


@lru_cache(maxsize=1)
def get_store() -> KeyValueStore:
    if settings.redis_configured:
        logger.info("Using Redis store at %s", settings.REDIS_URL)
        return RedisStore.from_url(settings.REDIS_URL or "")
    return MemoryStore()


class Repository(Generic[M]):
    prefix: str
    model: type[M]
    ttl_seconds: int | None = None

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def key(self, item_id: str) -> str:
        return f"{self.prefix}:{item_id}"

    async def get(self, item_id: str) -> M | None:
        raw = await self.store.get(self.key(item_id))
        if raw is None:
            return None
        return self.model.model_validate(raw)

    async def save(self, item_id: str, item: M) -> M:
        await self.store.set(self.key(item_id), item.model_dump(mode="json"), self.ttl_seconds)
        return item

    async def delete(self, item_id: str) -> None:
        await self.store.delete(self.key(item_id))


class GroupSessionRepository(Repository[GroupSession]):
    prefix = "group"
    model = GroupSession

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store)
        self.ttl_seconds = settings.GROUP_SESSION_TTL_SECONDS

    async def get(self, item_id: str) -> GroupSession | None:
        session = await super().get(item_id)
        if session is not None and session.expires_at is not None and session.expires_at <= _utcnow():
            return None
        return session

    async def put(self, session: GroupSession) -> GroupSession:
        """Store the session for whatever is left of its lifetime; expired sessions are dropped."""
        if session.expires_at is None:
            return await self.save(session.id, session)
        remaining = math.ceil((session.expires_at - _utcnow()).total_seconds())
        if remaining <= 0:
            await self.delete(session.id)
            return session
        await self.store.set(self.key(session.id), session.model_dump(mode="json"), remaining)
        return session


class PlanRepository(Repository[EveningPlan]):
    prefix = "plan"
    model = EveningPlan

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store)
        self.ttl_seconds = settings.PLAN_TTL_SECONDS

    async def put(self, plan: EveningPlan) -> EveningPlan:
        return await self.save(plan.id, plan)


class ProfileRepository(Repository[UserVibeProfile]):
    prefix = "profile"
    model = UserVibeProfile

    async def put(self, profile: UserVibeProfile) -> UserVibeProfile:
        return await self.save(profile.id, profile)


__all__ = [
    "GroupSessionRepository",
    "KeyValueStore",
    "MemoryStore",
    "PlanRepository",
    "ProfileRepository",
    "RedisStore",
    "get_store",
]
