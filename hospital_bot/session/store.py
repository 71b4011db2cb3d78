from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import redis.asyncio as redis
from cachetools import TTLCache

from hospital_bot.config import Settings
from hospital_bot.log import hash_user_id
from hospital_bot.session.models import Session, default_session, utcnow

logger = logging.getLogger(__name__)

KEY_PREFIX = "session:"


class SessionStore:
    """
    Per-user conversation state with a sliding TTL.

    Backend failures never reach the caller: a failed read behaves like a
    missing session and a failed write/delete is only logged.
    """

    def __init__(self, ttl_minutes: int = 30, clock: Callable[[], datetime] = utcnow):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    async def get(self, user_id: str) -> Session:
        try:
            session = await self._load(user_id)
        except Exception as e:
            logger.error(f"Session read failed for {hash_user_id(user_id)}: {e}")
            session = None

        if session is None:
            return default_session(user_id)
        if self.clock() - session.last_activity > self.ttl:
            logger.info(f"Session expired for {hash_user_id(user_id)}, starting over")
            return default_session(user_id)
        return session

    async def set(self, user_id: str, session: Session) -> Session:
        session = session.model_copy(update={"user_id": user_id, "last_activity": self.clock()})
        try:
            await self._save(user_id, session)
        except Exception as e:
            logger.error(f"Session write failed for {hash_user_id(user_id)}: {e}")
        return session

    async def clear(self, user_id: str) -> None:
        try:
            await self._delete(user_id)
        except Exception as e:
            logger.error(f"Session clear failed for {hash_user_id(user_id)}: {e}")

    # backend hooks
    async def _load(self, user_id: str) -> Optional[Session]:
        raise NotImplementedError

    async def _save(self, user_id: str, session: Session) -> None:
        raise NotImplementedError

    async def _delete(self, user_id: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """In-process store; sessions are kept as JSON so callers never share instances."""

    def __init__(self, ttl_minutes: int = 30, clock: Callable[[], datetime] = utcnow, maxsize: int = 10_000):
        super().__init__(ttl_minutes, clock)
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=self.ttl_seconds)

    async def _load(self, user_id: str) -> Optional[Session]:
        raw = self._cache.get(user_id)
        if raw is None:
            return None
        return Session.model_validate_json(raw)

    async def _save(self, user_id: str, session: Session) -> None:
        self._cache[user_id] = session.model_dump_json()

    async def _delete(self, user_id: str) -> None:
        self._cache.pop(user_id, None)


class RedisSessionStore(SessionStore):
    def __init__(self, client: redis.Redis, ttl_minutes: int = 30, clock: Callable[[], datetime] = utcnow):
        super().__init__(ttl_minutes, clock)
        self.client = client

    @classmethod
    def from_url(cls, url: str, ttl_minutes: int = 30) -> "RedisSessionStore":
        return cls(redis.from_url(url, decode_responses=True), ttl_minutes)

    async def _load(self, user_id: str) -> Optional[Session]:
        raw = await self.client.get(KEY_PREFIX + user_id)
        if not raw:
            return None
        return Session.model_validate_json(raw)

    async def _save(self, user_id: str, session: Session) -> None:
        await self.client.set(KEY_PREFIX + user_id, session.model_dump_json(), ex=self.ttl_seconds)

    async def _delete(self, user_id: str) -> None:
        await self.client.delete(KEY_PREFIX + user_id)


def build_session_store(settings: Settings) -> SessionStore:
    if settings.redis_url:
        return RedisSessionStore.from_url(settings.redis_url, settings.session_ttl_minutes)
    return MemorySessionStore(settings.session_ttl_minutes)
