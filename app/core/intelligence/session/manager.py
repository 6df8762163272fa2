"""Redis-based session management for the assistant."""

import asyncio
import logging
import time
import weakref
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from app.config import settings
from app.infra.redis import get_redis, APP_PREFIX
from .models import SessionData

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# Session key prefix (extends existing APP_PREFIX)
SESSION_PREFIX = f"{APP_PREFIX}assistant:session:"


class SessionManager:
    """
    Redis-based session manager for conversation state.

    Key pattern: tripnbook:v1:assistant:session:{session_id}

    Sessions expire after settings.session_ttl_seconds without activity.
    When Redis is unavailable an in-process fallback with the same TTL is
    used. Both backends store serialized JSON, so every read returns a
    fresh SessionData.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        """Initialize session manager."""
        self._ttl = ttl_seconds or settings.session_ttl_seconds
        self._in_memory_fallback: dict[str, tuple[str, float]] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _key(self, session_id: str) -> str:
        """Generate Redis key."""
        return f"{SESSION_PREFIX}{session_id}"

    # === Per-session serialization ===

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Lock serializing turns of one session.

        Callers must keep a reference for as long as they hold the lock.
        """
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    # === In-memory fallback ===

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [sid for sid, (_, expires) in self._in_memory_fallback.items() if expires <= now]
        for sid in expired:
            del self._in_memory_fallback[sid]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired in-memory sessions")

    def _memory_put(self, session: SessionData) -> None:
        self._evict_expired()
        self._in_memory_fallback[session.session_id] = (
            session.to_json(),
            time.monotonic() + self._ttl,
        )

    def _memory_get(self, session_id: str) -> Optional[SessionData]:
        entry = self._in_memory_fallback.get(session_id)
        if entry is None:
            return None
        payload, expires = entry
        if expires <= time.monotonic():
            del self._in_memory_fallback[session_id]
            return None
        return SessionData.from_json(payload)

    # === Operations ===

    async def create(self, session_id: Optional[str] = None) -> SessionData:
        """
        Create a new session.

        Args:
            session_id: Session ID (auto-generated if not provided)

        Returns:
            Created SessionData
        """
        session = SessionData(session_id=session_id or str(uuid4()))

        redis = await get_redis()

        if redis:
            await redis.setex(self._key(session.session_id), self._ttl, session.to_json())
            logger.debug(f"Session created: {session.session_id}")
        else:
            # Fallback to in-memory
            self._memory_put(session)
            logger.warning(
                f"Redis unavailable, using in-memory fallback for session {session.session_id}"
            )

        return session

    async def get(self, session_id: str) -> Optional[SessionData]:
        """
        Get session by ID.

        Args:
            session_id: Session identifier

        Returns:
            SessionData or None if not found or expired
        """
        redis = await get_redis()

        if redis:
            data = await redis.get(self._key(session_id))
            if data:
                return SessionData.from_json(data)
            return None
        else:
            # Fallback to in-memory
            return self._memory_get(session_id)

    async def get_or_create(self, session_id: Optional[str] = None) -> SessionData:
        """
        Get existing session or create new one.

        A client-supplied id that is unknown (or expired) starts a new
        session under that same id.

        Args:
            session_id: Session ID (optional)

        Returns:
            Existing or new SessionData
        """
        if session_id:
            session = await self.get(session_id)
            if session:
                await self.touch(session_id)
                return session

        return await self.create(session_id)

    async def save(self, session: SessionData) -> bool:
        """
        Save session and refresh its TTL.

        Args:
            session: SessionData to save

        Returns:
            True if saved successfully
        """
        session.updated_at = _utcnow()

        redis = await get_redis()

        if redis:
            await redis.setex(self._key(session.session_id), self._ttl, session.to_json())
            logger.debug(f"Session saved: {session.session_id}")
        else:
            self._memory_put(session)
        return True

    async def delete(self, session_id: str) -> bool:
        """
        Delete a session.

        Args:
            session_id: Session identifier

        Returns:
            True if deleted
        """
        redis = await get_redis()

        if redis:
            deleted = await redis.delete(self._key(session_id))
            if deleted:
                logger.debug(f"Session deleted: {session_id}")
            return bool(deleted)
        else:
            return self._in_memory_fallback.pop(session_id, None) is not None

    async def touch(self, session_id: str) -> bool:
        """Refresh session TTL without changing its data."""
        redis = await get_redis()

        if redis:
            return bool(await redis.expire(self._key(session_id), self._ttl))

        entry = self._in_memory_fallback.get(session_id)
        if entry is None:
            return False
        self._in_memory_fallback[session_id] = (entry[0], time.monotonic() + self._ttl)
        return True


# Singleton
_manager: Optional[SessionManager] = None


async def get_session_manager() -> SessionManager:
    """Get singleton SessionManager."""
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager
