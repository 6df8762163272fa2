"""
Traveler Authentication

Optional bearer-token authentication with Redis caching and a ContextVar
holding the current traveler. Anonymous callers are allowed everywhere;
only payment confirmation of an unsaved booking needs a traveler.
"""

import hashlib
import hmac
import json
import logging
from contextvars import ContextVar
from typing import Optional
from uuid import UUID

from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infra.redis import get_redis, APP_PREFIX
from app.models.database import User

logger = logging.getLogger(__name__)

# Bearer scheme; missing header is not an error
bearer_scheme = HTTPBearer(auto_error=False)

# ContextVar for the current traveler (accessible anywhere without passing)
_user_context: ContextVar[Optional["UserContext"]] = ContextVar(
    "user_context",
    default=None
)

# Redis cache settings
AUTH_CACHE_PREFIX = f"{APP_PREFIX}auth:"
AUTH_CACHE_TTL = 300  # 5 minutes


class UserContext:
    """Authenticated traveler."""

    def __init__(self, id: UUID, email: str, name: Optional[str] = None):
        self.id = id
        self.email = email
        self.name = name

    @property
    def user_id(self) -> str:
        return str(self.id)

    @classmethod
    def from_user(cls, user: User) -> "UserContext":
        """Create context from User model."""
        return cls(id=user.id, email=user.email, name=user.name)

    def to_cache_dict(self) -> dict:
        """Convert to dict for Redis caching."""
        return {"id": str(self.id), "email": self.email, "name": self.name}

    @classmethod
    def from_cache_dict(cls, data: dict) -> "UserContext":
        """Create context from cached dict."""
        return cls(id=UUID(data["id"]), email=data["email"], name=data.get("name"))

    def __repr__(self) -> str:
        return f"<UserContext(id={self.id})>"


def hash_token(token: str) -> str:
    """Hash a bearer token for lookup (SHA-256)."""
    return hashlib.sha256(token.encode()).hexdigest()


async def get_cached_user(token_hash: str) -> Optional[UserContext]:
    """
    Get traveler context from Redis cache.

    Returns None if not cached or Redis unavailable.
    """
    try:
        redis = await get_redis()
        if redis is None:
            logger.debug("Redis unavailable for auth cache lookup")
            return None

        data = await redis.get(f"{AUTH_CACHE_PREFIX}{token_hash}")
        if data is None:
            return None

        return UserContext.from_cache_dict(json.loads(data))

    except Exception as e:
        logger.warning(f"Failed to get auth cache: {e}")
        return None


async def set_cached_user(token_hash: str, context: UserContext) -> None:
    """
    Cache traveler context in Redis.

    Silently fails if Redis unavailable.
    """
    try:
        redis = await get_redis()
        if redis is None:
            return

        await redis.setex(
            f"{AUTH_CACHE_PREFIX}{token_hash}",
            AUTH_CACHE_TTL,
            json.dumps(context.to_cache_dict()),
        )
        logger.debug(f"Cached auth for user {context.id}")

    except Exception as e:
        logger.warning(f"Failed to set auth cache: {e}")


async def get_user_by_token(token: str, db: AsyncSession) -> Optional[User]:
    """
    Look up a traveler by bearer token hash.

    Uses constant-time comparison for security.
    """
    token_hash = hash_token(token)

    result = await db.execute(select(User).where(User.token_hash == token_hash))
    user = result.scalar_one_or_none()

    if user is None or user.token_hash is None:
        return None

    if not hmac.compare_digest(user.token_hash, token_hash):
        return None

    return user


def get_current_user_optional() -> Optional[UserContext]:
    """Get current traveler context or None."""
    return _user_context.get()


def set_user_context(context: Optional[UserContext]) -> None:
    """Set traveler context."""
    _user_context.set(context)


def clear_user_context() -> None:
    """
    Clear traveler context.

    Called at end of request to prevent context leaking.
    """
    _user_context.set(None)


async def authenticate_token(token: str) -> Optional[UserContext]:
    """
    Resolve a bearer token to a traveler.

    Flow:
    1. Try Redis cache
    2. If not cached, query database
    3. Cache result in Redis

    Returns None for unknown tokens or when the database is unavailable.
    """
    token_hash = hash_token(token)

    context = await get_cached_user(token_hash)
    if context is not None:
        logger.debug(f"Auth success (cached) | User: {context.id}")
        return context

    try:
        # Import here to avoid opening a database for anonymous requests
        from app.infra.database import get_db_context

        async with get_db_context() as db:
            user = await get_user_by_token(token, db)
    except Exception as e:
        logger.error(f"Database error during auth: {e}")
        return None

    if user is None:
        logger.warning("Auth failed: unknown bearer token")
        return None

    context = UserContext.from_user(user)
    await set_cached_user(token_hash, context)
    logger.debug(f"Auth success | User: {context.id}")
    return context


async def optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[UserContext]:
    """
    FastAPI dependency for optional traveler authentication.

    Returns None for anonymous callers and invalid tokens (never raises).

    Usage:
        @router.post("/assistant/chat")
        async def chat(user: Optional[UserContext] = Depends(optional_user)):
            user_id = user.user_id if user else None
    """
    clear_user_context()
    if credentials is None or not credentials.credentials:
        return None

    context = await authenticate_token(credentials.credentials)
    set_user_context(context)
    request.state.user = context
    return context
