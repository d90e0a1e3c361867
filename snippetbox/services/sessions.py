"""Server-side sessions keyed by an opaque cookie token.

State lives in a ``SessionStore`` (process memory or Redis). The
``SessionManager`` holds a per-token lock for the whole request, so two
requests carrying the same cookie see each other's writes in order rather
than racing. Distinct tokens never wait on each other.
"""

import asyncio
import json
import logging
import secrets
import time
import weakref
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from http.cookies import SimpleCookie
from typing import Any, Protocol

import redis.asyncio as aioredis

from snippetbox.config import Settings

logger = logging.getLogger(__name__)

# Well-known session keys
AUTHENTICATED_USER_ID = "authenticatedUserID"
FLASH = "flash"
REDIRECT_PATH_AFTER_LOGIN = "redirectPathAfterLogin"
CSRF_TOKEN = "csrf_token"

TOKEN_BYTES = 32


def new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


class SessionStore(Protocol):
    async def load(self, token: str) -> dict[str, Any] | None: ...

    async def save(self, token: str, data: dict[str, Any], ttl_seconds: int) -> None: ...

    async def delete(self, token: str) -> None: ...

    def lock(self, token: str) -> AbstractAsyncContextManager[None]: ...

    async def close(self) -> None: ...


class MemorySessionStore:
    """Sessions held in this process; for development and single-worker runs."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._data: dict[str, tuple[dict[str, Any], float]] = {}
        # Locks disappear once no request holds a reference to them
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def load(self, token: str) -> dict[str, Any] | None:
        entry = self._data.get(token)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= self.clock():
            del self._data[token]
            return None
        return dict(data)

    async def save(self, token: str, data: dict[str, Any], ttl_seconds: int) -> None:
        now = self.clock()
        self._purge_expired(now)
        self._data[token] = (dict(data), now + ttl_seconds)

    async def delete(self, token: str) -> None:
        self._data.pop(token, None)

    def _purge_expired(self, now: float) -> None:
        """Drop sessions whose tokens were never presented again."""
        expired = [token for token, (_, expires_at) in self._data.items() if expires_at <= now]
        for token in expired:
            del self._data[token]
        if expired:
            logger.debug(f"Purged {len(expired)} expired session(s)")

    @asynccontextmanager
    async def lock(self, token: str) -> AsyncIterator[None]:
        lock = self._locks.get(token)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[token] = lock
        async with lock:
            yield

    async def close(self) -> None:
        self._data.clear()


class RedisSessionStore:
    """Sessions in Redis, shared by every worker process."""

    key_prefix = "session:"
    lock_prefix = "session-lock:"

    def __init__(
        self,
        redis_url: str,
        lock_timeout: float = 30.0,
        blocking_timeout: float = 10.0,
    ) -> None:
        self.redis_url = redis_url
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout
        self._redis: aioredis.Redis | None = None

    def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(self.redis_url)
        return self._redis

    async def load(self, token: str) -> dict[str, Any] | None:
        raw = await self._get_redis().get(self.key_prefix + token)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable session payload for token {token[:6]}...")
            return None
        return data if isinstance(data, dict) else None

    async def save(self, token: str, data: dict[str, Any], ttl_seconds: int) -> None:
        await self._get_redis().set(self.key_prefix + token, json.dumps(data), ex=ttl_seconds)

    async def delete(self, token: str) -> None:
        await self._get_redis().delete(self.key_prefix + token)

    def lock(self, token: str) -> AbstractAsyncContextManager[None]:
        return self._get_redis().lock(
            self.lock_prefix + token,
            timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout,
        )

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class RequestSession:
    """One request's view of its session state."""

    def __init__(self, token: str, data: dict[str, Any] | None = None, *, is_new: bool = False):
        self.token = token
        self.data: dict[str, Any] = data or {}
        self.is_new = is_new
        self.modified = False
        self.previous_token: str | None = None

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.modified = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def pop_string(self, key: str) -> str:
        """Read a single-use string value; empty string when absent."""
        if key not in self.data:
            return ""
        value = self.data.pop(key)
        self.modified = True
        return value if isinstance(value, str) else ""

    def exists(self, key: str) -> bool:
        return key in self.data

    def remove(self, key: str) -> None:
        if key in self.data:
            del self.data[key]
            self.modified = True

    def renew_token(self) -> None:
        """Move the state to a fresh token; the old one stops working on commit."""
        if self.previous_token is None and not self.is_new:
            self.previous_token = self.token
        self.token = new_token()
        self.modified = True


class SessionManager:
    """Loads, locks and persists sessions for the session middleware."""

    def __init__(
        self,
        store: SessionStore,
        lifetime_seconds: int,
        cookie_name: str = "session",
        cookie_secure: bool = True,
    ) -> None:
        self.store = store
        self.lifetime_seconds = lifetime_seconds
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure

    @classmethod
    def from_settings(cls, settings: Settings, store: SessionStore | None = None) -> "SessionManager":
        if store is None:
            if settings.session_backend == "redis":
                store = RedisSessionStore(settings.redis_url)
            else:
                store = MemorySessionStore()
        return cls(
            store,
            lifetime_seconds=settings.session_lifetime_seconds,
            cookie_name=settings.session_cookie_name,
            cookie_secure=settings.session_cookie_secure,
        )

    @asynccontextmanager
    async def activate(self, token: str | None) -> AsyncIterator[RequestSession]:
        """Yield the request's session while holding its token's lock."""
        if token:
            async with self.store.lock(token):
                data = await self.store.load(token)
                if data is not None:
                    yield RequestSession(token, data)
                    return
        # Unknown or expired tokens are replaced, never adopted
        yield RequestSession(new_token(), is_new=True)

    async def commit(self, session: RequestSession) -> bool:
        """Persist a modified session; returns whether a cookie must be sent."""
        if not session.modified:
            return False
        if session.previous_token is not None:
            await self.store.delete(session.previous_token)
            session.previous_token = None
        await self.store.save(session.token, session.data, self.lifetime_seconds)
        session.modified = False
        return True

    def cookie_header(self, session: RequestSession) -> str:
        """``Set-Cookie`` value carrying the session token."""
        cookie: SimpleCookie = SimpleCookie()
        cookie[self.cookie_name] = session.token
        morsel = cookie[self.cookie_name]
        morsel["path"] = "/"
        morsel["max-age"] = self.lifetime_seconds
        morsel["httponly"] = True
        morsel["samesite"] = "Lax"
        if self.cookie_secure:
            morsel["secure"] = True
        return morsel.OutputString()

    async def close(self) -> None:
        await self.store.close()
