"""Session management with Redis backend and in-memory fallback."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from redis.exceptions import RedisError

from config import config

logger = logging.getLogger(__name__)


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key or config.security.secret_key)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


class SessionStore(ABC):
    """Key/value store for table sessions, keyed by signed session token."""

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def set(self, session_id: str, data: dict[str, Any], ttl: int | None = None) -> None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None: ...

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        if session_id not in self._sessions:
            return None
        data, expiry = self._sessions[session_id]
        if expiry < datetime.now():
            await self.delete(session_id)
            return None
        return data

    async def set(self, session_id: str, data: dict[str, Any], ttl: int | None = None) -> None:
        expiry = datetime.now() + timedelta(seconds=ttl or config.session_ttl)
        self._sessions[session_id] = (data, expiry)

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class RedisSessionStore(SessionStore):
    """Redis-backed session store; values are JSON."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "blackjack:table:") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        data = await self._redis.get(self._key(session_id))
        if data is None:
            return None
        return json.loads(data)

    async def set(self, session_id: str, data: dict[str, Any], ttl: int | None = None) -> None:
        await self._redis.setex(
            self._key(session_id),
            ttl or config.session_ttl,
            json.dumps(data),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get or create the session store, preferring Redis when it answers."""
    global _session_store

    if _session_store is not None:
        return _session_store

    if config.redis.enabled:
        client = redis.from_url(config.redis.url)
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s (%s); using in-memory sessions", config.redis.url, exc)
        else:
            _session_store = RedisSessionStore(client)
            logger.info("Using Redis session store at %s", config.redis.url)
            return _session_store

    _session_store = InMemorySessionStore()
    return _session_store


def set_session_store(store: SessionStore | None) -> None:
    """Replace the process-wide store (None resets it)."""
    global _session_store
    _session_store = store


async def create_session(data: dict[str, Any] | None = None) -> str:
    store = await get_session_store()
    session_id = get_session_signer().sign(uuid4().hex)
    await store.set(session_id, data or {})
    return session_id


async def get_session(session_id: str) -> dict[str, Any] | None:
    store = await get_session_store()
    return await store.get(session_id)


async def update_session(session_id: str, data: dict[str, Any]) -> None:
    store = await get_session_store()
    await store.set(session_id, data)


def extract_session_id(token: str) -> str | None:
    """
    Extract the raw session ID from a signed token.

    Args:
        token: The signed session token

    Returns:
        The raw session ID if valid, None otherwise
    """
    return get_session_signer().unsign(token)
