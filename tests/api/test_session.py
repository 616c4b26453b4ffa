"""Tests for session management."""

import time
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from config import AppConfig, RedisConfig

from api import session as session_module
from api.session import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionSigner,
    create_session,
    extract_session_id,
    get_session,
    get_session_signer,
    get_session_store,
    set_session_store,
    update_session,
)


@pytest.fixture(autouse=True)
def fresh_store():
    set_session_store(InMemorySessionStore())
    yield
    set_session_store(None)


class TestSessionSigner:
    def test_round_trip(self):
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table-1")
        assert token != "table-1"
        assert signer.unsign(token, max_age=3600) == "table-1"

    def test_tampered_token(self):
        signer = SessionSigner(secret_key="test-secret")
        assert signer.unsign(signer.sign("table-1") + "x", max_age=3600) is None

    def test_wrong_secret(self):
        token = SessionSigner(secret_key="one").sign("table-1")
        assert SessionSigner(secret_key="two").unsign(token, max_age=3600) is None

    def test_expired_token(self):
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table-1")
        later = time.time() + 7200
        with patch("time.time", return_value=later):
            assert signer.unsign(token, max_age=3600) is None

    def test_signer_is_shared(self):
        assert get_session_signer() is get_session_signer()


class TestInMemorySessionStore:
    @pytest_asyncio.fixture
    async def store(self):
        return InMemorySessionStore()

    @pytest.mark.asyncio
    async def test_set_get_delete(self, store):
        await store.set("s1", {"round": 3})
        assert await store.get("s1") == {"round": 3}
        assert await store.exists("s1")
        await store.delete("s1")
        await store.delete("s1")
        assert await store.get("s1") is None

    @pytest.mark.asyncio
    async def test_expiry(self, store):
        await store.set("s1", {"round": 3}, ttl=1)
        with patch.object(session_module, "datetime") as fake_datetime:
            from datetime import datetime, timedelta

            fake_datetime.now.return_value = datetime.now() + timedelta(seconds=5)
            assert await store.get("s1") is None


class TestRedisSessionStore:
    @pytest.mark.asyncio
    async def test_values_are_json(self):
        client = AsyncMock()
        client.get.return_value = '{"round": 2}'
        store = RedisSessionStore(client, prefix="t:")

        await store.set("s1", {"round": 2}, ttl=60)
        client.setex.assert_awaited_once_with("t:s1", 60, '{"round": 2}')
        assert await store.get("s1") == {"round": 2}
        client.get.assert_awaited_with("t:s1")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        client = AsyncMock()
        client.get.return_value = None
        assert await RedisSessionStore(client).get("s1") is None


class TestStoreSelection:
    @pytest.fixture(autouse=True)
    def redis_enabled(self):
        with patch.object(session_module, "config", AppConfig(redis=RedisConfig(enabled=True))):
            yield

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_when_redis_is_down(self):
        set_session_store(None)
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")
        with patch.object(session_module.redis, "from_url", return_value=client):
            store = await get_session_store()
        assert isinstance(store, InMemorySessionStore)

    @pytest.mark.asyncio
    async def test_uses_redis_when_it_answers(self):
        set_session_store(None)
        client = AsyncMock()
        with patch.object(session_module.redis, "from_url", return_value=client):
            store = await get_session_store()
        assert isinstance(store, RedisSessionStore)


class TestSessionHelpers:
    @pytest.mark.asyncio
    async def test_create_session_is_signed(self):
        token = await create_session({"round": 0})
        assert extract_session_id(token) is not None
        assert await get_session(token) == {"round": 0}

    @pytest.mark.asyncio
    async def test_update_session(self):
        token = await create_session()
        await update_session(token, {"round": 1})
        assert await get_session(token) == {"round": 1}

    def test_extract_invalid(self):
        assert extract_session_id("garbage") is None
