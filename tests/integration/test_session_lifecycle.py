"""
Integration tests: SessionService over the real store implementations.

Each scenario runs against both the memory store and the Redis store
(fakeredis executing the Lua scripts).
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture(params=["memory", "redis"])
async def service(request, fake_redis):
    from websession.sessions.memory_store import MemorySessionStore
    from websession.sessions.redis_store import RedisSessionStore
    from websession.sessions.service import SessionService

    if request.param == "memory":
        store = MemorySessionStore()
    else:
        store = RedisSessionStore(redis_client=fake_redis, key_prefix="it:sessions:")

    async with store:
        yield SessionService(store, timeout_seconds=5.0)


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_create_anonymous_then_load(self, service, cookie_policy, timeout_policy):
        from websession.models.values import Int32

        created = await service.create_anonymous_session(
            cookie_policy, timeout_policy, "theme", "dark", "visits", Int32(1)
        )
        loaded = await service.load_session(created.id)

        assert loaded.id == created.id
        assert loaded.anonymous is True
        assert loaded.cookie == cookie_policy
        assert loaded.timeout_policy == timeout_policy
        assert loaded.get_string("theme") == ("dark", True)
        assert loaded.get_int64("visits") == (1, True)
        assert loaded.created_at == created.created_at
        assert loaded.last_accessed_at >= created.last_accessed_at
        assert not loaded.is_expired()

    @pytest.mark.asyncio
    async def test_create_user_session(self, service, cookie_policy, timeout_policy):
        created = await service.create_user_session("u_99", cookie_policy, timeout_policy)
        loaded = await service.load_session(created.id)

        assert loaded.user_id == "u_99"
        assert loaded.anonymous is False

    @pytest.mark.asyncio
    async def test_load_missing_session(self, service):
        from websession.core.exceptions import SessionNotFoundError

        with pytest.raises(SessionNotFoundError):
            await service.load_session("nonexistent-id")

    @pytest.mark.asyncio
    async def test_add_then_remove_attribute(self, service, cookie_policy, timeout_policy):
        created = await service.create_anonymous_session(cookie_policy, timeout_policy)

        added = await service.add_attributes(created.id, "k", "v")
        assert added.get_string("k") == ("v", True)

        removed = await service.remove_attributes(created.id, "k")
        assert removed.get_attribute("k") == (None, False)

        loaded = await service.load_session(created.id)
        assert loaded.data == {}

    @pytest.mark.asyncio
    async def test_attribute_mutations_on_missing_session(self, service):
        from websession.core.exceptions import SessionNotFoundError

        with pytest.raises(SessionNotFoundError):
            await service.add_attributes("nonexistent-id", "k", "v")
        with pytest.raises(SessionNotFoundError):
            await service.remove_attributes("nonexistent-id", "k")

    @pytest.mark.asyncio
    async def test_invalidate_is_idempotent(self, service, cookie_policy, timeout_policy):
        created = await service.create_anonymous_session(cookie_policy, timeout_policy)

        await service.invalidate_session(created.id)
        await service.invalidate_session(created.id)
        await service.invalidate_session("nonexistent-id")

        loaded = await service.load_session(created.id)
        assert loaded.active is False
        assert loaded.is_expired()

    @pytest.mark.asyncio
    async def test_store_update_keeps_creation_time(self, service, cookie_policy, timeout_policy):
        created = await service.create_anonymous_session(cookie_policy, timeout_policy, "a", 1)
        created.attach_user("u_5")
        created.set_attribute("b", 2)

        updated = await service.store.update(created)

        assert updated.user_id == "u_5"
        assert updated.data == {"a": 1, "b": 2}
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_returned_sessions_are_copies(self, service, cookie_policy, timeout_policy):
        created = await service.create_anonymous_session(cookie_policy, timeout_policy, "a", 1)
        created.set_attribute("a", 2)
        created.active = False

        loaded = await service.load_session(created.id)

        assert loaded.data == {"a": 1}
        assert loaded.active is True

    @pytest.mark.asyncio
    async def test_concurrent_attribute_writes_are_not_lost(
        self, service, cookie_policy, timeout_policy
    ):
        created = await service.create_anonymous_session(cookie_policy, timeout_policy)

        await asyncio.gather(
            *(service.add_attributes(created.id, f"key{i}", i) for i in range(20))
        )

        loaded = await service.load_session(created.id)
        assert loaded.data == {f"key{i}": i for i in range(20)}

    @pytest.mark.asyncio
    async def test_idle_expiry_is_evaluated_against_store_time(
        self, service, cookie_policy
    ):
        from websession.models.domain import TimeoutPolicy

        policy = TimeoutPolicy(idle_timeout=timedelta(minutes=10), absolute_timeout=timedelta(days=1))
        created = await service.create_anonymous_session(cookie_policy, policy)

        later = datetime.now(timezone.utc) + timedelta(minutes=11)
        assert created.is_expired(later)
        assert not created.is_expired()
