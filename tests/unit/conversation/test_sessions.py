"""
Unit tests for SessionStore.

Covers creation on miss, reuse, replacement of invalidated sessions and
write-through persistence.
"""

import asyncio

import pytest

from assistant_relay.conversation.sessions import SessionStore
from assistant_relay.kernel.errors import UpstreamError
from assistant_relay.storage.kv import InMemoryKeyValueStore
from tests.support.fakes import FakeAssistantClient

pytestmark = pytest.mark.unit


class FailingStore(InMemoryKeyValueStore):
    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def assistant() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def sessions(assistant, store) -> SessionStore:
    return SessionStore(assistant, store)


# =============================================================================
# ensure
# =============================================================================


class TestEnsure:
    @pytest.mark.asyncio
    async def test_creates_and_persists_on_miss(self, sessions, assistant, store):
        session_id = await sessions.ensure("U1-DM")

        assert session_id == "thread_1"
        assert sessions.resolve("U1-DM") == "thread_1"
        assert await store.get("U1-DM") == "thread_1"
        assert len(assistant.calls_to("create_session")) == 1

    @pytest.mark.asyncio
    async def test_reuses_live_session(self, sessions, assistant):
        first = await sessions.ensure("U1-DM")
        second = await sessions.ensure("U1-DM")

        assert first == second
        assert len(assistant.calls_to("create_session")) == 1
        assert assistant.calls_to("get_session") == [{"session_id": first}]

    @pytest.mark.asyncio
    async def test_distinct_keys_get_distinct_sessions(self, sessions):
        a = await sessions.ensure("U1-DM")
        b = await sessions.ensure("U1-C1")
        assert a != b

    @pytest.mark.asyncio
    async def test_invalidated_session_is_replaced(self, assistant, store):
        await store.set("U1-DM", "thread_gone")
        sessions = SessionStore(assistant, store)
        await sessions.load()

        session_id = await sessions.ensure("U1-DM")

        assert session_id == "thread_1"
        assert await store.get("U1-DM") == "thread_1"
        assert assistant.calls_to("get_session") == [{"session_id": "thread_gone"}]

    @pytest.mark.asyncio
    async def test_persist_failure_keeps_in_memory_mapping(self, assistant):
        sessions = SessionStore(assistant, FailingStore())

        session_id = await sessions.ensure("U1-DM")

        assert sessions.resolve("U1-DM") == session_id
        assert await sessions.ensure("U1-DM") == session_id
        assert len(assistant.calls_to("create_session")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_ensure_creates_once(self, sessions, assistant):
        results = await asyncio.gather(*(sessions.ensure("U1-C1") for _ in range(5)))

        assert len(set(results)) == 1
        assert len(assistant.calls_to("create_session")) == 1
        assert sessions._locks == {}

    @pytest.mark.asyncio
    async def test_creation_failure_propagates(self, sessions, assistant):
        assistant.fail_on.add("create_session")
        with pytest.raises(UpstreamError):
            await sessions.ensure("U1-DM")
        assert sessions.resolve("U1-DM") is None
        assert sessions._locks == {}


# =============================================================================
# load
# =============================================================================


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_reads_persisted_mapping(self, assistant):
        store = InMemoryKeyValueStore({"U1-DM": "thread_a", "U2-C1": "thread_b"})
        sessions = SessionStore(assistant, store)

        assert await sessions.load() == 2
        assert sessions.resolve("U2-C1") == "thread_b"

    @pytest.mark.asyncio
    async def test_loaded_live_session_is_reused(self, assistant):
        assistant.live_sessions.add("thread_a")
        sessions = SessionStore(assistant, InMemoryKeyValueStore({"U1-DM": "thread_a"}))
        await sessions.load()

        assert await sessions.ensure("U1-DM") == "thread_a"
        assert assistant.calls_to("create_session") == []


# =============================================================================
# per-key locks
# =============================================================================


class TestKeyLocks:
    @pytest.mark.asyncio
    async def test_locks_do_not_accumulate_across_keys(self, sessions):
        for n in range(20):
            await sessions.ensure(f"U{n}-DM")

        assert sessions._locks == {}

    @pytest.mark.asyncio
    async def test_lock_is_kept_while_a_caller_waits(self, store):
        release = asyncio.Event()

        class SlowAssistant(FakeAssistantClient):
            async def create_session(self) -> str:
                await release.wait()
                return await super().create_session()

        slow = SlowAssistant()
        sessions = SessionStore(slow, store)

        first = asyncio.create_task(sessions.ensure("U1-DM"))
        second = asyncio.create_task(sessions.ensure("U1-DM"))
        await asyncio.sleep(0)

        lock, users = sessions._locks["U1-DM"]
        assert lock.locked()
        assert users == 2

        release.set()
        assert await first == await second
        assert sessions._locks == {}
