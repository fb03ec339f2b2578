"""
Session Store

Maps conversation keys to assistant session (OpenAI thread) ids.

The full mapping is loaded from the key-value store at startup and served
from memory. Writes go through to the store; a failed write is logged and the
in-memory mapping keeps the new session for the rest of the process.

`ensure` holds a per-key lock, so two concurrent events for the same
conversation cannot both create a session. Different keys never wait on each
other, and a key's lock is dropped once no caller holds or awaits it.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from assistant_relay.clients.assistant import AssistantClient
from assistant_relay.storage.kv import KeyValueStore

logger = structlog.get_logger()


class SessionStore:
    """Conversation key -> session id, with creation on miss or invalidation."""

    def __init__(self, assistant: AssistantClient, store: KeyValueStore):
        self._assistant = assistant
        self._store = store
        self._sessions: dict[str, str] = {}
        # key -> (lock, callers holding or waiting on it); dropped when idle
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def load(self) -> int:
        """Load the persisted mapping into memory. Returns the number of entries."""
        self._sessions = await self._store.get_all()
        logger.info("Session mapping loaded", entries=len(self._sessions))
        return len(self._sessions)

    def resolve(self, key: str) -> str | None:
        return self._sessions.get(key)

    async def ensure(self, key: str) -> str:
        """
        Return a live session id for `key`.

        Creates one when none is stored, and replaces a stored session that no
        longer exists upstream. The replaced session's history is not migrated.
        """
        async with self._key_lock(key):
            session_id = self._sessions.get(key)

            if session_id is None:
                return await self._create(key, reason="missing")

            if await self._assistant.get_session(session_id) is None:
                logger.info(
                    "Stored session no longer exists, replacing",
                    conversation_key=key,
                    stale_session_id=session_id,
                )
                return await self._create(key, reason="invalidated")

            return session_id

    @asynccontextmanager
    async def _key_lock(self, key: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def _create(self, key: str, *, reason: str) -> str:
        session_id = await self._assistant.create_session()
        self._sessions[key] = session_id
        logger.info("Created session", conversation_key=key, session_id=session_id, reason=reason)

        try:
            await self._store.set(key, session_id)
        except Exception as e:
            logger.error(
                "Failed to persist session mapping",
                conversation_key=key,
                session_id=session_id,
                error=str(e),
            )

        return session_id
