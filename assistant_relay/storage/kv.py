"""
Key-Value Persistence

Durable string-to-string mappings behind a small async interface. The
session store only depends on `get_all`, `get` and `set`; the medium is picked
by configuration.
"""

from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles
import redis.asyncio as redis
import structlog

from assistant_relay.config import Settings

logger = structlog.get_logger()


class KeyValueStore(ABC):
    """Durable string-to-string mapping."""

    @abstractmethod
    async def get_all(self) -> dict[str, str]:
        """Load the full mapping."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get one value, or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite one value."""

    async def close(self) -> None:
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_all(self) -> dict[str, str]:
        return dict(self._data)

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """
    Whole mapping kept in one pretty-printed JSON file.

    Every `set` rewrites the file through a temp file and an atomic replace, so
    a crash mid-write leaves the previous version intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        async with aiofiles.open(self.path, encoding="utf-8") as f:
            content = await f.read()

        loaded = json.loads(content) if content.strip() else {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        self._data = {str(k): str(v) for k, v in loaded.items()}
        logger.info("Loaded key-value file", path=str(self.path), entries=len(self._data))
        return self._data

    async def get_all(self) -> dict[str, str]:
        async with self._lock:
            return dict(await self._load())

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return (await self._load()).get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = dict(await self._load())
            data[key] = value

            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(f"{self.path.name}.tmp")
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(data, indent=2))
            os.replace(tmp_path, self.path)

            self._data = data


class RedisKeyValueStore(KeyValueStore):
    """Mapping stored as a single Redis hash."""

    def __init__(self, client: redis.Redis, hash_name: str = "assistant_relay:sessions"):
        self._redis = client
        self.hash_name = hash_name

    @classmethod
    def from_url(cls, url: str) -> RedisKeyValueStore:
        return cls(redis.from_url(url, decode_responses=True))

    async def get_all(self) -> dict[str, str]:
        return dict(await self._redis.hgetall(self.hash_name))

    async def get(self, key: str) -> str | None:
        return await self._redis.hget(self.hash_name, key)

    async def set(self, key: str, value: str) -> None:
        await self._redis.hset(self.hash_name, key, value)

    async def close(self) -> None:
        await self._redis.aclose()


def build_key_value_store(settings: Settings) -> KeyValueStore:
    """Pick the persistence backend from settings."""
    if settings.session_store_backend == "memory":
        return InMemoryKeyValueStore()
    if settings.session_store_backend == "redis":
        return RedisKeyValueStore.from_url(settings.redis_url)
    return JsonFileKeyValueStore(settings.session_store_path)
