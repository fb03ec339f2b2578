"""Persistence backends for the conversation-key to session mapping."""

from assistant_relay.storage.kv import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    build_key_value_store,
)

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "build_key_value_store",
]
