from .kv_repository import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore

__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "SqlKeyValueStore"]
