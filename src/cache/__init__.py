"""
Local dashboard cache: key-value backends and the envelope cache.
"""

from cache.dashboard_cache import CacheWriteError, DashboardCache, is_fresh, owner_key_for
from cache.store import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    StoreError,
    create_store,
)

__all__ = [
    "CacheWriteError",
    "DashboardCache",
    "is_fresh",
    "owner_key_for",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "StoreError",
    "create_store",
]
