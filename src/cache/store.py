"""
Key-value store backends for the dashboard cache.

The dashboard cache only needs get/set of string values. Three backends:
1. InMemory: tests and development
2. File: durable local store, one JSON document per key (default)
3. Redis: when REDIS_ENABLED is set and the server answers a ping

Reads never raise for a missing key. Backend I/O errors propagate as
StoreError so the envelope cache can decide how to treat them.
"""

import os
import re
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

from config.settings import Settings, get_settings
from core.logging import get_logger


logger = get_logger(__name__)


class StoreError(RuntimeError):
    """A backend failed to read or write a value."""


class KeyValueStore(Protocol):
    """Minimal string store used by DashboardCache."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


# =============================================================================
# In-memory backend
# =============================================================================

class InMemoryKeyValueStore:
    """Thread-safe dict store. Contents are lost on restart."""

    backend_name = "memory"

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def __len__(self) -> int:
        return len(self._values)


# =============================================================================
# File backend
# =============================================================================

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileKeyValueStore:
    """
    One file per key under a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader sees either the previous value or the
    new one, never a partial document.
    """

    backend_name = "file"

    def __init__(self, directory: Path):
        self._directory = Path(directory)
        self._lock = Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with self._lock:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(value)
                    os.replace(tmp_name, path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except OSError as e:
                raise StoreError(f"Could not write {path}: {e}") from e


# =============================================================================
# Redis backend
# =============================================================================

class RedisKeyValueStore:
    """
    Redis-backed store.

    Requires: pip install redis
    """

    backend_name = "redis"

    def __init__(self, redis_url: str, key_prefix: str = ""):
        import redis

        self._redis = redis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix
        # Fail fast so "auto" can fall back
        self._redis.ping()
        logger.info("Connected to Redis", host=redis_url.split("@")[-1])

    def get(self, key: str) -> Optional[str]:
        import redis

        try:
            return self._redis.get(self._prefix + key)
        except redis.RedisError as e:
            raise StoreError(f"Redis read failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        import redis

        try:
            self._redis.set(self._prefix + key, value)
        except redis.RedisError as e:
            raise StoreError(f"Redis write failed: {e}") from e


# =============================================================================
# Factory
# =============================================================================

def create_store(settings: Optional[Settings] = None, backend: Optional[str] = None) -> KeyValueStore:
    """
    Build the configured store.

    Args:
        settings: Settings to read (defaults to get_settings()).
        backend: "auto", "file", "memory" or "redis"; defaults to
            settings.dashboard_cache_backend.
    """
    settings = settings or get_settings()
    backend = (backend or settings.dashboard_cache_backend).lower()

    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "file":
        return FileKeyValueStore(settings.dashboard_cache_dir)
    if backend == "redis":
        return RedisKeyValueStore(settings.redis_url)
    if backend != "auto":
        raise ValueError(f"Unknown dashboard cache backend: {backend}")

    if settings.redis_enabled:
        try:
            store = RedisKeyValueStore(settings.redis_url)
            logger.info("Dashboard cache using Redis backend")
            return store
        except Exception as e:
            logger.warning("Redis unavailable, using file backend", error=str(e))

    logger.info("Dashboard cache using file backend", directory=str(settings.dashboard_cache_dir))
    return FileKeyValueStore(settings.dashboard_cache_dir)
