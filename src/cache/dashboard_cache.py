"""
Freshness-gated envelope cache for per-user dashboard content.

One envelope per owner key, stored as a single JSON document:

    {"owner_key": "dashboard_cache_<user_id>", "written_at": <epoch ms>, "payload": {...}}

Reads never raise: a missing, corrupt or unreadable value is a miss. Writes
merge the supplied payload fields over the stored ones and stamp written_at;
their failures propagate as CacheWriteError.
"""

from typing import Optional

from pydantic import ValidationError

from cache.store import KeyValueStore, StoreError
from config.constants import DASHBOARD_CACHE_KEY_PREFIX, DEFAULT_FRESHNESS_WINDOW_MS
from core.logging import LoggerMixin
from schemas.dashboard import CacheEnvelope, DashboardPayload


class CacheWriteError(RuntimeError):
    """The envelope could not be persisted."""

    def __init__(self, owner_key: str, cause: Exception):
        super().__init__(f"Failed to write dashboard cache for {owner_key}: {cause}")
        self.owner_key = owner_key
        self.cause = cause


def owner_key_for(user_id: str) -> str:
    return f"{DASHBOARD_CACHE_KEY_PREFIX}{user_id}"


def is_fresh(envelope: CacheEnvelope, now: int, window_ms: int = DEFAULT_FRESHNESS_WINDOW_MS) -> bool:
    """
    True while the envelope is younger than the window.

    The edge is exclusive: an envelope exactly `window_ms` old is stale.
    """
    return now - envelope.written_at < window_ms


class DashboardCache(LoggerMixin):
    """Envelope reads and merge-writes over a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def read_envelope(self, owner_key: str) -> Optional[CacheEnvelope]:
        try:
            raw = self._store.get(owner_key)
        except StoreError as e:
            self.logger.warning("Dashboard cache read failed", owner_key=owner_key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            envelope = CacheEnvelope.model_validate_json(raw)
        except ValidationError as e:
            self.logger.warning(
                "Discarding unreadable dashboard cache entry",
                owner_key=owner_key,
                errors=e.error_count(),
            )
            return None

        if envelope.owner_key != owner_key:
            self.logger.warning(
                "Dashboard cache entry belongs to another owner",
                owner_key=owner_key,
                stored_owner=envelope.owner_key,
            )
            return None
        return envelope

    def write_envelope(self, owner_key: str, partial: DashboardPayload, now: int) -> CacheEnvelope:
        """
        Merge `partial` into the stored payload and stamp `written_at = now`.

        Only fields explicitly set on `partial` overwrite stored ones. With no
        prior envelope the result holds just the supplied fields.
        """
        existing = self.read_envelope(owner_key)
        payload = existing.payload.merged_with(partial) if existing else partial.model_copy()

        envelope = CacheEnvelope(owner_key=owner_key, written_at=now, payload=payload)
        try:
            self._store.set(owner_key, envelope.model_dump_json(exclude_none=True))
        except (StoreError, OSError) as e:
            raise CacheWriteError(owner_key, e) from e

        self.logger.debug(
            "Dashboard cache written",
            owner_key=owner_key,
            written_at=now,
            fields=sorted(partial.model_fields_set),
        )
        return envelope
