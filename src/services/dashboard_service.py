"""
Dashboard service: freshness policy over the envelope cache.

Load:
    fresh envelope          -> served from cache, no pipeline call
    missing or stale        -> pipeline run, result written, then served
Refresh:
    pipeline runs unconditionally and overwrites the envelope
Tab switch:
    pure selection over the payload already loaded

Concurrent pipeline runs for the same owner are ordered by a generation
token issued when each run starts. Only the run holding the most recent
token may write; an older run that finishes late returns its own content to
its caller but leaves the cache alone. The token check and the write share a
per-owner lock, so a slow write for one owner never holds up another.
"""

import threading
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from cache.dashboard_cache import CacheWriteError, DashboardCache, is_fresh, owner_key_for
from cache.store import create_store
from config.settings import get_settings
from core.logging import LoggerMixin
from core.utils import Clock, ensure_http_url, now_ms
from schemas.content import Slide, TrendingItem, TrendPulse, TrendSummary
from schemas.dashboard import CacheEnvelope, DashboardTab
from services.content_pipeline import ContentPipeline
from services.wardrobe import WardrobeService, get_wardrobe_service


SOURCE_CACHE = "cache"
SOURCE_PIPELINE = "pipeline"


class DashboardView(BaseModel):
    """What the dashboard shows for one tab, and where it came from."""
    source: str
    written_at: int
    fresh: bool
    tab: DashboardTab
    report_slides: List[Slide] = Field(default_factory=list)
    live_trend: Optional[TrendSummary] = None
    trending: List[TrendingItem] = Field(default_factory=list)
    failed_sections: List[str] = Field(default_factory=list)


class DashboardService(LoggerMixin):
    def __init__(
        self,
        cache: DashboardCache,
        pipeline: ContentPipeline,
        wardrobe: Optional[WardrobeService] = None,
        clock: Clock = now_ms,
        freshness_window_ms: Optional[int] = None,
    ):
        self._cache = cache
        self._pipeline = pipeline
        self._wardrobe = wardrobe
        self._clock = clock
        self._window_ms = freshness_window_ms or get_settings().freshness_window_ms
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        # Serializes the token check and cache write for one owner only
        self._write_locks: Dict[str, threading.Lock] = {}

    @property
    def freshness_window_ms(self) -> int:
        return self._window_ms

    @property
    def wardrobe(self) -> WardrobeService:
        if self._wardrobe is None:
            self._wardrobe = get_wardrobe_service()
        return self._wardrobe

    # ---------------------------------------------------------------------
    # Generation tokens
    # ---------------------------------------------------------------------

    def _issue_token(self, owner_key: str) -> int:
        with self._lock:
            token = self._generations.get(owner_key, 0) + 1
            self._generations[owner_key] = token
            return token

    def latest_token(self, owner_key: str) -> int:
        with self._lock:
            return self._generations.get(owner_key, 0)

    def _write_lock_for(self, owner_key: str) -> threading.Lock:
        with self._lock:
            return self._write_locks.setdefault(owner_key, threading.Lock())

    # ---------------------------------------------------------------------
    # Policy
    # ---------------------------------------------------------------------

    def load(self, profile: Dict[str, Any], tab: DashboardTab = DashboardTab.FOR_YOU) -> DashboardView:
        """Serve the cached envelope while fresh, otherwise recompute first."""
        owner_key = owner_key_for(profile["id"])
        envelope = self._cache.read_envelope(owner_key)
        now = self._clock()

        if envelope is not None and is_fresh(envelope, now, self._window_ms):
            self.logger.info(
                "Dashboard served from cache",
                owner_key=owner_key,
                age_ms=envelope.age_ms(now),
            )
            return self.select(envelope, tab, source=SOURCE_CACHE, now=now)

        self.logger.info(
            "Dashboard cache miss" if envelope is None else "Dashboard cache stale",
            owner_key=owner_key,
            age_ms=envelope.age_ms(now) if envelope else None,
        )
        return self.refresh(profile, tab)

    def refresh(self, profile: Dict[str, Any], tab: DashboardTab = DashboardTab.FOR_YOU) -> DashboardView:
        """Run the pipeline regardless of freshness and overwrite the envelope."""
        owner_key = owner_key_for(profile["id"])
        token = self._issue_token(owner_key)

        closet_items = self.wardrobe.context_items(profile["id"])
        result = self._pipeline.run(profile, closet_items)
        envelope = self._store_result(owner_key, token, result.payload)

        view = self.select(envelope, tab, source=SOURCE_PIPELINE, now=envelope.written_at)
        return view.model_copy(update={"failed_sections": result.failed_sections})

    def _store_result(self, owner_key: str, token: int, payload) -> CacheEnvelope:
        now = self._clock()
        with self._write_lock_for(owner_key):
            latest = self.latest_token(owner_key)
            if token != latest:
                self.logger.info(
                    "Discarding superseded pipeline result",
                    owner_key=owner_key,
                    token=token,
                    latest_token=latest,
                )
                return CacheEnvelope(owner_key=owner_key, written_at=now, payload=payload)
            try:
                return self._cache.write_envelope(owner_key, payload, now)
            except CacheWriteError as e:
                self.logger.error("Dashboard cache write failed, serving in-memory result", owner_key=owner_key, error=str(e))
                return CacheEnvelope(owner_key=owner_key, written_at=now, payload=payload)

    def select(
        self,
        envelope: CacheEnvelope,
        tab: DashboardTab,
        source: str = SOURCE_CACHE,
        now: Optional[int] = None,
    ) -> DashboardView:
        """Build the view for one tab. Never calls the pipeline."""
        now = self._clock() if now is None else now
        payload = envelope.payload
        trending = [
            item.model_copy(update={"link": ensure_http_url(item.link) or ""})
            for item in payload.trending(tab)
        ]
        return DashboardView(
            source=source,
            written_at=envelope.written_at,
            fresh=is_fresh(envelope, now, self._window_ms),
            tab=tab,
            report_slides=list(payload.report_slides or []),
            live_trend=payload.live_trend,
            trending=trending,
        )

    def pulse_feed(self) -> List[TrendPulse]:
        """Detailed trend pulse. Not cached."""
        return self._pipeline.trend_pulse()


_service: Optional[DashboardService] = None
_service_lock = threading.Lock()


def get_dashboard_service() -> DashboardService:
    """Get or create the DashboardService singleton (thread-safe)."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                settings = get_settings()
                _service = DashboardService(
                    cache=DashboardCache(create_store(settings)),
                    pipeline=ContentPipeline(settings=settings),
                    freshness_window_ms=settings.freshness_window_ms,
                )
    return _service
