"""
Tests for the dashboard freshness policy.

The pipeline is a MagicMock so every test can count how often content was
recomputed; the clock is a FakeClock advanced by hand.
"""

import threading
from unittest.mock import MagicMock

import pytest

from cache.dashboard_cache import CacheWriteError, DashboardCache, owner_key_for
from schemas.content import TrendingItem
from schemas.dashboard import DashboardPayload, DashboardTab
from services.content_pipeline import PipelineResult
from services.dashboard_service import DashboardService


HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000
WINDOW_MS = 5 * HOUR_MS


@pytest.fixture
def pipeline(sample_payload):
    pipeline = MagicMock()
    pipeline.run.return_value = PipelineResult(payload=sample_payload)
    return pipeline


@pytest.fixture
def wardrobe(sample_wardrobe):
    wardrobe = MagicMock()
    wardrobe.context_items.return_value = sample_wardrobe
    return wardrobe


@pytest.fixture
def service(dashboard_cache, pipeline, wardrobe, clock):
    return DashboardService(
        cache=dashboard_cache,
        pipeline=pipeline,
        wardrobe=wardrobe,
        clock=clock,
        freshness_window_ms=WINDOW_MS,
    )


class TestLoadPolicy:
    def test_first_load_runs_pipeline_and_writes(self, service, pipeline, dashboard_cache, clock, sample_profile):
        view = service.load(sample_profile)

        assert pipeline.run.call_count == 1
        assert view.source == "pipeline"
        assert view.written_at == clock.now
        assert view.fresh is True
        stored = dashboard_cache.read_envelope(owner_key_for(sample_profile["id"]))
        assert stored.written_at == clock.now

    def test_fresh_cache_skips_pipeline(self, service, pipeline, clock, sample_profile):
        service.load(sample_profile)
        t0 = clock.now

        clock.advance(4 * HOUR_MS + 59 * MINUTE_MS)
        view = service.load(sample_profile)

        assert pipeline.run.call_count == 1
        assert view.source == "cache"
        assert view.written_at == t0
        assert view.fresh is True

    def test_stale_cache_runs_pipeline_once(self, service, pipeline, clock, sample_profile):
        service.load(sample_profile)
        t0 = clock.now

        clock.advance(5 * HOUR_MS + 1 * MINUTE_MS)
        view = service.load(sample_profile)

        assert pipeline.run.call_count == 2
        assert view.source == "pipeline"
        assert view.written_at == t0 + 5 * HOUR_MS + MINUTE_MS
        assert view.written_at > t0

    def test_exact_window_edge_is_stale(self, service, pipeline, clock, sample_profile):
        service.load(sample_profile)
        clock.advance(WINDOW_MS)
        service.load(sample_profile)

        assert pipeline.run.call_count == 2

    def test_cache_written_by_earlier_instance_is_used(self, dashboard_cache, pipeline, wardrobe, clock, sample_profile, sample_payload):
        dashboard_cache.write_envelope(owner_key_for(sample_profile["id"]), sample_payload, clock.now)
        clock.advance(HOUR_MS)

        service = DashboardService(dashboard_cache, pipeline, wardrobe, clock=clock, freshness_window_ms=WINDOW_MS)
        view = service.load(sample_profile)

        assert view.source == "cache"
        pipeline.run.assert_not_called()

    def test_pipeline_receives_wardrobe_context(self, service, pipeline, sample_profile, sample_wardrobe):
        service.load(sample_profile)

        pipeline.run.assert_called_once_with(sample_profile, sample_wardrobe)

    def test_corrupt_cache_triggers_pipeline(self, service, pipeline, memory_store, sample_profile):
        memory_store.set(owner_key_for(sample_profile["id"]), "garbage")

        view = service.load(sample_profile)

        assert view.source == "pipeline"
        assert pipeline.run.call_count == 1


class TestRefresh:
    def test_refresh_runs_even_when_fresh(self, service, pipeline, clock, sample_profile):
        service.load(sample_profile)
        clock.advance(MINUTE_MS)

        view = service.refresh(sample_profile)

        assert pipeline.run.call_count == 2
        assert view.source == "pipeline"
        assert view.written_at == clock.now

    def test_refresh_overwrites_envelope(self, service, pipeline, dashboard_cache, clock, sample_profile):
        service.load(sample_profile)
        clock.advance(MINUTE_MS)
        new_items = [TrendingItem(id="n", name="New drop")]
        pipeline.run.return_value = PipelineResult(
            payload=DashboardPayload(
                report_slides=[], live_trend=None, trending_for_you=new_items, trending_trends=[],
            ),
        )

        service.refresh(sample_profile)

        stored = dashboard_cache.read_envelope(owner_key_for(sample_profile["id"]))
        assert stored.written_at == clock.now
        assert stored.payload.trending_for_you[0].name == "New drop"

    def test_failed_sections_reported(self, service, pipeline, sample_payload, sample_profile):
        pipeline.run.return_value = PipelineResult(payload=sample_payload, failed_sections=["live_trend"])

        view = service.refresh(sample_profile)

        assert view.failed_sections == ["live_trend"]

    def test_write_failure_still_serves_result(self, pipeline, wardrobe, clock, sample_profile):
        store = MagicMock()
        store.get.return_value = None
        cache = DashboardCache(store)
        cache_write = MagicMock(side_effect=CacheWriteError("k", OSError("disk full")))
        cache.write_envelope = cache_write

        service = DashboardService(cache, pipeline, wardrobe, clock=clock, freshness_window_ms=WINDOW_MS)
        view = service.load(sample_profile)

        assert view.source == "pipeline"
        assert view.report_slides[0].title == "Quiet luxury"
        cache_write.assert_called_once()


class TestTabSelection:
    def test_tab_switch_on_fresh_cache_never_calls_pipeline(self, service, pipeline, clock, sample_profile):
        service.load(sample_profile, DashboardTab.FOR_YOU)
        clock.advance(MINUTE_MS)

        for_you = service.load(sample_profile, DashboardTab.FOR_YOU)
        trends = service.load(sample_profile, DashboardTab.TRENDS)

        assert pipeline.run.call_count == 1
        assert for_you.trending[0].name == "Wool coat"
        assert trends.trending[0].name == "Cargo pants"
        assert trends.tab == DashboardTab.TRENDS

    def test_select_adds_link_scheme(self, service, dashboard_cache, sample_payload, clock):
        envelope = dashboard_cache.write_envelope("dashboard_cache_x", sample_payload, clock.now)

        view = service.select(envelope, DashboardTab.FOR_YOU)

        assert view.trending[0].link == "https://cos.com/coat"

    def test_select_reports_staleness(self, service, dashboard_cache, sample_payload, clock):
        envelope = dashboard_cache.write_envelope("dashboard_cache_x", sample_payload, clock.now)
        clock.advance(WINDOW_MS + 1)

        assert service.select(envelope, DashboardTab.FOR_YOU).fresh is False


class TestConcurrentRuns:
    """Only the most recently started run may write the envelope."""

    def test_superseded_run_does_not_overwrite(self, dashboard_cache, wardrobe, clock, sample_profile, sample_payload):
        slow_started = threading.Event()
        release_slow = threading.Event()
        old_payload = DashboardPayload(trending_for_you=[TrendingItem(id="old", name="Old")])
        new_payload = DashboardPayload(trending_for_you=[TrendingItem(id="new", name="New")])

        pipeline = MagicMock()
        calls = {"n": 0}

        def run(profile, closet):
            calls["n"] += 1
            if calls["n"] == 1:
                slow_started.set()
                release_slow.wait(timeout=5)
                return PipelineResult(payload=old_payload)
            return PipelineResult(payload=new_payload)

        pipeline.run.side_effect = run
        service = DashboardService(dashboard_cache, pipeline, wardrobe, clock=clock, freshness_window_ms=WINDOW_MS)

        results = {}
        slow = threading.Thread(target=lambda: results.setdefault("slow", service.refresh(sample_profile)))
        slow.start()
        assert slow_started.wait(timeout=5)

        results["fast"] = service.refresh(sample_profile)
        release_slow.set()
        slow.join(timeout=5)

        stored = dashboard_cache.read_envelope(owner_key_for(sample_profile["id"]))
        assert stored.payload.trending_for_you[0].id == "new"
        assert results["slow"].trending[0].id == "old"
        assert service.latest_token(owner_key_for(sample_profile["id"])) == 2

    def test_tokens_are_per_owner(self, service, sample_profile):
        service.refresh(sample_profile)
        service.refresh({**sample_profile, "id": "other"})

        assert service.latest_token(owner_key_for(sample_profile["id"])) == 1
        assert service.latest_token(owner_key_for("other")) == 1

    def test_slow_write_for_one_owner_does_not_block_another(self, pipeline, wardrobe, clock, sample_profile):
        from cache.store import InMemoryKeyValueStore

        slow_key = owner_key_for(sample_profile["id"])
        write_started = threading.Event()
        release_write = threading.Event()

        class SlowStore(InMemoryKeyValueStore):
            def set(self, key, value):
                if key == slow_key:
                    write_started.set()
                    release_write.wait(timeout=5)
                super().set(key, value)

        store = SlowStore()
        service = DashboardService(DashboardCache(store), pipeline, wardrobe, clock=clock, freshness_window_ms=WINDOW_MS)

        slow = threading.Thread(target=service.refresh, args=(sample_profile,))
        slow.start()
        try:
            assert write_started.wait(timeout=5)

            other = threading.Thread(target=service.refresh, args=({**sample_profile, "id": "other"},))
            other.start()
            other.join(timeout=2)

            assert not other.is_alive()
            assert store.get(owner_key_for("other")) is not None
            assert store.get(slow_key) is None
        finally:
            release_write.set()
            slow.join(timeout=5)

        assert store.get(slow_key) is not None


class TestPulseFeed:
    def test_pulse_delegates_to_pipeline(self, service, pipeline):
        pipeline.trend_pulse.return_value = []
        assert service.pulse_feed() == []
        pipeline.trend_pulse.assert_called_once()
