"""
Content acquisition pipeline for the dashboard.

Stage 1 fans out four independent generation calls on a thread pool:
report slides, the live trend summary, trending items for the user's
preferences and trending items for general trends. Total latency is the
slowest call, not the sum.

Stage 2 runs inside each section: every generated record's image query goes
through image search concurrently with its siblings.

A failure in one section (generation or enrichment) is isolated and replaced
by that section's default; the other sections are unaffected. The result is a
complete DashboardPayload plus the names of the sections that fell back.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from config.constants import (
    DEFAULT_IMAGE_SEARCH_CONFIG,
    DEFAULT_PIPELINE_CONFIG,
    ContentPipelineConfig,
    ImageSearchConfig,
)
from config.settings import Settings, get_settings
from core.errors import ConfigurationError
from core.logging import LoggerMixin
from integrations.content_engine import ContentEngine, get_content_engine
from integrations.image_search import ImageSearchClient, get_image_search_client
from schemas.content import Slide, TrendingItem, TrendPulse, TrendSummary
from schemas.dashboard import DashboardPayload


SECTION_REPORT_SLIDES = "report_slides"
SECTION_LIVE_TREND = "live_trend"
SECTION_TRENDING_FOR_YOU = "trending_for_you"
SECTION_TRENDING_TRENDS = "trending_trends"


@dataclass
class PipelineResult:
    payload: DashboardPayload
    failed_sections: List[str] = field(default_factory=list)
    elapsed_ms: int = 0


class ContentPipeline(LoggerMixin):
    """Generate and enrich every dashboard section concurrently."""

    def __init__(
        self,
        content_engine: Optional[ContentEngine] = None,
        image_search: Optional[ImageSearchClient] = None,
        settings: Optional[Settings] = None,
        config: ContentPipelineConfig = DEFAULT_PIPELINE_CONFIG,
        image_config: ImageSearchConfig = DEFAULT_IMAGE_SEARCH_CONFIG,
    ):
        settings = settings or get_settings()
        self._engine = content_engine
        self._image_search = image_search
        self._max_workers = settings.pipeline_max_workers
        self._config = config
        self._image_config = image_config

    @property
    def engine(self) -> ContentEngine:
        if self._engine is None:
            self._engine = get_content_engine()
        return self._engine

    @property
    def image_search(self) -> ImageSearchClient:
        if self._image_search is None:
            self._image_search = get_image_search_client()
        return self._image_search

    def ensure_configured(self) -> None:
        """
        Raise ConfigurationError before any generation call is made.

        A missing key would otherwise turn every section into its default and
        that placeholder content would be cached as if it were real.
        """
        if not self.engine.is_configured():
            raise ConfigurationError("content_engine", "OPENAI_API_KEY is not set")
        if not self.image_search.is_configured():
            raise ConfigurationError("image_search", "UNSPLASH_ACCESS_KEY is not set")

    # ---------------------------------------------------------------------
    # Defaults
    # ---------------------------------------------------------------------

    def default_slides(self) -> List[Slide]:
        return [
            Slide(
                title=self._config.DEFAULT_SLIDE_TITLE,
                description=self._config.DEFAULT_SLIDE_DESCRIPTION,
                image=self._image_config.DEFAULT_IMAGE_URL,
            )
        ]

    def default_live_trend(self) -> TrendSummary:
        return TrendSummary(
            trend_name=self._config.DEFAULT_TREND_NAME,
            volume=self._config.DEFAULT_TREND_VOLUME,
            description=self._config.DEFAULT_TREND_DESCRIPTION,
            images=[self._image_config.DEFAULT_IMAGE_URL],
        )

    # ---------------------------------------------------------------------
    # Enrichment
    # ---------------------------------------------------------------------

    def _image_for(self, query: str) -> str:
        try:
            return self.image_search.search(query)
        except Exception as e:
            self.logger.warning("Image enrichment failed, using default", query=query, error=str(e))
            return self._image_config.DEFAULT_IMAGE_URL

    def resolve_images(self, queries: Sequence[str]) -> List[str]:
        """Search all queries concurrently; results keep the input order."""
        if not queries:
            return []
        with ThreadPoolExecutor(max_workers=min(len(queries), self._max_workers)) as executor:
            return list(executor.map(self._image_for, queries))

    # ---------------------------------------------------------------------
    # Sections
    # ---------------------------------------------------------------------

    def report_slides(self, profile: Dict[str, Any], closet_items: Sequence[Dict[str, Any]]) -> List[Slide]:
        slides = self.engine.generate_style_report(profile, closet_items)
        images = self.resolve_images([s.image_query + self._image_config.SLIDE_SUFFIX for s in slides])
        return [s.model_copy(update={"image": image}) for s, image in zip(slides, images)]

    def live_trend(self) -> TrendSummary:
        trend = self.engine.live_trend_summary()
        return trend.model_copy(update={"images": self.resolve_images(trend.image_queries)})

    def trending(self, preferences: Sequence[str]) -> List[TrendingItem]:
        items = self.engine.trending_items(preferences, count=self._config.TRENDING_ITEM_COUNT)
        items = items[: self._config.TRENDING_ITEM_COUNT]
        images = self.resolve_images([i.visual_prompt + self._image_config.TRENDING_SUFFIX for i in items])
        return [i.model_copy(update={"image": image}) for i, image in zip(items, images)]

    def trend_pulse(self) -> List[TrendPulse]:
        """Detailed pulse feed; empty on any failure."""
        try:
            trends = self.engine.detailed_trend_pulse()
        except ConfigurationError:
            raise
        except Exception as e:
            self.logger.warning("Trend pulse generation failed", error=str(e))
            return []
        images = self.resolve_images([t.image_query + self._image_config.PULSE_SUFFIX for t in trends])
        return [t.model_copy(update={"image": image}) for t, image in zip(trends, images)]

    # ---------------------------------------------------------------------
    # Run
    # ---------------------------------------------------------------------

    def run(self, profile: Dict[str, Any], closet_items: Sequence[Dict[str, Any]] = ()) -> PipelineResult:
        """
        Produce a complete payload for one user.

        Args:
            profile: {"id", "name", "preferences"}; empty preferences use the
                default preference set.
            closet_items: Wardrobe rows used as context for the report.

        Raises:
            ConfigurationError: the content engine or image search has no key.
        """
        self.ensure_configured()

        preferences = list(profile.get("preferences") or self._config.DEFAULT_PREFERENCES)
        sections: Dict[str, Callable[[], Any]] = {
            SECTION_REPORT_SLIDES: lambda: self.report_slides(profile, closet_items),
            SECTION_LIVE_TREND: self.live_trend,
            SECTION_TRENDING_FOR_YOU: lambda: self.trending(preferences),
            SECTION_TRENDING_TRENDS: lambda: self.trending(list(self._config.TRENDS_PREFERENCES)),
        }
        defaults: Dict[str, Callable[[], Any]] = {
            SECTION_REPORT_SLIDES: self.default_slides,
            SECTION_LIVE_TREND: self.default_live_trend,
            SECTION_TRENDING_FOR_YOU: list,
            SECTION_TRENDING_TRENDS: list,
        }

        t_start = time.time()
        values: Dict[str, Any] = {}
        failed: List[str] = []

        with ThreadPoolExecutor(max_workers=len(sections)) as executor:
            futures = {executor.submit(fn): name for name, fn in sections.items()}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    values[name] = future.result()
                except Exception as e:
                    self.logger.warning(
                        "Dashboard section failed, using default",
                        section=name,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    values[name] = defaults[name]()
                    failed.append(name)

        elapsed_ms = int((time.time() - t_start) * 1000)
        self.logger.info(
            "Content pipeline completed",
            user_id=profile.get("id"),
            failed_sections=sorted(failed),
            elapsed_ms=elapsed_ms,
        )
        return PipelineResult(
            payload=DashboardPayload(**values),
            failed_sections=sorted(failed),
            elapsed_ms=elapsed_ms,
        )
