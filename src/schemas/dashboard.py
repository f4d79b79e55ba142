"""
Dashboard payload and cache envelope models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from schemas.content import Slide, TrendingItem, TrendSummary


class DashboardTab(str, Enum):
    """Trending filter. Selecting a tab never triggers generation."""
    FOR_YOU = "for_you"
    TRENDS = "trends"


class DashboardPayload(BaseModel):
    """
    AI-derived dashboard content.

    A field left as None is absent, which is different from an empty list:
    `trending_for_you=[]` means the section was generated (or defaulted) and
    came back empty.
    """
    report_slides: Optional[List[Slide]] = None
    live_trend: Optional[TrendSummary] = None
    trending_for_you: Optional[List[TrendingItem]] = None
    trending_trends: Optional[List[TrendingItem]] = None

    def supplied_fields(self) -> dict:
        """Fields explicitly set on this payload, for shallow merges."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def merged_with(self, partial: "DashboardPayload") -> "DashboardPayload":
        """Shallow field-wise overwrite with the fields `partial` supplies."""
        return self.model_copy(update=partial.supplied_fields())

    def trending(self, tab: DashboardTab) -> List[TrendingItem]:
        items = self.trending_for_you if tab == DashboardTab.FOR_YOU else self.trending_trends
        return list(items or [])


class CacheEnvelope(BaseModel):
    """Stored unit of dashboard content plus its write time (epoch ms)."""
    owner_key: str
    written_at: int
    payload: DashboardPayload

    def age_ms(self, now: int) -> int:
        return now - self.written_at
