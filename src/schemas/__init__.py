"""
Pydantic models for generated content and the dashboard cache.
"""

from schemas.content import (
    GarmentAnalysis,
    OutfitSuggestion,
    Slide,
    TrendingItem,
    TrendPulse,
    TrendSummary,
    VoiceIntent,
)
from schemas.dashboard import CacheEnvelope, DashboardPayload, DashboardTab

__all__ = [
    "GarmentAnalysis",
    "OutfitSuggestion",
    "Slide",
    "TrendingItem",
    "TrendPulse",
    "TrendSummary",
    "VoiceIntent",
    "CacheEnvelope",
    "DashboardPayload",
    "DashboardTab",
]
