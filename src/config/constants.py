"""
Application constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase.
"""

from dataclasses import dataclass
from typing import Tuple


# =============================================================================
# Dashboard Cache
# =============================================================================

DASHBOARD_CACHE_KEY_PREFIX = "dashboard_cache_"

# Matches the observed five hour window; Settings.dashboard_freshness_hours overrides it.
DEFAULT_FRESHNESS_WINDOW_MS = 5 * 60 * 60 * 1000


# =============================================================================
# Image Search
# =============================================================================

@dataclass(frozen=True)
class ImageSearchConfig:
    """Query back-off and fallback settings for the image search client."""

    DEFAULT_IMAGE_URL: str = (
        "https://images.unsplash.com/photo-1515886657613-9f3515b0c78f"
        "?auto=format&fit=crop&q=80&w=800"
    )
    FALLBACK_QUERY: str = "high fashion editorial"
    SHORT_QUERY_WORDS: int = 3
    MAX_SEARCHES: int = 3

    # Removed case-insensitively, longest first so "with" can't split "in the style of".
    FILLER_PHRASES: Tuple[str, ...] = (
        "in the style of",
        "high resolution",
        "an image of",
        "a photo of",
        "featuring",
        "showing",
        "with",
    )
    # Articles left dangling once a filler phrase is removed
    ORPHAN_ARTICLES: Tuple[str, ...] = ("a", "an", "the")

    # Appended to generated queries before searching
    SLIDE_SUFFIX: str = " style"
    TRENDING_SUFFIX: str = " high fashion"
    PULSE_SUFFIX: str = " editorial"


DEFAULT_IMAGE_SEARCH_CONFIG = ImageSearchConfig()


# =============================================================================
# Speech Synthesis
# =============================================================================

@dataclass(frozen=True)
class SpeechConfig:
    """Voice fallback list and synthesis parameters."""

    FALLBACK_VOICES: Tuple[str, ...] = (
        "pNInz6ov9K50u9CidVto",
        "EXAVITQu4vr4xnSDxMaL",
        "MF3mGyEYCl7XYW7LscS5",
        "21m00Tcm4lpxqpxG29up",
    )
    AGENT_ID_PREFIX: str = "agent_"
    STABILITY: float = 0.5
    SIMILARITY_BOOST: float = 0.8
    RESTRICTED_STATUS: str = "detected_unusual_activity"
    NOT_FOUND_STATUS: str = "voice_not_found"


DEFAULT_SPEECH_CONFIG = SpeechConfig()


# =============================================================================
# Content Pipeline
# =============================================================================

@dataclass(frozen=True)
class ContentPipelineConfig:
    """Generation parameters and per-section defaults."""

    TRENDING_ITEM_COUNT: int = 8
    REPORT_SLIDE_COUNT: int = 3

    DEFAULT_PREFERENCES: Tuple[str, ...] = ("Modern", "Casual", "High-end fashion")
    TRENDS_PREFERENCES: Tuple[str, ...] = (
        "Trending Fashion 2025",
        "Streetwear Trends",
        "Viral Aesthetic",
    )

    DEFAULT_SLIDE_TITLE: str = "Lattice Syncing"
    DEFAULT_SLIDE_DESCRIPTION: str = "Updating style DNA..."

    DEFAULT_TREND_NAME: str = "Global Fashion"
    DEFAULT_TREND_VOLUME: int = 90
    DEFAULT_TREND_DESCRIPTION: str = "Trends are evolving."


DEFAULT_PIPELINE_CONFIG = ContentPipelineConfig()


# =============================================================================
# Assistant Defaults
# =============================================================================

@dataclass(frozen=True)
class AssistantDefaults:
    """Replies used when the content engine is unavailable."""

    VOICE_ACTION: str = "chat"
    VOICE_MESSAGE: str = "System error."
    STYLIST_RECOMMENDATION: str = "Lattice error."
    GARMENT_CATEGORY: str = "other"
    GARMENT_TAGS: Tuple[str, ...] = ("fashion",)


DEFAULT_ASSISTANT_DEFAULTS = AssistantDefaults()


# Wardrobe categories accepted from garment analysis
WARDROBE_CATEGORIES = frozenset({"top", "bottom", "shoes", "accessory", "other"})
