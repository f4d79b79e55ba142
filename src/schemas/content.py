"""
Pydantic models for structured content produced by the content engine.

Every model that carries a natural-language image query also carries the
resolved image field; a record counts as complete only once that field is
set. Enrichment returns a copy rather than mutating the generated record.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from config.constants import WARDROBE_CATEGORIES


class Slide(BaseModel):
    """One slide of the daily style report."""
    title: str
    description: str
    image_query: str = Field(default="", description="2-3 broad keywords for image search")
    image: Optional[str] = None


class TrendSummary(BaseModel):
    """Live trend headline shown next to the report."""
    trend_name: str
    volume: int = 0
    description: str = ""
    image_queries: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class TrendingItem(BaseModel):
    """A curated product card."""
    id: str
    name: str
    price: str = ""
    visual_prompt: str = Field(default="", description="2-3 word search term for the product image")
    store: str = ""
    link: str = ""
    match_score: Optional[int] = None
    match_reason: Optional[str] = None
    image: Optional[str] = None

    @field_validator("id", "price", mode="before")
    @classmethod
    def coerce_numbers(cls, v):
        # Models sometimes emit numeric ids and prices
        if isinstance(v, (int, float)):
            return str(v)
        return v


class TrendPulse(BaseModel):
    """Entry of the detailed trend pulse feed."""
    hashtag: str
    scope: str = ""
    velocity: int = 0
    insight: str = ""
    image_query: str = ""
    context: str = ""
    image: Optional[str] = None


class VoiceIntent(BaseModel):
    """Interpretation of one voice command."""
    action: Literal["navigate", "chat"] = "chat"
    path: Optional[str] = None
    message: str


class OutfitSuggestion(BaseModel):
    recommendation: str
    selected_item_ids: List[str] = Field(default_factory=list)
    needs_internet_search: bool = False
    search_keywords: List[str] = Field(default_factory=list)

    @field_validator("selected_item_ids", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        if isinstance(v, list):
            return [str(x) for x in v]
        return v


class GarmentAnalysis(BaseModel):
    """Category and tags for an uploaded garment photo."""
    category: str
    tags: List[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        value = str(v or "").strip().lower()
        if value.endswith("s") and value[:-1] in WARDROBE_CATEGORIES:
            value = value[:-1]
        return value if value in WARDROBE_CATEGORIES else "other"
