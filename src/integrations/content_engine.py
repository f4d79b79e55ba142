"""
Structured fashion content from OpenAI chat completions.

Every operation asks for a JSON object (response_format json_object) and
validates it with the pydantic models in schemas.content. Any failure, from
transport errors to a reply that does not validate, is raised as
ContentEngineError; callers decide which default replaces it.

Image fields are left empty here. Enrichment with real image URLs happens in
the content pipeline.
"""

import json
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config.constants import DEFAULT_PIPELINE_CONFIG
from config.settings import Settings, get_settings
from core.errors import ConfigurationError
from core.logging import get_logger
from core.utils import summarize_categories
from schemas.content import (
    GarmentAnalysis,
    OutfitSuggestion,
    Slide,
    TrendingItem,
    TrendPulse,
    TrendSummary,
    VoiceIntent,
)


logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class ContentEngineError(RuntimeError):
    """A generation call failed or returned content that does not validate."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


# =============================================================================
# Prompts
# =============================================================================

_REPORT_PROMPT = """You write a short daily style report for a fashion app user.
Return a JSON object: {"slides": [{"title": str, "description": str, "image_query": str}, ...]}
with exactly %d slides. "image_query" is 2-3 broad keywords suitable for a stock
photo search (e.g. "minimalist aesthetic"), never a full sentence."""

_LIVE_TREND_PROMPT = """You track live fashion trends.
Identify one trend that is gaining momentum right now. Return a JSON object:
{"trend_name": str, "volume": int (0-100), "description": str, "image_queries": [str, ...]}
with 2-3 broad image_queries such as "vintage denim"."""

_TRENDING_PROMPT = """You are a high-fashion curator. Return a JSON object
{"items": [...]} with EXACTLY %d distinct items. Each item has:
"id" (str), "name" (str), "price" (str, with currency), "visual_prompt" (a 2-3 word
broad search term like "leather jacket product"), "store" (str), "link" (store URL),
"match_score" (int 0-100) and "match_reason" (one sentence)."""

_PULSE_PROMPT = """You report the current viral fashion trends on social media.
Return a JSON object {"trends": [...]} where each trend has "hashtag", "scope",
"velocity" (int 0-100), "insight", "image_query" (a broad 2-word fashion term)
and "context"."""

_VOICE_PROMPT = """You are the voice assistant of a fashion app. Decide whether the
user wants to go somewhere in the app or just talk. Return a JSON object
{"action": "navigate" | "chat", "path": str (only for navigate), "message": str}.
Valid paths: "/" (dashboard), "/closet", "/generator" (outfit stylist),
"/community", "/profile". Keep "message" to one or two spoken sentences."""

_OUTFIT_PROMPT = """You are a personal stylist. Build an outfit for the event from
the user's wardrobe where possible. Return a JSON object:
{"recommendation": str, "selected_item_ids": [str, ...], "needs_internet_search": bool,
"search_keywords": [str, ...]}. Only select ids that appear in the wardrobe list.
Set needs_internet_search when the wardrobe is missing a key piece and give
search_keywords for it."""

_GARMENT_PROMPT = """You are a garment analyzer. Return a JSON object
{"category": "top" | "bottom" | "shoes" | "accessory" | "other", "tags": [str, ...]}
with 10 short descriptive tags (color, material, style, season)."""


def _profile_line(profile: Optional[Dict[str, Any]]) -> str:
    profile = profile or {}
    preferences = profile.get("preferences") or DEFAULT_PIPELINE_CONFIG.DEFAULT_PREFERENCES
    return f"Name: {profile.get('name') or 'Member'}. Preferences: {', '.join(preferences)}."


def _wardrobe_lines(items: Sequence[Dict[str, Any]]) -> str:
    if not items:
        return "(empty wardrobe)"
    lines = []
    for item in items:
        tags = ", ".join((item.get("tags") or [])[:5])
        lines.append(f"- id={item.get('id')} category={item.get('category')} color={item.get('color') or '?'} tags={tags}")
    return "\n".join(lines)


# =============================================================================
# Content Engine
# =============================================================================

class ContentEngine:
    """OpenAI-backed generator for dashboard, stylist and assistant content."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        settings = settings or get_settings()
        self._client = client
        self._client_lock = threading.Lock()
        self._api_key = settings.openai_api_key
        self._model = settings.content_model
        self._timeout = settings.content_timeout_seconds

    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    @property
    def client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("content_engine", "OPENAI_API_KEY is not set")
            with self._client_lock:
                if self._client is None:
                    from openai import OpenAI
                    self._client = OpenAI(
                        api_key=self._api_key,
                        timeout=self._timeout,
                    )
        return self._client

    def _complete_json(
        self,
        operation: str,
        system: str,
        user_content: Any,
        temperature: float = 0.7,
    ) -> Dict[str, Any]:
        client = self.client
        t_start = time.time()
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user_content},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
            )
            raw = response.choices[0].message.content
        except Exception as e:
            logger.warning("Content generation failed", operation=operation, error=str(e))
            raise ContentEngineError(operation, str(e)) from e

        if not raw:
            raise ContentEngineError(operation, "empty response")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Content engine returned invalid JSON", operation=operation, error=str(e))
            raise ContentEngineError(operation, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ContentEngineError(operation, "expected a JSON object")

        logger.debug(
            "Content generated",
            operation=operation,
            latency_ms=int((time.time() - t_start) * 1000),
        )
        return data

    @staticmethod
    def _validate(operation: str, model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ContentEngineError(operation, f"invalid {model.__name__}: {e.error_count()} errors") from e

    def _validate_list(self, operation: str, model: Type[M], data: Dict[str, Any], key: str) -> List[M]:
        items = data.get(key)
        if not isinstance(items, list):
            raise ContentEngineError(operation, f"missing '{key}' list")
        return [self._validate(operation, model, item) for item in items]

    # ---------------------------------------------------------------------
    # Dashboard content
    # ---------------------------------------------------------------------

    def generate_style_report(
        self,
        profile: Optional[Dict[str, Any]],
        closet_items: Sequence[Dict[str, Any]],
        slide_count: int = DEFAULT_PIPELINE_CONFIG.REPORT_SLIDE_COUNT,
    ) -> List[Slide]:
        data = self._complete_json(
            "style_report",
            _REPORT_PROMPT % slide_count,
            f"{_profile_line(profile)} Wardrobe categories: {summarize_categories(closet_items) or 'none'}.",
        )
        return self._validate_list("style_report", Slide, data, "slides")

    def live_trend_summary(self) -> TrendSummary:
        data = self._complete_json("live_trend", _LIVE_TREND_PROMPT, "Identify a trend.")
        return self._validate("live_trend", TrendSummary, data)

    def trending_items(
        self,
        preferences: Sequence[str],
        count: int = DEFAULT_PIPELINE_CONFIG.TRENDING_ITEM_COUNT,
    ) -> List[TrendingItem]:
        """Curated items for `preferences`, truncated to `count`."""
        data = self._complete_json(
            "trending_items",
            _TRENDING_PROMPT % count,
            f"Provide exactly {count} high-fashion items for these preferences: {', '.join(preferences)}.",
        )
        return self._validate_list("trending_items", TrendingItem, data, "items")[:count]

    def detailed_trend_pulse(self) -> List[TrendPulse]:
        data = self._complete_json("trend_pulse", _PULSE_PROMPT, "Current viral fashion trends.")
        return self._validate_list("trend_pulse", TrendPulse, data, "trends")

    # ---------------------------------------------------------------------
    # Assistant and stylist
    # ---------------------------------------------------------------------

    def voice_intent(
        self,
        user_input: str,
        closet_items: Sequence[Dict[str, Any]] = (),
        profile: Optional[Dict[str, Any]] = None,
    ) -> VoiceIntent:
        data = self._complete_json(
            "voice_intent",
            _VOICE_PROMPT,
            f'User voice input: "{user_input}". Context: user has {len(closet_items)} wardrobe items. '
            f"{_profile_line(profile)}",
            temperature=0.3,
        )
        return self._validate("voice_intent", VoiceIntent, data)

    def outfit_suggestion(
        self,
        event: str,
        closet_items: Sequence[Dict[str, Any]],
        profile: Optional[Dict[str, Any]] = None,
        previous: Optional[str] = None,
    ) -> OutfitSuggestion:
        content = f"Event: {event}\n{_profile_line(profile)}\nWardrobe:\n{_wardrobe_lines(closet_items)}"
        if previous:
            content += f"\nPrevious recommendation for context (suggest something different): {previous}"
        data = self._complete_json("outfit_suggestion", _OUTFIT_PROMPT, content)
        suggestion = self._validate("outfit_suggestion", OutfitSuggestion, data)

        known_ids = {str(item.get("id")) for item in closet_items}
        selected = [i for i in suggestion.selected_item_ids if i in known_ids]
        if len(selected) != len(suggestion.selected_item_ids):
            logger.debug(
                "Dropped unknown wardrobe ids from suggestion",
                dropped=len(suggestion.selected_item_ids) - len(selected),
            )
            suggestion = suggestion.model_copy(update={"selected_item_ids": selected})
        return suggestion

    def analyze_garment(self, image_b64: str, mime_type: str = "image/jpeg") -> GarmentAnalysis:
        data = self._complete_json(
            "garment_analysis",
            _GARMENT_PROMPT,
            [
                {"type": "text", "text": "Determine the category and 10 tags."},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
            ],
            temperature=0.0,
        )
        return self._validate("garment_analysis", GarmentAnalysis, data)


# =============================================================================
# Singleton
# =============================================================================

_engine: Optional[ContentEngine] = None
_engine_lock = threading.Lock()


def get_content_engine() -> ContentEngine:
    """Get or create the ContentEngine singleton (thread-safe)."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = ContentEngine()
    return _engine
