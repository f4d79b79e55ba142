"""Outfit suggestions built from the user's wardrobe."""

import threading
from typing import Any, Dict, Optional

from config.constants import DEFAULT_ASSISTANT_DEFAULTS
from core.logging import LoggerMixin
from integrations.content_engine import ContentEngine, ContentEngineError, get_content_engine
from schemas.content import OutfitSuggestion
from services.wardrobe import WardrobeService, get_wardrobe_service


class StylistService(LoggerMixin):
    def __init__(
        self,
        content_engine: Optional[ContentEngine] = None,
        wardrobe: Optional[WardrobeService] = None,
    ):
        self._engine = content_engine
        self._wardrobe = wardrobe

    @property
    def engine(self) -> ContentEngine:
        if self._engine is None:
            self._engine = get_content_engine()
        return self._engine

    @property
    def wardrobe(self) -> WardrobeService:
        if self._wardrobe is None:
            self._wardrobe = get_wardrobe_service()
        return self._wardrobe

    def suggest(
        self,
        profile: Dict[str, Any],
        event: str,
        previous: Optional[str] = None,
    ) -> OutfitSuggestion:
        """
        Suggest an outfit for `event`.

        Passing the previous recommendation asks for an alternative. Generation
        failures return the default suggestion with nothing selected.
        """
        closet_items = self.wardrobe.context_items(profile["id"])
        try:
            suggestion = self.engine.outfit_suggestion(event, closet_items, profile, previous)
        except ContentEngineError as e:
            self.logger.warning("Outfit suggestion failed, using default", error=str(e))
            return OutfitSuggestion(recommendation=DEFAULT_ASSISTANT_DEFAULTS.STYLIST_RECOMMENDATION)

        self.logger.info(
            "Outfit suggested",
            selected=len(suggestion.selected_item_ids),
            wardrobe_size=len(closet_items),
            needs_internet_search=suggestion.needs_internet_search,
        )
        return suggestion


_service: Optional[StylistService] = None
_service_lock = threading.Lock()


def get_stylist_service() -> StylistService:
    """Get or create the StylistService singleton (thread-safe)."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = StylistService()
    return _service
