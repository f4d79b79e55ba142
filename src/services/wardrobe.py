"""
Wardrobe repository on the Supabase `wardrobe` table.

Rows are passed through as dicts:
    {id, user_id, image_url, category, color, tags, season, created_at}

The dashboard and assistant only read `category` (and ids for the stylist),
so listing for context never fails the caller: errors become an empty list.
"""

import base64
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config.constants import DEFAULT_ASSISTANT_DEFAULTS
from config.database import SupabaseClientError, get_supabase_client
from core.logging import LoggerMixin
from integrations.content_engine import ContentEngine, ContentEngineError, get_content_engine
from integrations.media_storage import MediaStorageClient, get_media_storage_client
from schemas.content import GarmentAnalysis


WARDROBE_TABLE = "wardrobe"


class WardrobeService(LoggerMixin):
    """CRUD for wardrobe items plus upload-and-analyze."""

    def __init__(
        self,
        supabase=None,
        media_storage: Optional[MediaStorageClient] = None,
        content_engine: Optional[ContentEngine] = None,
    ):
        self._supabase = supabase
        self._media_storage = media_storage
        self._content_engine = content_engine

    @property
    def supabase(self):
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase

    @property
    def media_storage(self) -> MediaStorageClient:
        if self._media_storage is None:
            self._media_storage = get_media_storage_client()
        return self._media_storage

    @property
    def content_engine(self) -> ContentEngine:
        if self._content_engine is None:
            self._content_engine = get_content_engine()
        return self._content_engine

    def list_items(self, user_id: str) -> List[Dict[str, Any]]:
        result = (
            self.supabase
            .table(WARDROBE_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []

    def context_items(self, user_id: str) -> List[Dict[str, Any]]:
        """Wardrobe used as generation context; empty when it can't be read."""
        try:
            return self.list_items(user_id)
        except SupabaseClientError as e:
            self.logger.info("Wardrobe unavailable, continuing without it", error=str(e))
        except Exception as e:
            self.logger.warning("Wardrobe fetch failed, continuing without it", user_id=user_id, error=str(e))
        return []

    def analyze(self, image_bytes: bytes, mime_type: str) -> GarmentAnalysis:
        try:
            return self.content_engine.analyze_garment(
                base64.b64encode(image_bytes).decode("ascii"),
                mime_type,
            )
        except ContentEngineError as e:
            self.logger.warning("Garment analysis failed, using defaults", error=str(e))
            return GarmentAnalysis(
                category=DEFAULT_ASSISTANT_DEFAULTS.GARMENT_CATEGORY,
                tags=list(DEFAULT_ASSISTANT_DEFAULTS.GARMENT_TAGS),
            )

    def add_item(
        self,
        user_id: str,
        image_bytes: bytes,
        filename: str = "garment.jpg",
        mime_type: str = "image/jpeg",
        color: Optional[str] = None,
        season: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upload the photo, tag it and insert the wardrobe row."""
        image_url = self.media_storage.upload_image(image_bytes, filename, mime_type)
        analysis = self.analyze(image_bytes, mime_type)

        row: Dict[str, Any] = {
            "user_id": user_id,
            "image_url": image_url,
            "category": analysis.category,
            "tags": analysis.tags,
            "color": color,
            "season": season,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        result = self.supabase.table(WARDROBE_TABLE).insert(row).execute()
        self.logger.info("Wardrobe item added", user_id=user_id, category=analysis.category)
        return result.data[0] if result.data else row

    def delete_item(self, user_id: str, item_id: str) -> bool:
        """Delete one of the user's items. False when nothing matched."""
        result = (
            self.supabase
            .table(WARDROBE_TABLE)
            .delete()
            .eq("id", item_id)
            .eq("user_id", user_id)
            .execute()
        )
        deleted = bool(result.data)
        self.logger.info("Wardrobe item delete", user_id=user_id, item_id=item_id, deleted=deleted)
        return deleted


_service: Optional[WardrobeService] = None
_service_lock = threading.Lock()


def get_wardrobe_service() -> WardrobeService:
    """Get or create the WardrobeService singleton (thread-safe)."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = WardrobeService()
    return _service
