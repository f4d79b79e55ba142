"""
Tests for the wardrobe repository.

Supabase query builders are chained MagicMocks; each test reads back the
calls made on the chain.
"""

from unittest.mock import MagicMock

import pytest

from config.database import SupabaseClientError
from integrations.content_engine import ContentEngineError
from integrations.media_storage import MediaUploadError
from schemas.content import GarmentAnalysis
from services.wardrobe import WARDROBE_TABLE, WardrobeService


@pytest.fixture
def supabase(sample_wardrobe):
    client = MagicMock()
    table = client.table.return_value
    table.select.return_value.eq.return_value.order.return_value.execute.return_value.data = sample_wardrobe
    table.insert.return_value.execute.return_value.data = [{"id": "item-9", "category": "shoes"}]
    table.delete.return_value.eq.return_value.eq.return_value.execute.return_value.data = [{"id": "item-1"}]
    return client


@pytest.fixture
def media_storage():
    storage = MagicMock()
    storage.upload_image.return_value = "https://res.cloudinary.com/demo/new.jpg"
    return storage


@pytest.fixture
def engine():
    engine = MagicMock()
    engine.analyze_garment.return_value = GarmentAnalysis(category="shoes", tags=["leather"])
    return engine


@pytest.fixture
def service(supabase, media_storage, engine):
    return WardrobeService(supabase=supabase, media_storage=media_storage, content_engine=engine)


class TestListing:
    def test_list_items_newest_first(self, service, supabase, sample_wardrobe):
        items = service.list_items("user-001")

        assert items == sample_wardrobe
        supabase.table.assert_called_with(WARDROBE_TABLE)
        table = supabase.table.return_value
        table.select.return_value.eq.assert_called_once_with("user_id", "user-001")
        table.select.return_value.eq.return_value.order.assert_called_once_with("created_at", desc=True)

    def test_list_items_empty(self, service, supabase):
        table = supabase.table.return_value
        table.select.return_value.eq.return_value.order.return_value.execute.return_value.data = None

        assert service.list_items("user-001") == []

    def test_context_items_swallow_query_errors(self, service, supabase):
        supabase.table.side_effect = RuntimeError("connection reset")

        assert service.context_items("user-001") == []

    def test_context_items_without_supabase(self, media_storage, engine, monkeypatch):
        def unavailable():
            raise SupabaseClientError("not configured")

        monkeypatch.setattr("services.wardrobe.get_supabase_client", unavailable)
        service = WardrobeService(media_storage=media_storage, content_engine=engine)

        assert service.context_items("user-001") == []


class TestAddItem:
    def test_upload_analyze_insert(self, service, supabase, media_storage, engine):
        item = service.add_item("user-001", b"jpeg-bytes", "boots.jpg", "image/jpeg", color="brown")

        assert item == {"id": "item-9", "category": "shoes"}
        media_storage.upload_image.assert_called_once_with(b"jpeg-bytes", "boots.jpg", "image/jpeg")
        engine.analyze_garment.assert_called_once_with("anBlZy1ieXRlcw==", "image/jpeg")

        row = supabase.table.return_value.insert.call_args.args[0]
        assert row["user_id"] == "user-001"
        assert row["image_url"] == "https://res.cloudinary.com/demo/new.jpg"
        assert row["category"] == "shoes"
        assert row["tags"] == ["leather"]
        assert row["color"] == "brown"
        assert row["season"] is None
        assert row["created_at"]

    def test_analysis_failure_uses_defaults(self, service, supabase, engine):
        engine.analyze_garment.side_effect = ContentEngineError("analyze_garment", "boom")

        service.add_item("user-001", b"x")

        row = supabase.table.return_value.insert.call_args.args[0]
        assert row["category"] == "other"
        assert row["tags"] == ["fashion"]

    def test_upload_failure_inserts_nothing(self, service, supabase, media_storage):
        media_storage.upload_image.side_effect = MediaUploadError("Upload preset not found", status_code=400)

        with pytest.raises(MediaUploadError):
            service.add_item("user-001", b"x")
        supabase.table.return_value.insert.assert_not_called()

    def test_insert_without_returned_rows(self, service, supabase):
        supabase.table.return_value.insert.return_value.execute.return_value.data = []

        item = service.add_item("user-001", b"x")

        assert item["image_url"] == "https://res.cloudinary.com/demo/new.jpg"


class TestDeleteItem:
    def test_delete_scoped_to_user(self, service, supabase):
        assert service.delete_item("user-001", "item-1") is True

        delete = supabase.table.return_value.delete.return_value
        delete.eq.assert_called_once_with("id", "item-1")
        delete.eq.return_value.eq.assert_called_once_with("user_id", "user-001")

    def test_delete_nothing_matched(self, service, supabase):
        delete = supabase.table.return_value.delete.return_value
        delete.eq.return_value.eq.return_value.execute.return_value.data = []

        assert service.delete_item("user-001", "missing") is False
