"""Tests for core utilities and JWT claim extraction."""

import pytest

from core.auth import extract_user
from core.utils import ensure_http_url, safe_get, summarize_categories


class TestEnsureHttpUrl:
    @pytest.mark.parametrize("url,expected", [
        ("cos.com/coat", "https://cos.com/coat"),
        ("https://arket.com/cargo", "https://arket.com/cargo"),
        ("http://shop.example", "http://shop.example"),
        ("  zara.com ", "https://zara.com"),
        ("", None),
        (None, None),
    ])
    def test_links(self, url, expected):
        assert ensure_http_url(url) == expected


class TestSafeGet:
    def test_nested(self):
        agent = {"conversation_config": {"tts": {"voice_id": "v"}}}
        assert safe_get(agent, "conversation_config", "tts", "voice_id") == "v"

    def test_missing_branch(self):
        assert safe_get({"conversation_config": "x"}, "conversation_config", "tts", default="d") == "d"


def test_summarize_categories(sample_wardrobe):
    assert summarize_categories(sample_wardrobe + [{"id": "x"}]) == "top, bottom"


class TestExtractUser:
    def test_profile_from_metadata(self):
        user = extract_user({
            "sub": "u1",
            "email": "ada@test.com",
            "user_metadata": {"name": "Ada", "preferences": ["Boho", ""]},
        })

        assert user.profile() == {"id": "u1", "name": "Ada", "preferences": ["Boho"]}

    def test_name_falls_back_to_email(self):
        user = extract_user({"sub": "u1", "email": "ada@test.com"})

        assert user.profile()["name"] == "ada"
        assert user.preferences == []
