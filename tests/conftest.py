"""
Pytest configuration and shared fixtures for the dashboard service tests.
"""
import os
import sys
from unittest.mock import MagicMock, patch

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))


HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000
DEFAULT_IMAGE = (
    "https://images.unsplash.com/photo-1515886657613-9f3515b0c78f"
    "?auto=format&fit=crop&q=80&w=800"
)


# ============================================================================
# Fixtures: Settings and Clock
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings with every provider configured, never read from .env."""
    from config.settings import get_settings_for_testing
    return get_settings_for_testing(
        openai_api_key="sk-test",
        unsplash_access_key="unsplash-test",
        elevenlabs_api_key="eleven-test",
        elevenlabs_agent_id="",
        cloudinary_cloud_name="demo-cloud",
        cloudinary_upload_preset="wardrobe_unsigned",
    )


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def sample_profile() -> dict:
    """Profile in the shape SupabaseUser.profile() returns."""
    return {
        "id": "user-001",
        "name": "Ada",
        "preferences": ["Minimalist", "Streetwear"],
    }


@pytest.fixture
def sample_wardrobe() -> list[dict]:
    return [
        {"id": "item-1", "user_id": "user-001", "image_url": "https://res.cloudinary.com/a.jpg",
         "category": "top", "color": "black", "tags": ["cotton"], "created_at": "2025-01-02T00:00:00Z"},
        {"id": "item-2", "user_id": "user-001", "image_url": "https://res.cloudinary.com/b.jpg",
         "category": "bottom", "color": "blue", "tags": ["denim"], "created_at": "2025-01-01T00:00:00Z"},
    ]


@pytest.fixture
def sample_payload():
    """A complete dashboard payload."""
    from schemas.content import Slide, TrendingItem, TrendSummary
    from schemas.dashboard import DashboardPayload

    return DashboardPayload(
        report_slides=[Slide(title="Quiet luxury", description="Neutral layers", image_query="beige knit", image="https://img/1")],
        live_trend=TrendSummary(trend_name="Gorpcore", volume=72, description="Outdoor wear in the city",
                                image_queries=["hiking jacket"], images=["https://img/2"]),
        trending_for_you=[TrendingItem(id="1", name="Wool coat", price="$320", visual_prompt="wool coat",
                                       store="COS", link="cos.com/coat", image="https://img/3")],
        trending_trends=[TrendingItem(id="2", name="Cargo pants", price="$90", visual_prompt="cargo pants",
                                      store="Arket", link="https://arket.com/cargo", image="https://img/4")],
    )


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def memory_store():
    from cache.store import InMemoryKeyValueStore
    return InMemoryKeyValueStore()


@pytest.fixture
def dashboard_cache(memory_store):
    from cache.dashboard_cache import DashboardCache
    return DashboardCache(memory_store)


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value.data = [{"id": "test"}]

    return mock_client


@pytest.fixture
def mock_supabase(mock_supabase_client):
    """Patch Supabase client creation."""
    with patch("supabase.create_client", return_value=mock_supabase_client):
        yield mock_supabase_client


def make_response(status_code: int = 200, json_data=None, content: bytes = b"", headers=None, text: str = ""):
    """requests.Response stand-in for session mocks."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.headers = headers or {}
    resp.content = content
    resp.text = text
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    elif json_data is None:
        resp.json.side_effect = ValueError("No JSON body")
    else:
        resp.json.return_value = json_data
    return resp


# ============================================================================
# Markers auto-use
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "supabase: marks tests that require Supabase")


# ============================================================================
# JWT Token Generation
# ============================================================================

def generate_test_jwt(secret: str, user_id: str = "user-001", exp_hours: int = 24, **metadata) -> str:
    """Generate a Supabase-style HS256 access token."""
    import jwt
    import time

    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "email": f"{user_id}@test.com",
        "exp": now + (exp_hours * 3600),
        "iat": now,
        "user_metadata": metadata,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


# ============================================================================
# Skip conditions
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Auto-skip Supabase tests if no credentials are configured."""
    skip_supabase = pytest.mark.skip(reason="Supabase tests require credentials")
    supabase_url = os.getenv("SUPABASE_URL")

    for item in items:
        if "supabase" in item.keywords and not supabase_url:
            item.add_marker(skip_supabase)


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def jwt_factory():
    return generate_test_jwt
