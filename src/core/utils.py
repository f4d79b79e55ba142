"""
Core Utility Functions.

Small helpers used across the application.
"""

import time
from typing import Any, Callable, Dict, List, Optional


# Clock signature used by the cache and services; injectable in tests.
Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ensure_http_url(url: Optional[str]) -> Optional[str]:
    """
    Give outbound links a scheme.

    Generated product links often come back as "store.com/item"; those get an
    https:// prefix. Empty values pass through as None.
    """
    if not url:
        return None
    url = url.strip()
    if not url:
        return None
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


def safe_get(data: Any, *keys: str, default: Any = None) -> Any:
    """
    Walk nested dicts without raising.

    Example:
        safe_get(agent, "conversation_config", "tts", "voice_id")
    """
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def summarize_categories(items: List[Dict[str, Any]]) -> str:
    """Comma-separated wardrobe categories, used as generation context."""
    return ", ".join(str(item.get("category")) for item in items if item.get("category"))
