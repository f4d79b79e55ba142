"""
Configuration module for the dashboard service.

Settings come from the environment through pydantic-settings; constants hold
the tuning values that do not vary per deployment.

Usage:
    from config import get_settings

    settings = get_settings()
    window_ms = settings.freshness_window_ms
"""

from config.settings import Settings, get_settings, get_settings_for_testing

__all__ = ["Settings", "get_settings", "get_settings_for_testing"]
