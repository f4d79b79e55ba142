"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Supabase JWT authentication
- Shared error types and small utilities
"""

from core.logging import configure_logging, get_logger
from core.auth import require_auth, SupabaseUser
from core.errors import ConfigurationError, UpstreamError
from core.utils import ensure_http_url, now_ms, safe_get

__all__ = [
    "configure_logging",
    "get_logger",
    "require_auth",
    "SupabaseUser",
    "ConfigurationError",
    "UpstreamError",
    "ensure_http_url",
    "now_ms",
    "safe_get",
]
