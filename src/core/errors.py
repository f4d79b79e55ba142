"""
Error types shared across integrations and services.

Collaborator failures are normally converted to default values at the
pipeline boundary. The types here are the ones that are allowed to reach a
caller: a feature with missing configuration, and provider errors that carry
an HTTP status for the integration that raised them.
"""

from typing import Optional


class ConfigurationError(RuntimeError):
    """A feature cannot run because its credentials or endpoint are missing."""

    def __init__(self, feature: str, message: Optional[str] = None) -> None:
        self.feature = feature
        super().__init__(message or f"{feature} is not configured")


class UpstreamError(RuntimeError):
    """Base class for failures reported by a third-party service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
