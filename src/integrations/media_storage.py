"""Cloudinary unsigned uploads for wardrobe photos."""

import threading
from typing import Optional

import requests

from config.settings import Settings, get_settings
from core.errors import ConfigurationError, UpstreamError
from core.logging import get_logger


logger = get_logger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class MediaUploadError(UpstreamError):
    """Raised for Cloudinary upload failures."""


class MediaStorageClient:
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> None:
        self._settings = settings or get_settings()
        self._http = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self._settings.cloudinary_cloud_name and self._settings.cloudinary_upload_preset)

    def upload_image(self, data: bytes, filename: str = "upload.jpg", mime_type: str = "image/jpeg") -> str:
        """Upload image bytes and return the secure URL."""
        if not self.is_configured():
            raise ConfigurationError(
                "media_storage",
                "CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET must be set",
            )

        url = CLOUDINARY_UPLOAD_URL.format(cloud_name=self._settings.cloudinary_cloud_name)
        try:
            resp = self._http.post(
                url,
                data={"upload_preset": self._settings.cloudinary_upload_preset},
                files={"file": (filename, data, mime_type)},
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("Cloudinary unreachable", error=str(e))
            raise MediaUploadError(
                "Could not reach Cloudinary. Check your network connection or ad-blocker."
            ) from e

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400:
            message = (body.get("error") or {}).get("message") if isinstance(body, dict) else None
            message = message or f"Cloudinary upload failed ({resp.status_code})"
            logger.error("Cloudinary upload failed", status_code=resp.status_code, message=message)
            raise MediaUploadError(message, status_code=resp.status_code)

        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        if not secure_url:
            raise MediaUploadError("Cloudinary response did not include secure_url", status_code=resp.status_code)

        logger.info("Image uploaded", url=secure_url, bytes=len(data))
        return secure_url


_client: Optional[MediaStorageClient] = None
_client_lock = threading.Lock()


def get_media_storage_client() -> MediaStorageClient:
    """Get or create the MediaStorageClient singleton (thread-safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = MediaStorageClient()
    return _client
