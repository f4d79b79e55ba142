"""
Unsplash image search with query back-off.

Generated image queries tend to be wordy ("a photo of a red jacket in the
style of streetwear"), so they are simplified before searching. A search with
no results is retried with the first three words of the query, then with a
generic fashion query; after that, or on any HTTP or network failure, the
default image is returned. A search never raises for provider problems.
"""

import re
import threading
from typing import Optional

import requests

from config.constants import DEFAULT_IMAGE_SEARCH_CONFIG, ImageSearchConfig
from config.settings import Settings, get_settings
from core.errors import ConfigurationError, UpstreamError
from core.logging import get_logger
from integrations.resolver import FallbackResolver, ResolverExhaustedError, ResourceNotFoundError


logger = get_logger(__name__)

_STATUS_MESSAGES = {
    401: "Unsplash API key invalid",
    403: "Unsplash access forbidden or key scope error",
    429: "Unsplash rate limit hit",
}

_FILLER_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in DEFAULT_IMAGE_SEARCH_CONFIG.FILLER_PHRASES) + r")\b",
    re.IGNORECASE,
)


class ImageSearchError(UpstreamError):
    """Unsplash answered with a non-success status."""


def simplify_query(query: str, config: ImageSearchConfig = DEFAULT_IMAGE_SEARCH_CONFIG) -> str:
    """
    Strip filler phrases and collapse whitespace.

    >>> simplify_query("a photo of a red jacket in the style of streetwear")
    'red jacket streetwear'
    """
    if config is DEFAULT_IMAGE_SEARCH_CONFIG:
        pattern = _FILLER_PATTERN
    else:
        pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(p) for p in config.FILLER_PHRASES) + r")\b",
            re.IGNORECASE,
        )
    stripped = pattern.sub(" ", query or "")
    words = [w for w in stripped.split() if w.lower() not in config.ORPHAN_ARTICLES]
    return " ".join(words)


class ImageSearchClient:
    """Resolve a natural-language query to one portrait image URL."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        config: ImageSearchConfig = DEFAULT_IMAGE_SEARCH_CONFIG,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = session or requests.Session()
        self._config = config

    @property
    def default_image(self) -> str:
        return self._config.DEFAULT_IMAGE_URL

    def is_configured(self) -> bool:
        return bool(self._settings.unsplash_access_key)

    def search(self, query: str) -> str:
        """
        Return an image URL for `query`, or the default image.

        Raises:
            ConfigurationError: no Unsplash access key is configured.
        """
        if not self.is_configured():
            raise ConfigurationError("image_search", "UNSPLASH_ACCESS_KEY is not set")

        clean = simplify_query(query, self._config)
        shorter = " ".join(clean.split()[: self._config.SHORT_QUERY_WORDS])

        # The shortened query is only worth a search when it differs
        fallbacks = (shorter, self._config.FALLBACK_QUERY) if shorter != clean else ()
        resolver = FallbackResolver(
            primary=lambda: clean,
            fallbacks=fallbacks,
            name="image_search",
            retry_on=(ResourceNotFoundError,),
            memoize=False,
        )

        try:
            result = resolver.run(self._search_once)
        except ResolverExhaustedError:
            logger.info("No image found, using default", query=clean)
            return self.default_image
        except ImageSearchError:
            return self.default_image
        except requests.RequestException as e:
            logger.warning("Unsplash request failed", query=clean, error=str(e))
            return self.default_image
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("Unsplash returned an unexpected payload", query=clean, error=str(e))
            return self.default_image

        return result.value

    def _search_once(self, query: str) -> str:
        resp = self._http.get(
            f"{self._settings.unsplash_api_base_url}/search/photos",
            params={
                "query": simplify_query(query, self._config),
                "per_page": 1,
                "orientation": "portrait",
            },
            headers={
                "Authorization": f"Client-ID {self._settings.unsplash_access_key}",
                "Accept-Version": "v1",
            },
            timeout=self._settings.request_timeout_seconds,
        )

        remaining = resp.headers.get("X-Ratelimit-Remaining")
        if remaining is not None:
            logger.debug("Unsplash rate limit remaining", remaining=remaining)

        if resp.status_code >= 400:
            message = _STATUS_MESSAGES.get(resp.status_code, f"Unsplash HTTP error {resp.status_code}")
            logger.error(message, query=query, status_code=resp.status_code)
            raise ImageSearchError(message, status_code=resp.status_code)

        results = resp.json().get("results") or []
        if not results:
            logger.info("No Unsplash results", query=query)
            raise ResourceNotFoundError(f"No results for {query!r}")

        image_url = results[0]["urls"]["regular"]
        logger.debug("Unsplash image found", query=query, image_url=image_url)
        return image_url


# =============================================================================
# Singleton
# =============================================================================

_client: Optional[ImageSearchClient] = None
_client_lock = threading.Lock()


def get_image_search_client() -> ImageSearchClient:
    """Get or create the ImageSearchClient singleton (thread-safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = ImageSearchClient()
    return _client
