"""
ElevenLabs speech synthesis with voice fallback.

The primary voice comes from the configured conversational agent: the agent
record is fetched and its voice id read from whichever of the known config
paths is present. A successful lookup is kept for the life of the client. A
failed one counts as the first attempt, synthesis moves on to the fallback
voices, and the lookup is tried again on the next request.

Synthesis runs through FallbackResolver over the fixed fallback voices.
Abuse detection ("detected_unusual_activity") and rate limiting are raised as
ServiceRestrictedError immediately; the caller switches to standard, local
synthesis instead.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from config.constants import DEFAULT_SPEECH_CONFIG, SpeechConfig
from config.settings import Settings, get_settings
from core.errors import ConfigurationError, UpstreamError
from core.logging import get_logger
from core.utils import safe_get
from integrations.resolver import (
    FallbackResolver,
    ResourceNotFoundError,
    RetryAttempt,
    ServiceRestrictedError,
)


logger = get_logger(__name__)

# Checked in order; agents created with different API versions store the voice differently
_AGENT_VOICE_PATHS = (
    ("conversation_config", "tts", "voice_id"),
    ("conversation_config", "voice", "voice_id"),
    ("agent_config", "voice", "voice_id"),
    ("voice_id",),
)


class SpeechSynthesisError(UpstreamError):
    """ElevenLabs returned an error that is neither restriction nor not-found."""


@dataclass
class SynthesizedSpeech:
    audio: bytes
    content_type: str
    voice_id: str
    attempts: List[RetryAttempt] = field(default_factory=list)


def _error_detail(resp: requests.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {"message": resp.text}
    if not isinstance(body, dict):
        return {"message": str(body)}
    detail = body.get("detail", body)
    if isinstance(detail, dict):
        return detail
    return {"message": str(detail)}


class SpeechClient:
    """Text-to-speech client for the assistant voice."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        config: SpeechConfig = DEFAULT_SPEECH_CONFIG,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = session or requests.Session()
        self._config = config
        self._resolver = FallbackResolver(
            primary=self.resolve_primary_voice,
            fallbacks=config.FALLBACK_VOICES,
            name="speech",
        )

    @property
    def resolver(self) -> FallbackResolver:
        return self._resolver

    def is_configured(self) -> bool:
        return bool(self._settings.elevenlabs_api_key)

    def _headers(self) -> Dict[str, str]:
        return {"xi-api-key": self._settings.elevenlabs_api_key}

    # ---------------------------------------------------------------------
    # Voice resolution
    # ---------------------------------------------------------------------

    def resolve_primary_voice(self) -> str:
        """
        Voice id for attempt 0.

        Without an agent the first fallback voice is used; a plain voice id is
        used as is. An agent id is looked up through the API.

        Raises:
            ResourceNotFoundError: the agent is missing or has no voice.
            SpeechSynthesisError: the agent lookup could not be completed.
        """
        agent_id = self._settings.elevenlabs_agent_id.strip()

        if not agent_id:
            return self._config.FALLBACK_VOICES[0]
        if not agent_id.startswith(self._config.AGENT_ID_PREFIX):
            return agent_id

        try:
            resp = self._http.get(
                f"{self._settings.elevenlabs_api_base_url}/convai/agents/{agent_id}",
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("Agent lookup failed", agent_id=agent_id, error=str(e))
            raise SpeechSynthesisError(f"Agent lookup for {agent_id} failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning("Agent lookup rejected", agent_id=agent_id, status_code=resp.status_code)
            raise ResourceNotFoundError(
                f"Agent {agent_id} lookup returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            agent = resp.json()
        except ValueError as e:
            raise SpeechSynthesisError(f"Agent {agent_id} returned an unreadable record") from e

        for path in _AGENT_VOICE_PATHS:
            voice_id = safe_get(agent, *path)
            if voice_id:
                logger.info("Resolved agent voice", agent_id=agent_id, voice_id=voice_id)
                return str(voice_id)

        logger.warning("Agent has no voice configured", agent_id=agent_id)
        raise ResourceNotFoundError(f"Agent {agent_id} has no voice configured")

    # ---------------------------------------------------------------------
    # Synthesis
    # ---------------------------------------------------------------------

    def synthesize(self, text: str) -> SynthesizedSpeech:
        """
        Synthesize `text`, falling back through the fixed voices.

        Raises:
            ConfigurationError: no API key.
            ServiceRestrictedError: the account is restricted or rate limited.
            ResolverExhaustedError: every voice failed.
        """
        if not self.is_configured():
            raise ConfigurationError("speech", "ELEVENLABS_API_KEY is not set")

        result = self._resolver.run(lambda voice_id: self._synthesize_with(voice_id, text))
        audio, content_type = result.value
        return SynthesizedSpeech(
            audio=audio,
            content_type=content_type,
            voice_id=result.identifier,
            attempts=result.attempts,
        )

    def _synthesize_with(self, voice_id: str, text: str):
        resp = self._http.post(
            f"{self._settings.elevenlabs_api_base_url}/text-to-speech/{voice_id}",
            json={
                "text": text,
                "model_id": self._settings.elevenlabs_model_id,
                "voice_settings": {
                    "stability": self._config.STABILITY,
                    "similarity_boost": self._config.SIMILARITY_BOOST,
                },
            },
            headers={**self._headers(), "Accept": "audio/mpeg"},
            timeout=self._settings.request_timeout_seconds,
        )

        if resp.status_code < 400:
            return resp.content, resp.headers.get("Content-Type", "audio/mpeg")

        detail = _error_detail(resp)
        status = str(detail.get("status") or "")
        message = str(detail.get("message") or resp.text or f"HTTP {resp.status_code}")

        if status == self._config.RESTRICTED_STATUS or resp.status_code == 429:
            raise ServiceRestrictedError(
                f"ElevenLabs service restricted ({status or resp.status_code}): {message}",
                status_code=resp.status_code,
            )
        if status == self._config.NOT_FOUND_STATUS or "not found" in f"{status} {message}".lower():
            raise ResourceNotFoundError(f"Voice {voice_id} not found", status_code=resp.status_code)
        raise SpeechSynthesisError(
            f"ElevenLabs synthesis failed ({resp.status_code}): {message}",
            status_code=resp.status_code,
        )


# =============================================================================
# Singleton
# =============================================================================

_client: Optional[SpeechClient] = None
_client_lock = threading.Lock()


def get_speech_client() -> SpeechClient:
    """Get or create the SpeechClient singleton (thread-safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = SpeechClient()
    return _client
