"""
Voice assistant: interpret a spoken command, then answer out loud.

Speech has two modes:
- premium: audio synthesized by ElevenLabs
- standard: the client speaks the message with its own local synthesis.
  Used when ElevenLabs is restricted, every voice failed, or no key is set.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from config.constants import DEFAULT_ASSISTANT_DEFAULTS
from core.errors import ConfigurationError
from core.logging import LoggerMixin
from integrations.content_engine import ContentEngine, ContentEngineError, get_content_engine
from integrations.resolver import ResolverExhaustedError, ServiceRestrictedError
from integrations.speech import SpeechClient, get_speech_client
from schemas.content import VoiceIntent
from services.wardrobe import WardrobeService, get_wardrobe_service


class SpeechMode(str, Enum):
    PREMIUM = "premium"
    STANDARD = "standard"


@dataclass
class SpeechOutcome:
    mode: SpeechMode
    audio: Optional[bytes] = None
    content_type: Optional[str] = None
    voice_id: Optional[str] = None
    attempts: int = 0
    reason: Optional[str] = None


@dataclass
class VoiceResponse:
    intent: VoiceIntent
    speech: SpeechOutcome


class VoiceAssistant(LoggerMixin):
    def __init__(
        self,
        content_engine: Optional[ContentEngine] = None,
        speech: Optional[SpeechClient] = None,
        wardrobe: Optional[WardrobeService] = None,
    ):
        self._engine = content_engine
        self._speech = speech
        self._wardrobe = wardrobe

    @property
    def engine(self) -> ContentEngine:
        if self._engine is None:
            self._engine = get_content_engine()
        return self._engine

    @property
    def speech(self) -> SpeechClient:
        if self._speech is None:
            self._speech = get_speech_client()
        return self._speech

    @property
    def wardrobe(self) -> WardrobeService:
        if self._wardrobe is None:
            self._wardrobe = get_wardrobe_service()
        return self._wardrobe

    def interpret(self, profile: Dict[str, Any], text: str) -> VoiceIntent:
        closet_items = self.wardrobe.context_items(profile["id"])
        try:
            return self.engine.voice_intent(text, closet_items, profile)
        except ContentEngineError as e:
            self.logger.warning("Voice intent failed, replying with default", error=str(e))
            return VoiceIntent(
                action=DEFAULT_ASSISTANT_DEFAULTS.VOICE_ACTION,
                message=DEFAULT_ASSISTANT_DEFAULTS.VOICE_MESSAGE,
            )

    def speak(self, text: str) -> SpeechOutcome:
        """Premium audio when possible, otherwise a standard-mode outcome."""
        try:
            result = self.speech.synthesize(text)
        except ServiceRestrictedError as e:
            self.logger.warning("Premium voice restricted, switching to standard", error=str(e))
            return SpeechOutcome(mode=SpeechMode.STANDARD, attempts=1, reason="restricted")
        except ResolverExhaustedError as e:
            self.logger.warning("All voices failed, switching to standard", attempts=len(e.attempts))
            return SpeechOutcome(mode=SpeechMode.STANDARD, attempts=len(e.attempts), reason="exhausted")
        except ConfigurationError as e:
            self.logger.info("Premium voice not configured, using standard", error=str(e))
            return SpeechOutcome(mode=SpeechMode.STANDARD, reason="not_configured")

        return SpeechOutcome(
            mode=SpeechMode.PREMIUM,
            audio=result.audio,
            content_type=result.content_type,
            voice_id=result.voice_id,
            attempts=len(result.attempts),
        )

    def process(self, profile: Dict[str, Any], text: str) -> VoiceResponse:
        intent = self.interpret(profile, text)
        speech = self.speak(intent.message)
        self.logger.info(
            "Voice command processed",
            action=intent.action,
            path=intent.path,
            speech_mode=speech.mode.value,
        )
        return VoiceResponse(intent=intent, speech=speech)


_assistant: Optional[VoiceAssistant] = None
_assistant_lock = threading.Lock()


def get_voice_assistant() -> VoiceAssistant:
    """Get or create the VoiceAssistant singleton (thread-safe)."""
    global _assistant
    if _assistant is None:
        with _assistant_lock:
            if _assistant is None:
                _assistant = VoiceAssistant()
    return _assistant
