"""Voice assistant endpoints."""

import base64
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.auth import SupabaseUser, require_auth
from services.voice_assistant import SpeechMode, VoiceAssistant, get_voice_assistant

router = APIRouter(prefix="/api/voice", tags=["Voice"])


class VoiceRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000, description="Transcribed user speech")


class SpeakRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000, description="Text to speak")


class VoiceIntentResponse(BaseModel):
    action: str
    path: Optional[str] = None
    message: str
    speech_mode: SpeechMode
    audio_base64: Optional[str] = None
    content_type: Optional[str] = None
    voice_id: Optional[str] = None
    fallback_reason: Optional[str] = None


@router.post(
    "/intent",
    response_model=VoiceIntentResponse,
    summary="Interpret a voice command and synthesize the reply",
)
def voice_intent(
    request: VoiceRequest,
    user: SupabaseUser = Depends(require_auth),
    assistant: VoiceAssistant = Depends(get_voice_assistant),
) -> VoiceIntentResponse:
    result = assistant.process(user.profile(), request.text)
    speech = result.speech
    return VoiceIntentResponse(
        action=result.intent.action,
        path=result.intent.path,
        message=result.intent.message,
        speech_mode=speech.mode,
        audio_base64=base64.b64encode(speech.audio).decode("ascii") if speech.audio else None,
        content_type=speech.content_type,
        voice_id=speech.voice_id,
        fallback_reason=speech.reason,
    )


@router.post(
    "/speak",
    summary="Synthesize speech with the premium voice",
    responses={503: {"description": "Premium voice unavailable; use standard synthesis"}},
)
def speak(
    request: SpeakRequest,
    user: SupabaseUser = Depends(require_auth),
    assistant: VoiceAssistant = Depends(get_voice_assistant),
) -> Response:
    outcome = assistant.speak(request.text)
    if outcome.mode != SpeechMode.PREMIUM:
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Premium voice unavailable",
                "fallback": SpeechMode.STANDARD.value,
                "reason": outcome.reason,
            },
        )
    return Response(
        content=outcome.audio,
        media_type=outcome.content_type or "audio/mpeg",
        headers={"X-Voice-Id": outcome.voice_id or ""},
    )
