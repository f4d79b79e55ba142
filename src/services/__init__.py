"""
Services module for business logic.

Provides the dashboard freshness policy, the content pipeline, and the
wardrobe, stylist and voice assistant services.
"""

from services.content_pipeline import ContentPipeline, PipelineResult
from services.dashboard_service import DashboardService, DashboardView, get_dashboard_service
from services.stylist import StylistService, get_stylist_service
from services.voice_assistant import SpeechMode, VoiceAssistant, get_voice_assistant
from services.wardrobe import WardrobeService, get_wardrobe_service

__all__ = [
    "ContentPipeline",
    "PipelineResult",
    "DashboardService",
    "DashboardView",
    "get_dashboard_service",
    "StylistService",
    "get_stylist_service",
    "SpeechMode",
    "VoiceAssistant",
    "get_voice_assistant",
    "WardrobeService",
    "get_wardrobe_service",
]
