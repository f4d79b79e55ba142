"""Outfit stylist endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.auth import SupabaseUser, require_auth
from schemas.content import OutfitSuggestion
from services.stylist import StylistService, get_stylist_service

router = APIRouter(prefix="/api/stylist", tags=["Stylist"])


class OutfitRequest(BaseModel):
    event: str = Field(..., min_length=1, max_length=500, description="Occasion to dress for")
    previous_recommendation: Optional[str] = Field(
        None,
        description="Last recommendation, to ask for a different outfit",
    )


@router.post("/outfit", response_model=OutfitSuggestion, summary="Suggest an outfit")
def suggest_outfit(
    request: OutfitRequest,
    user: SupabaseUser = Depends(require_auth),
    stylist: StylistService = Depends(get_stylist_service),
) -> OutfitSuggestion:
    return stylist.suggest(user.profile(), request.event, request.previous_recommendation)
