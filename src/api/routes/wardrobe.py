"""Wardrobe endpoints: list, upload and delete garments."""

import base64
import binascii
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from config.database import SupabaseClientError
from core.auth import SupabaseUser, require_auth
from core.logging import get_logger
from integrations.media_storage import MediaUploadError
from services.wardrobe import WardrobeService, get_wardrobe_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/wardrobe", tags=["Wardrobe"])

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class WardrobeItem(BaseModel):
    id: str
    user_id: str
    image_url: str
    category: str
    color: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    season: Optional[str] = None
    created_at: Optional[str] = None


class WardrobeListResponse(BaseModel):
    items: List[WardrobeItem]
    count: int


class WardrobeUploadRequest(BaseModel):
    image_base64: str = Field(..., min_length=1, description="Base64 encoded garment photo")
    filename: str = Field("garment.jpg", description="Original file name")
    mime_type: str = Field("image/jpeg", pattern=r"^image/[a-z0-9.+-]+$")
    color: Optional[str] = None
    season: Optional[str] = None


def _to_item(row: Dict[str, Any]) -> WardrobeItem:
    return WardrobeItem(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        image_url=row.get("image_url") or "",
        category=row.get("category") or "other",
        color=row.get("color"),
        tags=row.get("tags") or [],
        season=row.get("season"),
        created_at=row.get("created_at"),
    )


@router.get("", response_model=WardrobeListResponse, summary="List wardrobe items")
def list_wardrobe(
    user: SupabaseUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeListResponse:
    try:
        rows = service.list_items(user.id)
    except SupabaseClientError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    items = [_to_item(row) for row in rows]
    return WardrobeListResponse(items=items, count=len(items))


@router.post("", response_model=WardrobeItem, status_code=201, summary="Upload and tag a garment")
def add_wardrobe_item(
    request: WardrobeUploadRequest,
    user: SupabaseUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> WardrobeItem:
    try:
        image_bytes = base64.b64decode(request.image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from exc
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image exceeds 10 MB")

    try:
        row = service.add_item(
            user.id,
            image_bytes,
            filename=request.filename,
            mime_type=request.mime_type,
            color=request.color,
            season=request.season,
        )
    except MediaUploadError as exc:
        logger.error("Wardrobe upload failed", error=str(exc))
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except SupabaseClientError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _to_item(row)


@router.delete("/{item_id}", summary="Delete a wardrobe item")
def delete_wardrobe_item(
    item_id: str,
    user: SupabaseUser = Depends(require_auth),
    service: WardrobeService = Depends(get_wardrobe_service),
) -> Dict[str, str]:
    try:
        deleted = service.delete_item(user.id, item_id)
    except SupabaseClientError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Wardrobe item not found")
    return {"status": "deleted", "id": item_id}
