"""Dashboard endpoints: cached report, manual refresh, trend pulse."""

from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.auth import SupabaseUser, require_auth
from core.logging import get_logger
from schemas.content import TrendPulse
from schemas.dashboard import DashboardTab
from services.dashboard_service import DashboardService, DashboardView, get_dashboard_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


class TrendPulseResponse(BaseModel):
    trends: List[TrendPulse]


@router.get(
    "",
    response_model=DashboardView,
    summary="Dashboard content, from cache while fresh",
)
def get_dashboard(
    tab: DashboardTab = Query(DashboardTab.FOR_YOU, description="Trending filter"),
    user: SupabaseUser = Depends(require_auth),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardView:
    return service.load(user.profile(), tab)


@router.post(
    "/refresh",
    response_model=DashboardView,
    summary="Recompute dashboard content now",
)
def refresh_dashboard(
    tab: DashboardTab = Query(DashboardTab.FOR_YOU, description="Trending filter"),
    user: SupabaseUser = Depends(require_auth),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardView:
    logger.info("Manual dashboard refresh", user_id=user.id)
    return service.refresh(user.profile(), tab)


@router.get(
    "/pulse",
    response_model=TrendPulseResponse,
    summary="Detailed viral trend feed",
)
def get_trend_pulse(
    user: SupabaseUser = Depends(require_auth),
    service: DashboardService = Depends(get_dashboard_service),
) -> TrendPulseResponse:
    return TrendPulseResponse(trends=service.pulse_feed())
