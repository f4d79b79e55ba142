"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Any, Dict

from fastapi import APIRouter

from config.settings import get_settings
from config.database import get_supabase_client_optional


router = APIRouter(tags=["Health"])

SERVICE_NAME = "style-lattice-api"


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status with basic info
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
    }


@router.get("/health/detailed")
async def detailed_health_check() -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Configuration loaded
    - Supabase connection
    - Which providers have credentials

    Returns:
        Detailed health status
    """
    settings = get_settings()

    supabase_status = "unknown"
    supabase_error = None
    try:
        client = get_supabase_client_optional()
        if client:
            client.table("wardrobe").select("id").limit(1).execute()
            supabase_status = "connected"
        else:
            supabase_status = "not_configured"
    except Exception as e:
        supabase_status = "error"
        supabase_error = str(e)

    providers = {
        "content_engine": bool(settings.openai_api_key),
        "image_search": bool(settings.unsplash_access_key),
        "speech": bool(settings.elevenlabs_api_key),
        "media_storage": bool(settings.cloudinary_cloud_name and settings.cloudinary_upload_preset),
    }

    healthy = supabase_status == "connected" and all(providers.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "service": SERVICE_NAME,
        "environment": settings.environment,
        "checks": {
            "config": "ok",
            "supabase": {
                "status": supabase_status,
                "error": supabase_error,
            },
            "providers": providers,
            "dashboard_cache": {
                "backend": settings.dashboard_cache_backend,
                "freshness_hours": settings.dashboard_freshness_hours,
            },
        },
    }


@router.get("/ready")
async def readiness_check() -> Dict[str, str]:
    """
    Kubernetes-style readiness probe.

    Returns 200 if the service is ready to accept traffic.
    """
    client = get_supabase_client_optional()
    if client is None:
        return {"status": "not_ready", "reason": "database_not_configured"}

    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes-style liveness probe.

    Returns 200 if the service is alive.
    """
    return {"status": "alive"}
