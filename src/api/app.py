"""
FastAPI Application Factory.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:app --host 0.0.0.0 --port 8080 --workers 4

    # Or use the convenience function
    from api.app import create_app
    app = create_app()
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from core.errors import ConfigurationError
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Runs on startup:
    - Initialize logging
    - Report which providers are configured

    Clients and services are created lazily on first request.
    """
    settings = get_settings()

    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    logger.info(
        "Starting dashboard API",
        environment=settings.environment,
        port=settings.port,
        cache_backend=settings.dashboard_cache_backend,
        freshness_hours=settings.dashboard_freshness_hours,
    )
    missing = [
        name
        for name, value in (
            ("supabase", settings.supabase_configured),
            ("content_engine", settings.openai_api_key),
            ("image_search", settings.unsplash_access_key),
            ("speech", settings.elevenlabs_api_key),
            ("media_storage", settings.cloudinary_cloud_name),
        )
        if not value
    ]
    if missing:
        logger.warning("Providers not configured", providers=missing)

    yield

    logger.info("Shutting down dashboard API")


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.warning("Feature not configured", feature=exc.feature, path=request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "feature": exc.feature},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Style Lattice API",
        description="""
        Backend for the Style Lattice fashion app.

        ## Features

        - **Dashboard**: AI style report, live trend and curated items, cached per user
          for a freshness window and recomputed on demand
        - **Voice assistant**: command interpretation with premium or standard speech
        - **Wardrobe**: photo upload with automatic garment tagging
        - **Stylist**: outfit suggestions from the user's wardrobe

        ## Health Checks

        - `/health` - Basic health check
        - `/health/detailed` - Detailed health with dependency status
        - `/ready` - Kubernetes readiness probe
        - `/live` - Kubernetes liveness probe
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # =========================================================================
    # Middleware (order matters - first added = outermost)
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracing (adds X-Request-ID, logs timing)
    app.add_middleware(RequestTracingMiddleware)

    app.add_exception_handler(ConfigurationError, configuration_error_handler)

    # =========================================================================
    # Routes
    # =========================================================================

    from api.routes.health import router as health_router
    app.include_router(health_router, tags=["Health"])

    from api.routes.dashboard import router as dashboard_router
    app.include_router(dashboard_router)

    from api.routes.voice import router as voice_router
    app.include_router(voice_router)

    from api.routes.wardrobe import router as wardrobe_router
    app.include_router(wardrobe_router)

    from api.routes.stylist import router as stylist_router
    app.include_router(stylist_router)

    return app


# Create default app instance for uvicorn
# Usage: uvicorn api.app:app
app = create_app()


# Alternative: Factory function for gunicorn
# Usage: gunicorn -k uvicorn.workers.UvicornWorker api.app:create_app()
def get_app() -> FastAPI:
    """Get the application instance (for ASGI servers)."""
    return app
