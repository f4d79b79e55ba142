"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.

Every third-party credential defaults to an empty string. A missing key is
reported by the feature that needs it (see core.errors.ConfigurationError),
so one unconfigured provider never prevents the service from starting.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Provider credentials:
        - SUPABASE_URL / SUPABASE_SERVICE_KEY / SUPABASE_JWT_SECRET
        - OPENAI_API_KEY: content engine
        - UNSPLASH_ACCESS_KEY: image search
        - ELEVENLABS_API_KEY / ELEVENLABS_AGENT_ID: speech synthesis
        - CLOUDINARY_CLOUD_NAME / CLOUDINARY_UPLOAD_PRESET: media uploads

    Dashboard cache:
        - DASHBOARD_CACHE_BACKEND: auto, file, memory or redis
        - DASHBOARD_CACHE_DIR: directory for the file backend
        - DASHBOARD_FRESHNESS_HOURS: freshness window (default 5)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    cors_origins: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        description="Allowed CORS origins"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Supabase Configuration
    # ==========================================================================
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service role key")
    supabase_jwt_secret: str = Field(default="", description="JWT secret for token verification")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    # ==========================================================================
    # Dashboard Cache
    # ==========================================================================
    dashboard_cache_backend: str = Field(
        default="auto",
        description="Key-value backend for dashboard envelopes: auto, file, memory, redis"
    )
    dashboard_cache_dir: Path = Field(
        default=Path(".cache/dashboard"),
        description="Directory used by the file backend"
    )
    dashboard_freshness_hours: float = Field(
        default=5.0,
        gt=0,
        description="Cached dashboard content is served without recompute for this long"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    redis_enabled: bool = Field(
        default=False,
        description="Allow the auto backend to pick Redis"
    )

    @field_validator("dashboard_cache_dir", mode="before")
    @classmethod
    def parse_cache_dir(cls, v):
        if isinstance(v, str):
            return Path(v)
        return v

    @property
    def freshness_window_ms(self) -> int:
        return int(self.dashboard_freshness_hours * 60 * 60 * 1000)

    # ==========================================================================
    # Content Engine (OpenAI)
    # ==========================================================================
    openai_api_key: str = Field(default="", description="OpenAI API key for the content engine")
    content_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for structured fashion content"
    )
    content_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for one content generation call (seconds)"
    )

    # ==========================================================================
    # Image Search (Unsplash)
    # ==========================================================================
    unsplash_access_key: str = Field(default="", description="Unsplash access key")
    unsplash_api_base_url: str = Field(
        default="https://api.unsplash.com",
        description="Unsplash API base URL"
    )

    # ==========================================================================
    # Speech Synthesis (ElevenLabs)
    # ==========================================================================
    elevenlabs_api_key: str = Field(default="", description="ElevenLabs API key")
    elevenlabs_agent_id: str = Field(
        default="",
        description="Agent id (agent_...) or plain voice id used as the primary voice"
    )
    elevenlabs_api_base_url: str = Field(
        default="https://api.elevenlabs.io/v1",
        description="ElevenLabs API base URL"
    )
    elevenlabs_model_id: str = Field(
        default="eleven_multilingual_v2",
        description="Text-to-speech model id"
    )

    # ==========================================================================
    # Media Storage (Cloudinary)
    # ==========================================================================
    cloudinary_cloud_name: str = Field(default="", description="Cloudinary cloud name")
    cloudinary_upload_preset: str = Field(default="", description="Unsigned upload preset")

    # ==========================================================================
    # Outbound Requests
    # ==========================================================================
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for image search, speech and upload requests (seconds)"
    )
    pipeline_max_workers: int = Field(
        default=8,
        ge=1,
        description="Upper bound on concurrently in-flight requests per pipeline stage"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded from environment variables and the project .env file.
    """
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    Bypasses the cache and never reads the .env file.
    """
    test_defaults = {
        "supabase_url": "https://test.supabase.co",
        "supabase_service_key": "test-key",
        "supabase_jwt_secret": "test-jwt-secret-with-enough-length-000",
        "environment": "testing",
        "debug": True,
        "dashboard_cache_backend": "memory",
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
