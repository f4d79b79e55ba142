"""
Supabase JWT authentication.

The browser signs in with Supabase Auth and sends the access token as a
Bearer header. Routes that act on a user's wardrobe or dashboard depend on
`require_auth`; the verified `sub` claim is the user id used for cache keys
and row filters.

Usage:
    @router.get("/api/dashboard")
    async def dashboard(user: SupabaseUser = Depends(require_auth)):
        ...
"""

from dataclasses import dataclass, field
from typing import List, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import get_settings


security = HTTPBearer(
    scheme_name="Supabase JWT",
    description="Access token issued by Supabase Auth.",
    auto_error=False,
)


@dataclass
class SupabaseUser:
    """
    Authenticated user from a verified Supabase JWT.

    `name` and `preferences` come from user_metadata and feed the content
    engine prompts; both are optional.
    """
    id: str
    email: Optional[str] = None
    role: str = "authenticated"
    name: Optional[str] = None
    preferences: List[str] = field(default_factory=list)
    user_metadata: Optional[dict] = None

    def profile(self) -> dict:
        """Profile dict in the shape the content engine prompts expect."""
        return {
            "id": self.id,
            "name": self.name or (self.email.split("@")[0] if self.email else "Visionary"),
            "preferences": list(self.preferences),
        }


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(token: str) -> dict:
    """
    Verify and decode a Supabase JWT.

    Raises:
        HTTPException: 503 when no JWT secret is configured, 401 for any
            invalid, expired or wrong-audience token.
    """
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )

    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
            options={
                "verify_exp": True,
                "verify_aud": True,
                "require": ["sub", "exp", "aud"],
            },
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidAudienceError:
        raise _unauthorized("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {e}")


def extract_user(payload: dict) -> SupabaseUser:
    """Build a SupabaseUser from a verified JWT payload."""
    metadata = payload.get("user_metadata") or {}
    preferences = metadata.get("preferences") or []
    if not isinstance(preferences, list):
        preferences = []

    return SupabaseUser(
        id=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role", "authenticated"),
        name=metadata.get("name") or metadata.get("full_name"),
        preferences=[str(p) for p in preferences if p],
        user_metadata=metadata or None,
    )


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> SupabaseUser:
    """Mandatory auth dependency."""
    if not credentials or not credentials.credentials:
        raise _unauthorized("Authorization header required")
    return extract_user(verify_jwt(credentials.credentials))
