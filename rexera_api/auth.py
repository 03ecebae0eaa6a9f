"""
Authentication dependencies.

Callers authenticate with a Supabase-issued JWT in the ``Authorization``
header. ``SKIP_AUTH`` (or the ``skip-auth-token`` bearer) maps every request
to the built-in development user.
"""

from dataclasses import dataclass
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import get_settings
from .db.base import get_db
from .db.models import UserProfileModel
from .enums import UserRole, UserType
from .errors import APIErrors

logger = structlog.get_logger()

SKIP_AUTH_TOKEN = "skip-auth-token"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    user_type: str
    role: str
    company_id: Optional[str] = None

    @property
    def is_hil(self) -> bool:
        return self.user_type == UserType.HIL_USER.value

    @property
    def display_name(self) -> str:
        return self.email


DEV_USER = AuthUser(
    id="284219ff-3a1f-4e86-9ea4-3536f940451f",
    email="admin@rexera.com",
    user_type=UserType.HIL_USER.value,
    role=UserRole.HIL_ADMIN.value,
    company_id=None,
)


def decode_token(token: str) -> dict:
    """Verify a Supabase HS256 access token and return its claims."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=["HS256"],
        audience=settings.jwt_audience,
        options={"require": ["exp", "sub"]},
    )


def get_current_user(request: Request, db: Session = Depends(get_db)) -> AuthUser:
    """Resolve the calling user from the request."""
    if request.method == "OPTIONS":
        return DEV_USER

    if get_settings().skip_auth:
        return DEV_USER

    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise APIErrors.unauthorized("Missing or invalid Authorization header")

    token = auth_header[len("Bearer "):].strip()
    if token == SKIP_AUTH_TOKEN:
        return DEV_USER

    try:
        claims = decode_token(token)
    except jwt.InvalidTokenError as exc:
        logger.warning("Token verification failed", error=str(exc))
        raise APIErrors.unauthorized("Invalid or expired token")

    user_id = claims["sub"]
    profile = db.get(UserProfileModel, user_id)
    if profile is None:
        logger.warning("User profile not found", user_id=user_id)
        raise APIErrors.forbidden("User profile not found")

    return AuthUser(
        id=user_id,
        email=claims.get("email") or profile.email,
        user_type=profile.user_type,
        role=profile.role,
        company_id=profile.company_id,
    )


def get_company_filter(user: AuthUser) -> Optional[str]:
    """Company id a client user is restricted to; None for HIL users.

    A client user without a company gets an empty filter that matches nothing.
    """
    if user.user_type == UserType.CLIENT_USER.value:
        return user.company_id or ""
    return None


def require_hil_user(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_hil:
        raise APIErrors.forbidden("Only HIL users can perform this action")
    return user
