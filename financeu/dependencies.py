"""Authentication dependencies for FastAPI routes."""

import base64
import binascii
import logging
import secrets
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, Response

from financeu.config import get_settings
from financeu.errors import InvalidTokenError
from financeu.models.user import Role
from financeu.services.jwt import get_jwt_service
from financeu.services.tiers import TIER_ORDER, tier_allows

logger = logging.getLogger("financeu")

AUTH_COOKIE_NAME = "token"


@dataclass
class CurrentUser:
    """Authenticated user context."""

    user_id: int
    email: str
    name: str
    membership_tier: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def extract_token(request: Request) -> str | None:
    """Session token from the cookie, else from an ``Authorization: Bearer`` header."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return None


def _user_from_token(token: str) -> CurrentUser:
    claims = get_jwt_service().verify_token(token)
    return CurrentUser(
        user_id=claims.user_id,
        email=claims.email,
        name=claims.name,
        membership_tier=claims.membership_tier,
        role=claims.role,
    )


def get_current_user(request: Request) -> CurrentUser:
    """Extract and validate user from cookie or Bearer token. Raises 401 if invalid."""
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user = _user_from_token(token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=e.message) from None

    request.state.user = user
    return user


def ensure_tier(user: CurrentUser, allowed_tiers: Iterable[str]) -> CurrentUser:
    """Raise 403 unless the session's tier is one of ``allowed_tiers``."""
    allowed = frozenset(allowed_tiers)
    if not tier_allows(user.membership_tier, allowed):
        required = " or ".join(tier for tier in TIER_ORDER if tier in allowed)
        raise HTTPException(
            status_code=403,
            detail=f"Access denied. Upgrade your membership to access this content. Required tier: {required}",
        )
    return user


def require_tier(*allowed_tiers: str) -> Callable[..., CurrentUser]:
    """Dependency factory admitting only sessions whose tier is in ``allowed_tiers``."""
    allowed = frozenset(allowed_tiers)

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        return ensure_tier(user, allowed)

    return dependency


def _basic_admin_matches(request: Request) -> bool:
    settings = get_settings()
    if not settings.basic_admin_enabled:
        return False
    auth_header = request.headers.get("Authorization", "")
    scheme, _, encoded = auth_header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return False
    try:
        username, _, password = base64.b64decode(encoded).decode("utf-8").partition(":")
    except (binascii.Error, UnicodeDecodeError):
        return False
    return secrets.compare_digest(username, settings.ADMIN_USERNAME) and secrets.compare_digest(
        password, settings.ADMIN_PASSWORD
    )


def require_admin(request: Request) -> CurrentUser | None:
    """Admit admin sessions, or the configured HTTP Basic admin account.

    Returns None for the Basic account, which has no user row.
    """
    if _basic_admin_matches(request):
        return None

    user = get_current_user(request)
    if not user.is_admin:
        logger.warning("User %d denied access to %s", user.user_id, request.url.path)
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the authentication cookie."""
    settings = get_settings()
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    """Clear the authentication cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME, httponly=True, samesite="lax")
