"""JWT Token Service."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from financeu.config import get_settings
from financeu.errors import InvalidTokenError
from financeu.services.credential_store import PublicUser

REQUIRED_CLAIMS = ("sub", "email", "name", "membershipTier", "exp")


@dataclass(frozen=True)
class SessionClaims:
    """Verified identity carried by a session token."""

    user_id: int
    email: str
    name: str
    membership_tier: str
    role: str
    issued_at: datetime | None
    expires_at: datetime


class JWTService:
    """Handles JWT token creation and validation."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ) -> None:
        settings = get_settings()
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expire_minutes = expire_minutes if expire_minutes is not None else settings.SESSION_EXPIRE_MINUTES

    def create_token(
        self,
        user_id: int,
        email: str,
        name: str,
        membership_tier: str,
        role: str = "user",
        now: datetime | None = None,
    ) -> str:
        """Create a JWT token for the given user."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "id": user_id,
            "email": email,
            "name": name,
            "membershipTier": membership_tier,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_token_for_user(self, user: PublicUser) -> str:
        """Create a token carrying the public identity of ``user``."""
        return self.create_token(
            user_id=user.id,
            email=user.email,
            name=user.name,
            membership_tier=user.membership_tier,
            role=user.role,
        )

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a JWT token. Returns None if invalid."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def verify_token(self, token: str) -> SessionClaims:
        """Verify a token and return its claims.

        Tampered, malformed and expired tokens all raise the same
        InvalidTokenError so callers cannot tell them apart.
        """
        payload = self.decode_token(token)
        if not payload or any(claim not in payload for claim in REQUIRED_CLAIMS):
            raise InvalidTokenError()
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidTokenError() from None

        iat = payload.get("iat")
        return SessionClaims(
            user_id=user_id,
            email=payload["email"],
            name=payload["name"],
            membership_tier=payload["membershipTier"],
            role=payload.get("role", "user"),
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if isinstance(iat, (int, float)) else None,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def is_token_valid(self, token: str) -> bool:
        """Check if a token is valid."""
        try:
            self.verify_token(token)
        except InvalidTokenError:
            return False
        return True


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
