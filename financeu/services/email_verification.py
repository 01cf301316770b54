"""Email address verification.

Registration stores a random token on the user row and mails a link carrying
it. Verification is informational: unverified accounts can still sign in.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from financeu.config import get_settings
from financeu.errors import InvalidVerificationTokenError, NotFoundError
from financeu.models.user import User
from financeu.services.credential_store import PublicUser, normalize_email

logger = logging.getLogger("financeu")


def generate_verification_token() -> str:
    return secrets.token_hex(32)


@dataclass
class VerificationTicket:
    """A freshly issued verification token and who it goes to."""

    email: str
    name: str
    token: str
    expires_at: datetime


class EmailVerificationService:
    """Issues and redeems email verification tokens."""

    def __init__(
        self,
        expire_hours: int | None = None,
        token_factory: Callable[[], str] = generate_verification_token,
    ) -> None:
        self.expire_hours = (
            expire_hours if expire_hours is not None else get_settings().VERIFICATION_TOKEN_EXPIRE_HOURS
        )
        self.token_factory = token_factory

    def issue(self, db: Session, user_id: int) -> VerificationTicket:
        """Store a new token for the user, replacing any earlier one."""
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        user.verification_token = self.token_factory()
        user.verification_expires_at = datetime.utcnow() + timedelta(hours=self.expire_hours)
        db.commit()
        db.refresh(user)
        logger.info("Verification token issued for user %d", user.id)
        return VerificationTicket(
            email=user.email,
            name=user.display_name,
            token=user.verification_token,
            expires_at=user.verification_expires_at,
        )

    def resend(self, db: Session, email: str) -> VerificationTicket | None:
        """Issue a new token for an unverified account.

        Returns None for unknown or already verified emails so the caller can
        answer the same way in every case.
        """
        user = db.execute(select(User).where(func.lower(User.email) == normalize_email(email))).scalars().first()
        if not user or user.email_verified:
            logger.info("Verification resend skipped: no unverified account")
            return None
        return self.issue(db, user.id)

    def verify(self, db: Session, email: str, token: str) -> PublicUser:
        """Mark the account verified if ``token`` is its live token.

        The token is cleared in the same update, so it works once.
        """
        email = normalize_email(email)
        token = token.strip()
        now = datetime.utcnow()
        result = db.execute(
            update(User)
            .where(
                func.lower(User.email) == email,
                User.verification_token == token,
                User.verification_expires_at > now,
            )
            .values(email_verified=True, verification_token=None, verification_expires_at=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            logger.info("Verification rejected for %s", email)
            raise InvalidVerificationTokenError()
        db.commit()

        user = db.execute(select(User).where(func.lower(User.email) == email)).scalars().one()
        db.refresh(user)
        logger.info("Email verified for user %d", user.id)
        return PublicUser.from_model(user)


_email_verification_service: EmailVerificationService | None = None


def get_email_verification_service() -> EmailVerificationService:
    """Get singleton email verification service instance."""
    global _email_verification_service
    if _email_verification_service is None:
        _email_verification_service = EmailVerificationService()
    return _email_verification_service
