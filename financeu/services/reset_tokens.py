"""Password reset token lifecycle.

A token is *issued* when created, becomes *consumed* when a reset succeeds,
and is *expired* once ``expires_at`` passes. Expiry is only a query-time
predicate; nothing rewrites expired rows except ``sweep_expired``.

At most one issued token exists per email: ``request_reset`` marks every
unused token for the email as used before inserting the new one, in the same
transaction.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from financeu.config import get_settings
from financeu.errors import ResetTokenExpiredError, ResetTokenNotFoundError, ResetTokenUsedError
from financeu.models.password_reset_token import PasswordResetToken
from financeu.models.user import User
from financeu.services.credential_store import normalize_email

logger = logging.getLogger("financeu")


def generate_reset_code() -> str:
    """Six-digit numeric code."""
    return str(100000 + secrets.randbelow(900000))


class ResetTokenManager:
    """Issues, validates, consumes and sweeps password reset tokens."""

    def __init__(
        self,
        expire_minutes: int | None = None,
        code_factory: Callable[[], str] = generate_reset_code,
    ) -> None:
        self.expire_minutes = (
            expire_minutes if expire_minutes is not None else get_settings().RESET_TOKEN_EXPIRE_MINUTES
        )
        self.code_factory = code_factory

    def request_reset(self, db: Session, email: str) -> PasswordResetToken:
        """Invalidate outstanding tokens for ``email`` and issue a new one.

        Both steps commit together or not at all.
        """
        email = normalize_email(email)
        now = datetime.utcnow()
        try:
            # Serialize concurrent requests for the same account
            db.execute(select(User.id).where(func.lower(User.email) == email).with_for_update())
            invalidated = db.execute(
                update(PasswordResetToken)
                .where(func.lower(PasswordResetToken.email) == email, PasswordResetToken.used.is_(False))
                .values(used=True, used_at=now)
                .execution_options(synchronize_session=False)
            ).rowcount
            reset_token = PasswordResetToken(
                email=email,
                token=self.code_factory(),
                expires_at=now + timedelta(minutes=self.expire_minutes),
                created_at=now,
                used=False,
            )
            db.add(reset_token)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(reset_token)
        logger.info(
            "Reset token %d issued for %s (invalidated %d, expires %s)",
            reset_token.id,
            email,
            invalidated,
            reset_token.expires_at.isoformat(),
        )
        return reset_token

    def validate(self, db: Session, email: str, token: str) -> PasswordResetToken:
        """Return the matching issued token or raise the precise reason it is unusable."""
        email = normalize_email(email)
        token = token.strip()
        now = datetime.utcnow()

        valid = (
            db.execute(
                select(PasswordResetToken)
                .where(
                    func.lower(PasswordResetToken.email) == email,
                    PasswordResetToken.token == token,
                    PasswordResetToken.used.is_(False),
                    PasswordResetToken.expires_at > now,
                )
                .order_by(PasswordResetToken.created_at.desc(), PasswordResetToken.id.desc())
            )
            .scalars()
            .first()
        )
        if valid:
            return valid

        # Diagnose for logging and user messaging
        latest = (
            db.execute(
                select(PasswordResetToken)
                .where(func.lower(PasswordResetToken.email) == email, PasswordResetToken.token == token)
                .order_by(PasswordResetToken.created_at.desc(), PasswordResetToken.id.desc())
            )
            .scalars()
            .first()
        )
        if latest is None:
            logger.info("Reset rejected for %s: no matching code", email)
            raise ResetTokenNotFoundError()
        if latest.used:
            logger.info("Reset rejected for %s: code %d already used", email, latest.id)
            raise ResetTokenUsedError()
        logger.info("Reset rejected for %s: code %d expired", email, latest.id)
        raise ResetTokenExpiredError()

    def consume(self, db: Session, token_id: int) -> None:
        """Mark a token used. Leaves the transaction open for the caller to commit.

        The update only matches an unused row, so of two concurrent resets
        with the same code exactly one consumes it.
        """
        result = db.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id, PasswordResetToken.used.is_(False))
            .values(used=True, used_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ResetTokenUsedError()

    def sweep_expired(self, db: Session) -> int:
        """Delete expired and used tokens. Returns the number of rows removed."""
        result = db.execute(
            delete(PasswordResetToken)
            .where(or_(PasswordResetToken.expires_at < datetime.utcnow(), PasswordResetToken.used.is_(True)))
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Swept %d password reset tokens", result.rowcount)
        return result.rowcount


_reset_token_manager: ResetTokenManager | None = None


def get_reset_token_manager() -> ResetTokenManager:
    """Get singleton reset token manager instance."""
    global _reset_token_manager
    if _reset_token_manager is None:
        _reset_token_manager = ResetTokenManager()
    return _reset_token_manager
