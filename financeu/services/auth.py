"""Authentication service."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from financeu.config import get_settings
from financeu.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    NotFoundError,
)
from financeu.models.user import User
from financeu.services.credential_store import CredentialStore, PublicUser, get_credential_store, normalize_email
from financeu.services.password import MAX_PASSWORD_BYTES, PasswordHasher, get_password_hasher
from financeu.services.reset_tokens import ResetTokenManager, generate_reset_code, get_reset_token_manager

logger = logging.getLogger("financeu")


@dataclass
class AuthResult:
    """Result of an authentication attempt."""

    success: bool
    error: str | None = None
    user: PublicUser | None = None


@dataclass
class ResetRequest:
    """Outcome of a forgot-password request.

    ``issued`` is False when no account owns the email; ``code`` is then a
    decoy of the same shape that was never stored.
    """

    email: str
    code: str
    issued: bool
    name: str | None = None
    expires_at: datetime | None = None


class AuthService:
    """Handles user registration, authentication and password resets."""

    def __init__(
        self,
        store: CredentialStore | None = None,
        hasher: PasswordHasher | None = None,
        reset_tokens: ResetTokenManager | None = None,
        min_password_length: int | None = None,
    ) -> None:
        self.store = store or get_credential_store()
        self.hasher = hasher or get_password_hasher()
        self.reset_tokens = reset_tokens or get_reset_token_manager()
        self.min_password_length = (
            min_password_length if min_password_length is not None else get_settings().PASSWORD_MIN_LENGTH
        )
        self._dummy_hash: str | None = None

    def password_error(self, password: str) -> str | None:
        if len(password) < self.min_password_length:
            return f"Password must be at least {self.min_password_length} characters"
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        return None

    def register(self, db: Session, email: str, password: str, name: str) -> AuthResult:
        """Register a new user. Returns AuthResult with success/error."""
        error = self.password_error(password)
        if error:
            return AuthResult(success=False, error=error)

        if self.store.email_exists(db, email):
            return AuthResult(success=False, error=DuplicateEmailError.default_message)

        password_hash = self.hasher.hash(password)
        try:
            user = self.store.create_user(db, email, password_hash, name)
        except DuplicateEmailError as e:
            return AuthResult(success=False, error=e.message)

        logger.info("User %d registered as %s", user.id, user.email)
        return AuthResult(success=True, user=PublicUser.from_model(user))

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password."""
        user = self.store.find_user_by_email(db, email)
        if not user:
            # Spend the same bcrypt time as a real check
            self.hasher.verify(password, self._get_dummy_hash())
            return AuthResult(success=False, error=InvalidCredentialsError.default_message)

        if not self.hasher.verify(password, user.password_hash):
            return AuthResult(success=False, error=InvalidCredentialsError.default_message)

        return AuthResult(success=True, user=PublicUser.from_model(user))

    def change_password(self, db: Session, user_id: int, current_password: str, new_password: str) -> AuthResult:
        """Change the password of a signed-in user after re-checking the current one."""
        error = self.password_error(new_password)
        if error:
            return AuthResult(success=False, error=error)

        user = db.get(User, user_id)
        if not user or not self.hasher.verify(current_password, user.password_hash):
            return AuthResult(success=False, error="Current password is incorrect")

        self.store.update_password_hash(db, user.email, self.hasher.hash(new_password))
        logger.info("Password changed for user %d", user_id)
        return AuthResult(success=True, user=self.store.find_user_by_id(db, user_id))

    def request_password_reset(self, db: Session, email: str) -> ResetRequest:
        """Issue a reset code for the given email.

        Unknown emails get a decoy code so callers cannot tell whether an
        account exists.
        """
        user = self.store.find_user_by_email(db, email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return ResetRequest(email=normalize_email(email), code=generate_reset_code(), issued=False)

        reset_token = self.reset_tokens.request_reset(db, user.email)
        return ResetRequest(
            email=reset_token.email,
            code=reset_token.token,
            issued=True,
            name=user.display_name,
            expires_at=reset_token.expires_at,
        )

    def reset_password(self, db: Session, email: str, token: str, new_password: str) -> AuthResult:
        """Reset a user's password using a valid reset code.

        Every unusable code gets the same message; the precise cause is only
        logged. The password update and the token consumption commit together; if
        either fails nothing changes and the code stays usable.
        """
        error = self.password_error(new_password)
        if error:
            return AuthResult(success=False, error=error)

        try:
            reset_token = self.reset_tokens.validate(db, email, token)
        except InvalidResetTokenError:
            return AuthResult(success=False, error=InvalidResetTokenError.default_message)

        password_hash = self.hasher.hash(new_password)
        try:
            self.store.update_password_hash(db, reset_token.email, password_hash, commit=False)
            self.reset_tokens.consume(db, reset_token.id)
            db.commit()
        except NotFoundError:
            logger.warning("Reset code %d belongs to %s, which has no account", reset_token.id, reset_token.email)
            return AuthResult(success=False, error=InvalidResetTokenError.default_message)
        except InvalidResetTokenError:
            db.rollback()
            logger.info("Reset code %d was consumed concurrently", reset_token.id)
            return AuthResult(success=False, error=InvalidResetTokenError.default_message)
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info("Password reset completed for %s with code %d", reset_token.email, reset_token.id)
        user = self.store.find_user_by_email(db, reset_token.email)
        return AuthResult(success=True, user=PublicUser.from_model(user) if user else None)

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash("financeu-timing-equalizer")
        return self._dummy_hash


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
