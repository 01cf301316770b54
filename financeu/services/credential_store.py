"""Credential store: persistence for user accounts."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from financeu.errors import DuplicateEmailError, NotFoundError, ValidationError
from financeu.models.password_reset_token import PasswordResetToken
from financeu.models.user import MembershipTier, Role, User

logger = logging.getLogger("financeu")

MEMBERSHIP_TIERS = tuple(tier.value for tier in MembershipTier)
ROLES = tuple(role.value for role in Role)


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookups."""
    return email.strip().lower()


@dataclass(frozen=True)
class PublicUser:
    """User data that may be returned to clients. Never carries the password hash."""

    id: int
    email: str
    name: str
    membership_tier: str
    role: str
    created_at: datetime
    email_verified: bool = False

    @classmethod
    def from_model(cls, user: User) -> "PublicUser":
        return cls(
            id=user.id,
            email=user.email,
            name=user.display_name,
            membership_tier=user.membership_tier,
            role=user.role,
            created_at=user.created_at,
            email_verified=bool(user.email_verified),
        )


class CredentialStore:
    """Reads and writes user records. Email matching is case-insensitive."""

    def find_user_by_email(self, db: Session, email: str) -> User | None:
        """Return the full user row, including the password hash, for authentication."""
        return db.execute(select(User).where(func.lower(User.email) == normalize_email(email))).scalars().first()

    def find_user_by_id(self, db: Session, user_id: int) -> PublicUser | None:
        user = db.get(User, user_id)
        return PublicUser.from_model(user) if user else None

    def email_exists(self, db: Session, email: str) -> bool:
        return self.find_user_by_email(db, email) is not None

    def create_user(self, db: Session, email: str, password_hash: str, name: str) -> User:
        """Insert a new user. Raises DuplicateEmailError if the email is taken."""
        user = User(
            email=normalize_email(email),
            password_hash=password_hash,
            display_name=name.strip(),
            membership_tier=MembershipTier.FREE.value,
            role=Role.USER.value,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            logger.info("Duplicate registration rejected by unique constraint for %s", user.email)
            raise DuplicateEmailError() from None
        db.refresh(user)
        return user

    def update_membership_tier(self, db: Session, user_id: int, tier: str) -> None:
        if tier not in MEMBERSHIP_TIERS:
            raise ValidationError("Invalid membership tier")
        self._update_by_id(db, user_id, membership_tier=tier)

    def update_role(self, db: Session, user_id: int, role: str) -> None:
        if role not in ROLES:
            raise ValidationError("Invalid role")
        self._update_by_id(db, user_id, role=role)

    def update_password_hash(self, db: Session, email: str, password_hash: str, commit: bool = True) -> None:
        """Replace the password hash for the account owning ``email``.

        With ``commit=False`` the update is left in the session's open
        transaction so the caller can commit it together with other writes.
        """
        result = db.execute(
            update(User)
            .where(func.lower(User.email) == normalize_email(email))
            .values(password_hash=password_hash, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError("User not found")
        if commit:
            db.commit()

    def delete_user(self, db: Session, user_id: int) -> None:
        """Delete an account and its reset tokens. Lesson progress goes with it by cascade."""
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        email = normalize_email(user.email)
        db.execute(
            delete(PasswordResetToken)
            .where(func.lower(PasswordResetToken.email) == email)
            .execution_options(synchronize_session=False)
        )
        db.expunge(user)
        db.execute(delete(User).where(User.id == user_id).execution_options(synchronize_session=False))
        db.commit()
        logger.info("User %d (%s) deleted", user_id, email)

    def list_users(self, db: Session) -> list[PublicUser]:
        users = db.execute(select(User).order_by(User.created_at.desc(), User.id.desc())).scalars().all()
        return [PublicUser.from_model(user) for user in users]

    def _update_by_id(self, db: Session, user_id: int, **values) -> None:
        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .values(updated_at=datetime.utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError("User not found")
        db.commit()


_credential_store: CredentialStore | None = None


def get_credential_store() -> CredentialStore:
    """Get singleton credential store instance."""
    global _credential_store
    if _credential_store is None:
        _credential_store = CredentialStore()
    return _credential_store
