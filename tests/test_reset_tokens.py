"""Tests for the password reset token lifecycle."""

import itertools
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from financeu.errors import InvalidResetTokenError, ResetTokenExpiredError, ResetTokenNotFoundError, ResetTokenUsedError
from financeu.models.password_reset_token import PasswordResetToken
from financeu.services.auth import AuthService
from financeu.services.password import PasswordHasher
from financeu.services.reset_tokens import ResetTokenManager, generate_reset_code


def sequential_codes():
    counter = itertools.count(100001)
    return lambda: str(next(counter))


@pytest.fixture(name="manager")
def manager_fixture() -> ResetTokenManager:
    return ResetTokenManager(expire_minutes=60, code_factory=sequential_codes())


class TestGenerateResetCode:
    """Tests for reset code generation."""

    def test_code_is_six_digits(self):
        """Codes are six numeric digits with no leading zero."""
        for _ in range(50):
            code = generate_reset_code()
            assert len(code) == 6
            assert code.isdigit()
            assert code[0] != "0"


class TestRequestReset:
    """Tests for issuing reset tokens."""

    def test_issue_sets_expiry(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """A new token is unused and expires after the configured window."""
        before = datetime.utcnow()
        token = manager.request_reset(db_session, "TEST@example.com")

        assert token.email == "test@example.com"
        assert token.used is False
        assert token.used_at is None
        assert before + timedelta(minutes=59) < token.expires_at <= datetime.utcnow() + timedelta(minutes=60)

    def test_reissue_invalidates_previous(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """Issuing a second token retires the first even though it was never consumed."""
        first = manager.request_reset(db_session, "test@example.com")
        second = manager.request_reset(db_session, "test@example.com")
        assert first.token != second.token

        with pytest.raises((ResetTokenUsedError, ResetTokenNotFoundError)):
            manager.validate(db_session, "test@example.com", first.token)

        assert manager.validate(db_session, "test@example.com", second.token).id == second.id

    def test_at_most_one_outstanding_token(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """Repeated requests leave exactly one unused token per email."""
        for _ in range(3):
            manager.request_reset(db_session, "test@example.com")

        unused = db_session.execute(
            select(func.count(PasswordResetToken.id)).where(PasswordResetToken.used.is_(False))
        ).scalar()
        assert unused == 1

    def test_reissue_leaves_other_accounts_alone(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """Invalidation is scoped to the requesting email."""
        AuthService().register(db_session, "other@example.com", "password123", "Other")
        other = manager.request_reset(db_session, "other@example.com")
        manager.request_reset(db_session, "test@example.com")

        assert manager.validate(db_session, "other@example.com", other.token).id == other.id


class TestValidate:
    """Tests for reset token validation."""

    def test_unknown_code(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """A code that was never issued is not found."""
        with pytest.raises(ResetTokenNotFoundError):
            manager.validate(db_session, "test@example.com", "999999")

    def test_expired_code(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """A code past its expiry is reported as expired."""
        token = manager.request_reset(db_session, "test@example.com")
        db_session.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token.id)
            .values(expires_at=datetime.utcnow() - timedelta(seconds=1))
        )
        db_session.commit()

        with pytest.raises(ResetTokenExpiredError):
            manager.validate(db_session, "test@example.com", token.token)

    def test_validate_trims_code_and_ignores_email_case(
        self, db_session: Session, test_user: dict, manager: ResetTokenManager
    ):
        """Surrounding whitespace and email case do not matter."""
        token = manager.request_reset(db_session, "test@example.com")
        assert manager.validate(db_session, "Test@Example.com", f" {token.token} ").id == token.id


class TestConsume:
    """Tests for consuming reset tokens."""

    def test_consume_marks_used(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """A consumed token is used and can no longer be validated."""
        token = manager.request_reset(db_session, "test@example.com")
        manager.consume(db_session, token.id)
        db_session.commit()

        db_session.refresh(token)
        assert token.used is True
        assert token.used_at is not None
        with pytest.raises(ResetTokenUsedError):
            manager.validate(db_session, "test@example.com", token.token)

    def test_consume_twice_fails(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """Only one consumer wins a given token."""
        token = manager.request_reset(db_session, "test@example.com")
        manager.consume(db_session, token.id)
        db_session.commit()

        with pytest.raises(ResetTokenUsedError):
            manager.consume(db_session, token.id)


class TestResetPasswordService:
    """Tests for AuthService.reset_password."""

    def test_password_changes_exactly_once(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """A code resets the password once; a replay leaves the new password in place."""
        auth = AuthService(reset_tokens=manager, hasher=PasswordHasher(rounds=4))
        reset = auth.request_password_reset(db_session, "test@example.com")
        assert reset.issued is True

        first = auth.reset_password(db_session, "test@example.com", reset.code, "newpassword456")
        assert first.success is True

        replay = auth.reset_password(db_session, "test@example.com", reset.code, "anotherpassword")
        assert replay.success is False
        assert replay.error == InvalidResetTokenError.default_message

        assert auth.authenticate(db_session, "test@example.com", "newpassword456").success is True
        assert auth.authenticate(db_session, "test@example.com", "anotherpassword").success is False
        assert auth.authenticate(db_session, "test@example.com", "password123").success is False

    def test_store_failure_keeps_code_usable(
        self, db_session: Session, test_user: dict, manager: ResetTokenManager, monkeypatch
    ):
        """If consuming the code fails, the password update rolls back and the code still works."""
        auth = AuthService(reset_tokens=manager, hasher=PasswordHasher(rounds=4))
        reset = auth.request_password_reset(db_session, "test@example.com")

        def broken_consume(db, token_id):
            raise OperationalError("UPDATE password_reset_tokens", {}, Exception("disk I/O error"))

        monkeypatch.setattr(manager, "consume", broken_consume)
        with pytest.raises(OperationalError):
            auth.reset_password(db_session, "test@example.com", reset.code, "newpassword456")
        monkeypatch.undo()

        assert auth.authenticate(db_session, "test@example.com", "password123").success is True
        assert auth.authenticate(db_session, "test@example.com", "newpassword456").success is False
        assert auth.reset_password(db_session, "test@example.com", reset.code, "newpassword456").success is True
        assert auth.authenticate(db_session, "test@example.com", "newpassword456").success is True

    def test_unknown_email_gets_decoy(self, db_session: Session, manager: ResetTokenManager):
        """Unknown emails receive a code that was never stored."""
        auth = AuthService(reset_tokens=manager)
        reset = auth.request_password_reset(db_session, "ghost@example.com")

        assert reset.issued is False
        assert len(reset.code) == 6
        assert db_session.execute(select(func.count(PasswordResetToken.id))).scalar() == 0
        assert auth.reset_password(db_session, "ghost@example.com", reset.code, "newpassword456").success is False


class TestSweepExpired:
    """Tests for removing dead tokens."""

    def test_sweep_removes_expired_and_used(self, db_session: Session, test_user: dict, manager: ResetTokenManager):
        """Expired and used rows are deleted; the live token survives."""
        AuthService().register(db_session, "other@example.com", "password123", "Other")
        manager.request_reset(db_session, "test@example.com")
        live = manager.request_reset(db_session, "test@example.com")
        stale = manager.request_reset(db_session, "other@example.com")
        db_session.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.id == stale.id)
            .values(expires_at=datetime.utcnow() - timedelta(minutes=5))
        )
        db_session.commit()

        assert manager.sweep_expired(db_session) == 2

        remaining = db_session.execute(select(PasswordResetToken.id)).scalars().all()
        assert remaining == [live.id]
