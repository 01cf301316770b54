"""Tests for email verification."""

import logging
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from financeu.errors import InvalidVerificationTokenError
from financeu.models.user import User
from financeu.services.email_verification import EmailVerificationService


def stored_user(db_session: Session, email: str) -> User:
    db_session.expire_all()
    return db_session.execute(select(User).where(User.email == email)).scalars().one()


class TestRegistrationIssuesToken:
    """Registration stores a verification token and announces it."""

    def test_register_stores_token(self, client: TestClient, db_session: Session, caplog):
        with caplog.at_level(logging.INFO, logger="financeu"):
            response = client.post(
                "/api/auth/register",
                json={"email": "new@example.com", "password": "password123", "name": "New"},
            )
        assert response.status_code == 201
        assert response.json()["user"]["emailVerified"] is False

        user = stored_user(db_session, "new@example.com")
        assert user.email_verified is False
        assert len(user.verification_token) == 64
        assert user.verification_expires_at > datetime.utcnow() + timedelta(hours=23)
        assert any(
            "EMAIL VERIFICATION" in r.getMessage() and user.verification_token in r.getMessage()
            for r in caplog.records
        )

    def test_unverified_user_can_log_in(self, client: TestClient):
        client.post("/api/auth/register", json={"email": "new@example.com", "password": "password123", "name": "New"})
        response = client.post("/api/auth/login", json={"email": "new@example.com", "password": "password123"})
        assert response.status_code == 200
        assert response.json()["user"]["emailVerified"] is False


class TestVerifyEmail:
    """Tests for POST /api/auth/verify-email."""

    def register(self, client: TestClient, db_session: Session) -> str:
        client.post("/api/auth/register", json={"email": "new@example.com", "password": "password123", "name": "New"})
        return stored_user(db_session, "new@example.com").verification_token

    def test_verify_marks_account_and_signs_in(self, client: TestClient, db_session: Session):
        token = self.register(client, db_session)

        response = client.post("/api/auth/verify-email", json={"email": "NEW@example.com", "token": token})
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Email verified successfully"
        assert data["user"]["emailVerified"] is True
        assert data["token"]

        user = stored_user(db_session, "new@example.com")
        assert user.email_verified is True
        assert user.verification_token is None

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.json()["user"]["emailVerified"] is True

    def test_token_works_once(self, client: TestClient, db_session: Session):
        token = self.register(client, db_session)
        assert client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": token}).status_code == 200

        response = client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": token})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired verification token"

    def test_token_bound_to_email(self, client: TestClient, db_session: Session, test_user: dict):
        token = self.register(client, db_session)
        response = client.post("/api/auth/verify-email", json={"email": "test@example.com", "token": token})
        assert response.status_code == 400
        assert stored_user(db_session, "new@example.com").email_verified is False

    def test_expired_token(self, client: TestClient, db_session: Session):
        token = self.register(client, db_session)
        user = stored_user(db_session, "new@example.com")
        user.verification_expires_at = datetime.utcnow() - timedelta(seconds=1)
        db_session.commit()

        response = client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": token})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired verification token"

    def test_missing_token(self, client: TestClient):
        response = client.post("/api/auth/verify-email", json={"email": "new@example.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "token is required"


class TestResendVerification:
    """Tests for POST /api/auth/resend-verification."""

    def test_resend_replaces_token(self, client: TestClient, db_session: Session):
        client.post("/api/auth/register", json={"email": "new@example.com", "password": "password123", "name": "New"})
        first = stored_user(db_session, "new@example.com").verification_token

        response = client.post("/api/auth/resend-verification", json={"email": "new@example.com"})
        assert response.status_code == 200
        second = stored_user(db_session, "new@example.com").verification_token
        assert second != first

        stale = client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": first})
        assert stale.status_code == 400
        fresh = client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": second})
        assert fresh.status_code == 200

    def test_unknown_and_verified_emails_get_same_answer(self, client: TestClient, db_session: Session):
        client.post("/api/auth/register", json={"email": "new@example.com", "password": "password123", "name": "New"})
        token = stored_user(db_session, "new@example.com").verification_token
        client.post("/api/auth/verify-email", json={"email": "new@example.com", "token": token})

        unknown = client.post("/api/auth/resend-verification", json={"email": "ghost@example.com"})
        verified = client.post("/api/auth/resend-verification", json={"email": "new@example.com"})
        assert unknown.status_code == verified.status_code == 200
        assert unknown.json() == verified.json()
        assert stored_user(db_session, "new@example.com").verification_token is None


class TestEmailVerificationService:
    """Direct tests for EmailVerificationService."""

    def test_verify_with_wrong_token(self, db_session: Session, test_user: dict):
        service = EmailVerificationService(expire_hours=1, token_factory=lambda: "a" * 64)
        service.issue(db_session, test_user["user_id"])

        with pytest.raises(InvalidVerificationTokenError):
            service.verify(db_session, "test@example.com", "b" * 64)

        assert service.verify(db_session, "test@example.com", " " + "a" * 64).email_verified is True
