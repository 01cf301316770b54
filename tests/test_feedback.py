"""Tests for public feedback submission."""

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from financeu.models.feedback import Feedback


class TestSubmitFeedback:
    """Tests for POST /api/feedback."""

    def test_submit_anonymous(self, client: TestClient, db_session: Session):
        """Feedback needs no account and stores trimmed fields."""
        response = client.post(
            "/api/feedback",
            json={
                "name": " Sam ",
                "email": "Sam@Example.com",
                "feedbackType": "Feature Request",
                "message": "  Please add a budgeting lesson.  ",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Feedback submitted successfully"

        stored = db_session.execute(select(Feedback).where(Feedback.id == data["feedbackId"])).scalars().one()
        assert stored.name == "Sam"
        assert stored.email == "sam@example.com"
        assert stored.message == "Please add a budgeting lesson."

    def test_name_and_email_optional(self, client: TestClient):
        response = client.post(
            "/api/feedback",
            json={"feedbackType": "Compliment", "message": "Great course, thank you!"},
        )
        assert response.status_code == 201

    def test_invalid_type(self, client: TestClient):
        response = client.post(
            "/api/feedback",
            json={"feedbackType": "Rant", "message": "This is long enough to pass."},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid feedback type"

    def test_message_too_short(self, client: TestClient):
        response = client.post("/api/feedback", json={"feedbackType": "Bug Report", "message": "short"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Message must be at least 10 characters"
