"""Feedback service."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from financeu.errors import NotFoundError
from financeu.models.feedback import Feedback


class FeedbackService:
    """Stores and administers feedback submissions."""

    def create_feedback(
        self, db: Session, feedback_type: str, message: str, name: str | None = None, email: str | None = None
    ) -> Feedback:
        feedback = Feedback(
            name=name.strip() if name else None,
            email=email.strip().lower() if email else None,
            feedback_type=feedback_type,
            message=message.strip(),
        )
        db.add(feedback)
        db.commit()
        db.refresh(feedback)
        return feedback

    def list_feedback(self, db: Session) -> list[Feedback]:
        """All feedback, newest first."""
        return list(
            db.execute(select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc())).scalars().all()
        )

    def count_feedback(self, db: Session) -> int:
        return db.execute(select(func.count(Feedback.id))).scalar() or 0

    def delete_feedback(self, db: Session, feedback_id: int) -> None:
        feedback = db.get(Feedback, feedback_id)
        if not feedback:
            raise NotFoundError("Feedback not found")
        db.delete(feedback)
        db.commit()


_feedback_service: FeedbackService | None = None


def get_feedback_service() -> FeedbackService:
    """Get singleton feedback service instance."""
    global _feedback_service
    if _feedback_service is None:
        _feedback_service = FeedbackService()
    return _feedback_service
