"""Feedback API endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from financeu.database import get_db
from financeu.rate_limit import limiter
from financeu.schemas.feedback import FeedbackCreateRequest, FeedbackCreateResponse
from financeu.services.feedback import get_feedback_service

router = APIRouter(prefix="/api/feedback", tags=["Feedback"])


@router.post("", response_model=FeedbackCreateResponse, status_code=201)
@limiter.limit("10/minute")
def submit_feedback(request: Request, body: FeedbackCreateRequest, db: Session = Depends(get_db)) -> FeedbackCreateResponse:
    """Submit feedback. No account required."""
    feedback = get_feedback_service().create_feedback(
        db,
        feedback_type=body.feedback_type,
        message=body.message,
        name=body.name,
        email=body.email,
    )
    return FeedbackCreateResponse(message="Feedback submitted successfully", feedback_id=feedback.id)
