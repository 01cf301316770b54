"""Admin API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financeu.database import get_db
from financeu.dependencies import require_admin
from financeu.schemas.admin import (
    AdminUserListResponse,
    AdminUserResponse,
    ProgressSummary,
    RoleUpdateRequest,
    SweepResponse,
    TierUpdateRequest,
)
from financeu.schemas.auth import MessageResponse, UserResponse
from financeu.schemas.feedback import FeedbackListResponse, FeedbackResponse
from financeu.services.credential_store import get_credential_store
from financeu.services.feedback import get_feedback_service
from financeu.services.lessons import get_lesson_service
from financeu.services.reset_tokens import get_reset_token_manager

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=AdminUserListResponse)
def list_users(db: Session = Depends(get_db)) -> AdminUserListResponse:
    """List all users with their lesson progress."""
    lesson_service = get_lesson_service()
    users = []
    for public_user in get_credential_store().list_users(db):
        summary = lesson_service.summarize_progress(lesson_service.get_user_progress(db, public_user.id))
        users.append(
            AdminUserResponse(
                **UserResponse.from_public(public_user).model_dump(),
                role=public_user.role,
                progress=ProgressSummary.model_validate(summary),
            )
        )
    return AdminUserListResponse(users=users, total=len(users))


@router.put("/users/{user_id}/tier", response_model=MessageResponse)
def update_user_tier(user_id: int, body: TierUpdateRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Set a user's membership tier."""
    get_credential_store().update_membership_tier(db, user_id, body.tier)
    return MessageResponse(message="User tier updated successfully")


@router.put("/users/{user_id}/role", response_model=MessageResponse)
def update_user_role(user_id: int, body: RoleUpdateRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Set a user's role."""
    get_credential_store().update_role(db, user_id, body.role)
    return MessageResponse(message="User role updated successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    """Delete a user account together with its progress and reset codes."""
    get_credential_store().delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/feedback", response_model=FeedbackListResponse)
def list_feedback(db: Session = Depends(get_db)) -> FeedbackListResponse:
    """List all feedback, newest first."""
    service = get_feedback_service()
    items = [
        FeedbackResponse(
            id=f.id,
            name=f.name,
            email=f.email,
            feedback_type=f.feedback_type,
            message=f.message,
            created_at=f.created_at,
        )
        for f in service.list_feedback(db)
    ]
    return FeedbackListResponse(feedback=items, total=service.count_feedback(db))


@router.delete("/feedback/{feedback_id}", response_model=MessageResponse)
def delete_feedback(feedback_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    """Delete a feedback entry."""
    get_feedback_service().delete_feedback(db, feedback_id)
    return MessageResponse(message="Feedback deleted successfully")


@router.post("/reset-tokens/sweep", response_model=SweepResponse)
def sweep_reset_tokens(db: Session = Depends(get_db)) -> SweepResponse:
    """Delete expired and used password reset tokens."""
    return SweepResponse(deleted=get_reset_token_manager().sweep_expired(db))
