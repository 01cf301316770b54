"""User profile API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from financeu.database import get_db
from financeu.dependencies import CurrentUser, get_current_user, set_auth_cookie
from financeu.schemas.auth import MessageResponse, UserResponse
from financeu.schemas.users import (
    ChangePasswordRequest,
    MembershipUpdateRequest,
    MembershipUpdateResponse,
    ProfileResponse,
    ProfileStats,
)
from financeu.services.auth import get_auth_service
from financeu.services.credential_store import get_credential_store
from financeu.services.jwt import get_jwt_service
from financeu.services.lessons import TOTAL_LESSONS, get_lesson_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> ProfileResponse:
    """Get the signed-in user's profile with lesson stats."""
    public_user = get_credential_store().find_user_by_id(db, user.user_id)
    if not public_user:
        raise HTTPException(status_code=404, detail="User not found")

    completed = get_lesson_service().get_completed_count(db, user.user_id)
    return ProfileResponse(
        user=UserResponse.from_public(public_user),
        stats=ProfileStats(completed_lessons=completed, total_lessons=TOTAL_LESSONS),
    )


@router.put("/membership", response_model=MembershipUpdateResponse)
def update_membership(
    body: MembershipUpdateRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MembershipUpdateResponse:
    """Change the signed-in user's tier.

    Self-service for testing; a payment flow would own this in production.
    The session is re-issued so the new tier takes effect immediately.
    """
    store = get_credential_store()
    store.update_membership_tier(db, user.user_id, body.tier)

    public_user = store.find_user_by_id(db, user.user_id)
    token = get_jwt_service().create_token_for_user(public_user)
    set_auth_cookie(response, token)
    return MembershipUpdateResponse(message="Membership updated successfully", tier=body.tier, token=token)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Change the signed-in user's password."""
    result = get_auth_service().change_password(db, user.user_id, body.current_password, body.new_password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return MessageResponse(message="Password changed successfully")
