"""Lesson catalog and progress API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from financeu.database import get_db
from financeu.dependencies import CurrentUser, ensure_tier, get_current_user
from financeu.schemas.lessons import (
    CompleteLessonRequest,
    CompleteLessonResponse,
    LessonListResponse,
    LessonProgressResponse,
    LessonResponse,
    ProgressListResponse,
)
from financeu.services.lessons import Lesson, get_lesson_service
from financeu.services.tiers import tier_allows, tiers_at_or_above

router = APIRouter(prefix="/api/lessons", tags=["Lessons"])


def _lesson_response(lesson: Lesson, user: CurrentUser) -> LessonResponse:
    return LessonResponse(
        id=lesson.id,
        pillar=lesson.pillar,
        number=lesson.number,
        title=lesson.title,
        required_tier=lesson.required_tier,
        accessible=tier_allows(user.membership_tier, tiers_at_or_above(lesson.required_tier)),
    )


@router.get("", response_model=LessonListResponse)
def list_lessons(user: CurrentUser = Depends(get_current_user)) -> LessonListResponse:
    """List the lesson catalog, flagging which lessons the user's tier unlocks."""
    lessons = get_lesson_service().list_lessons()
    return LessonListResponse(lessons=[_lesson_response(lesson, user) for lesson in lessons])


@router.get("/progress", response_model=ProgressListResponse)
def get_progress(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> ProgressListResponse:
    """Get the user's lesson progress."""
    progress = get_lesson_service().get_user_progress(db, user.user_id)
    return ProgressListResponse(
        progress=[
            LessonProgressResponse(lesson_id=p.lesson_id, completed=p.completed, completed_at=p.completed_at)
            for p in progress
        ]
    )


@router.post("/complete", response_model=CompleteLessonResponse)
def complete_lesson(
    body: CompleteLessonRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CompleteLessonResponse:
    """Mark a lesson as completed."""
    get_lesson_service().mark_lesson_complete(db, user.user_id, body.lesson_id)
    return CompleteLessonResponse(message="Lesson marked as complete", lesson_id=body.lesson_id)


@router.get("/{lesson_id}", response_model=LessonResponse)
def get_lesson(lesson_id: str, user: CurrentUser = Depends(get_current_user)) -> LessonResponse:
    """Get one lesson. Lessons above the user's tier are refused with 403."""
    lesson = get_lesson_service().get_lesson(lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")

    ensure_tier(user, tiers_at_or_above(lesson.required_tier))
    return _lesson_response(lesson, user)
