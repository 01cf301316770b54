"""Lesson catalog and progress tracking."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from financeu.errors import ValidationError
from financeu.models.lesson_progress import LessonProgress
from financeu.models.user import MembershipTier

PILLAR_COUNT = 11
LESSONS_PER_PILLAR = 8

# Required tier per pillar number
PILLAR_TIERS = {
    **{n: MembershipTier.FREE.value for n in range(1, 5)},
    **{n: MembershipTier.PREMIUM.value for n in range(5, 9)},
    **{n: MembershipTier.PRO.value for n in range(9, PILLAR_COUNT + 1)},
}


@dataclass(frozen=True)
class Lesson:
    id: str
    pillar: str
    number: int
    title: str
    required_tier: str


def _build_catalog() -> dict[str, Lesson]:
    catalog = {}
    for pillar_number in range(1, PILLAR_COUNT + 1):
        for lesson_number in range(1, LESSONS_PER_PILLAR + 1):
            lesson_id = f"pillar{pillar_number}_lesson{lesson_number}"
            catalog[lesson_id] = Lesson(
                id=lesson_id,
                pillar=f"pillar{pillar_number}",
                number=lesson_number,
                title=f"Pillar {pillar_number}, Lesson {lesson_number}",
                required_tier=PILLAR_TIERS[pillar_number],
            )
    return catalog


LESSON_CATALOG = _build_catalog()
TOTAL_LESSONS = len(LESSON_CATALOG)


def pillar_of(lesson_id: str) -> str:
    return lesson_id.split("_")[0]


class LessonService:
    """Lesson catalog lookups and per-user completion records."""

    def list_lessons(self) -> list[Lesson]:
        return list(LESSON_CATALOG.values())

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        return LESSON_CATALOG.get(lesson_id)

    def mark_lesson_complete(self, db: Session, user_id: int, lesson_id: str) -> LessonProgress:
        """Record a completion. Completing a lesson twice refreshes its timestamp."""
        if lesson_id not in LESSON_CATALOG:
            raise ValidationError(f"Unknown lesson: {lesson_id}")

        progress = (
            db.execute(
                select(LessonProgress).where(LessonProgress.user_id == user_id, LessonProgress.lesson_id == lesson_id)
            )
            .scalars()
            .first()
        )
        if progress is None:
            progress = LessonProgress(user_id=user_id, lesson_id=lesson_id)
            db.add(progress)
        progress.completed = True
        progress.completed_at = datetime.utcnow()
        db.commit()
        db.refresh(progress)
        return progress

    def get_user_progress(self, db: Session, user_id: int) -> list[LessonProgress]:
        return list(
            db.execute(
                select(LessonProgress).where(LessonProgress.user_id == user_id).order_by(LessonProgress.lesson_id)
            )
            .scalars()
            .all()
        )

    def get_completed_count(self, db: Session, user_id: int) -> int:
        return (
            db.execute(
                select(func.count(LessonProgress.id)).where(
                    LessonProgress.user_id == user_id, LessonProgress.completed.is_(True)
                )
            ).scalar()
            or 0
        )

    def summarize_progress(self, progress: list[LessonProgress]) -> dict:
        """Build the admin dashboard summary for one user's progress rows."""
        completed = [p for p in progress if p.completed]

        pillar_progress = {}
        for pillar_number in range(1, PILLAR_COUNT + 1):
            pillar = f"pillar{pillar_number}"
            done = sum(1 for p in completed if pillar_of(p.lesson_id) == pillar)
            pillar_progress[pillar] = {
                "completed": done,
                "total": LESSONS_PER_PILLAR,
                "percentage": round(done / LESSONS_PER_PILLAR * 100),
            }

        latest = max((p for p in completed if p.completed_at), key=lambda p: p.completed_at, default=None)

        return {
            "completedLessons": len(completed),
            "totalLessons": TOTAL_LESSONS,
            "overallPercentage": round(len(completed) / TOTAL_LESSONS * 100),
            "pillarProgress": pillar_progress,
            "currentPillar": pillar_of(latest.lesson_id) if latest else None,
            "currentLesson": latest.lesson_id if latest else None,
            "lastActivity": latest.completed_at if latest else None,
        }


_lesson_service: LessonService | None = None


def get_lesson_service() -> LessonService:
    """Get singleton lesson service instance."""
    global _lesson_service
    if _lesson_service is None:
        _lesson_service = LessonService()
    return _lesson_service
