"""Pydantic schemas for lesson endpoints."""

from datetime import datetime

from pydantic import field_validator

from financeu.schemas.base import CamelModel, required_text


class LessonResponse(CamelModel):
    id: str
    pillar: str
    number: int
    title: str
    required_tier: str
    accessible: bool


class LessonListResponse(CamelModel):
    lessons: list[LessonResponse]


class LessonProgressResponse(CamelModel):
    lesson_id: str
    completed: bool
    completed_at: datetime | None


class ProgressListResponse(CamelModel):
    progress: list[LessonProgressResponse]


class CompleteLessonRequest(CamelModel):
    lesson_id: str

    @field_validator("lesson_id")
    @classmethod
    def lesson_id_required(cls, v: str) -> str:
        return required_text(v, "lessonId")


class CompleteLessonResponse(CamelModel):
    message: str
    lesson_id: str
