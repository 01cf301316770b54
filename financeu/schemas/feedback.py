"""Pydantic schemas for feedback endpoints."""

from datetime import datetime

from pydantic import field_validator

from financeu.models.feedback import FEEDBACK_TYPES
from financeu.schemas.base import CamelModel

MIN_MESSAGE_LENGTH = 10


class FeedbackCreateRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    feedback_type: str
    message: str

    @field_validator("feedback_type")
    @classmethod
    def type_known(cls, v: str) -> str:
        if v not in FEEDBACK_TYPES:
            raise ValueError("Invalid feedback type")
        return v

    @field_validator("message")
    @classmethod
    def message_long_enough(cls, v: str) -> str:
        if len(v.strip()) < MIN_MESSAGE_LENGTH:
            raise ValueError(f"Message must be at least {MIN_MESSAGE_LENGTH} characters")
        return v


class FeedbackCreateResponse(CamelModel):
    message: str
    feedback_id: int


class FeedbackResponse(CamelModel):
    id: int
    name: str | None
    email: str | None
    feedback_type: str
    message: str
    created_at: datetime


class FeedbackListResponse(CamelModel):
    feedback: list[FeedbackResponse]
    total: int
