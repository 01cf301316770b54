"""Pydantic schemas for admin endpoints."""

from datetime import datetime

from pydantic import field_validator

from financeu.models.user import Role
from financeu.schemas.auth import UserResponse
from financeu.schemas.base import CamelModel
from financeu.schemas.users import MembershipUpdateRequest


class PillarProgress(CamelModel):
    completed: int
    total: int
    percentage: int


class ProgressSummary(CamelModel):
    completed_lessons: int
    total_lessons: int
    overall_percentage: int
    pillar_progress: dict[str, PillarProgress]
    current_pillar: str | None
    current_lesson: str | None
    last_activity: datetime | None


class AdminUserResponse(UserResponse):
    role: str
    progress: ProgressSummary


class AdminUserListResponse(CamelModel):
    users: list[AdminUserResponse]
    total: int


class TierUpdateRequest(MembershipUpdateRequest):
    pass


class RoleUpdateRequest(CamelModel):
    role: str

    @field_validator("role")
    @classmethod
    def role_known(cls, v: str) -> str:
        if v not in {role.value for role in Role}:
            raise ValueError("Invalid role")
        return v


class SweepResponse(CamelModel):
    deleted: int
