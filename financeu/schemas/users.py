"""Pydantic schemas for user profile endpoints."""

from pydantic import field_validator

from financeu.models.user import MembershipTier
from financeu.schemas.auth import UserResponse
from financeu.schemas.base import CamelModel


class MembershipUpdateRequest(CamelModel):
    tier: str

    @field_validator("tier")
    @classmethod
    def tier_known(cls, v: str) -> str:
        if v not in {tier.value for tier in MembershipTier}:
            raise ValueError("Invalid membership tier")
        return v


class MembershipUpdateResponse(CamelModel):
    message: str
    tier: str
    token: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str


class ProfileStats(CamelModel):
    completed_lessons: int
    total_lessons: int


class ProfileResponse(CamelModel):
    user: UserResponse
    stats: ProfileStats
