"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import AliasChoices, Field, field_validator

from financeu.schemas.base import CamelModel, required_text
from financeu.services.credential_store import PublicUser


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return required_text(v, "email")


class RegisterRequest(CamelModel):
    email: str
    password: str
    name: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        v = required_text(v, "email")
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("email is not a valid email address")
        return v

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return required_text(v, "name")


class ForgotPasswordRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return required_text(v, "email")


class ResetPasswordRequest(CamelModel):
    email: str
    token: str = Field(validation_alias=AliasChoices("token", "resetCode", "reset_code"))
    new_password: str = Field(validation_alias=AliasChoices("newPassword", "new_password"))

    @field_validator("email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return required_text(v, "email")

    @field_validator("token")
    @classmethod
    def token_required(cls, v: str) -> str:
        return required_text(v, "token")


class VerifyEmailRequest(CamelModel):
    email: str
    token: str

    @field_validator("email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return required_text(v, "email")

    @field_validator("token")
    @classmethod
    def token_required(cls, v: str) -> str:
        return required_text(v, "token")


class ResendVerificationRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return required_text(v, "email")


class UserResponse(CamelModel):
    id: int
    email: str
    name: str
    membership_tier: str
    email_verified: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            membership_tier=user.membership_tier,
            email_verified=user.email_verified,
            created_at=user.created_at,
        )


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    token: str


class CurrentUserResponse(CamelModel):
    user: UserResponse


class MessageResponse(CamelModel):
    message: str


class ForgotPasswordResponse(CamelModel):
    message: str
    reset_code: str | None = None
