"""User model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from financeu.database import Base


class MembershipTier(str, enum.Enum):
    """Membership tiers, lowest first."""

    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """Application user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    display_name = Column(String(256), nullable=False)
    membership_tier = Column(String(16), nullable=False, default=MembershipTier.FREE.value)
    role = Column(String(16), nullable=False, default=Role.USER.value)
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), nullable=True, index=True)
    verification_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("membership_tier IN ('free', 'premium', 'pro')", name="ck_users_membership_tier"),
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )
