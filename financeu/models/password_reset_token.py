"""Password reset token model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from financeu.database import Base


class PasswordResetToken(Base):
    """Single-use password reset code, owned by an email address."""

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), nullable=False, index=True)
    token = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("ix_password_reset_tokens_email_token", "email", "token"),)
