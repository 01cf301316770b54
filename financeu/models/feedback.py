"""Feedback model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from financeu.database import Base

FEEDBACK_TYPES = ("Bug Report", "Feature Request", "General Feedback", "Compliment")


class Feedback(Base):
    """Feedback entry submitted from the public feedback form."""

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=True)
    email = Column(String(256), nullable=True)
    feedback_type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
