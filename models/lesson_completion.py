# backend/models/lesson_completion.py

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from db import Base


class LessonCompletion(Base):
    __tablename__ = "lesson_completions"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_lesson_completions_user_lesson"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    lesson_id = Column(String, ForeignKey("lessons.id"), nullable=False)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    xp_earned = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime, default=datetime.utcnow, index=True)
