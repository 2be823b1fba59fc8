# backend/models/user_progress.py

from sqlalchemy import Column, String, Integer, DateTime, func
from db import Base


class UserProgress(Base):
    __tablename__ = "user_progress"

    user_id = Column(String, primary_key=True, index=True)
    total_xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    level_title = Column(String, nullable=False, default="Prompt Curious")
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    lessons_completed = Column(Integer, nullable=False, default=0)
    last_active_at = Column(DateTime(timezone=True), server_default=func.now())
