# backend/models/lesson.py

from sqlalchemy import Column, String, Integer, JSON
from db import Base


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    xp_reward = Column(Integer, nullable=False, default=100)
    estimated_minutes = Column(Integer, nullable=False, default=10)
    # {"questions": [{"id", "correct_answer", "explanation"}], "passing_score": 70}
    quiz = Column(JSON, nullable=True)
