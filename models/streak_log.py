# backend/models/streak_log.py

from sqlalchemy import Column, String, Integer, Date, DateTime, UniqueConstraint, func
from db import Base


class StreakLog(Base):
    __tablename__ = "streak_logs"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_streak_logs_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    date = Column(Date, nullable=False)
    bonus_xp = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
