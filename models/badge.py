# backend/models/badge.py

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from db import Base


class Badge(Base):
    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(String, default="")
    icon = Column(String, default="")
    category = Column(String, nullable=False, default="progress")
    # sparse thresholds, e.g. {"lessonsCompleted": 1} or {"streak": 7, "level": 5}
    requirement = Column(JSON, nullable=False, default=dict)
    xp_bonus = Column(Integer, nullable=False, default=0)
    is_secret = Column(Boolean, nullable=False, default=False)


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id"), nullable=False)
    earned_at = Column(DateTime, default=datetime.utcnow)

    badge = relationship(Badge)
