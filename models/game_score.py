# backend/models/game_score.py

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, Index
from db import Base


class GameScore(Base):
    __tablename__ = "game_scores"
    __table_args__ = (Index("ix_game_scores_scope", "game_type", "level", "score"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    game_type = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    level = Column(Integer, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
