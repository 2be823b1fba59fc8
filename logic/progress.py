# backend/logic/progress.py
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from logic.levels import (
    level_for_xp,
    title_for_level,
    xp_for_next_level,
    xp_progress_in_level,
    xp_progress_percent,
)
from models.badge import UserBadge
from models.user_progress import UserProgress

logger = logging.getLogger(__name__)


def progress_to_dict(progress: UserProgress) -> Dict:
    return {
        "user_id": progress.user_id,
        "total_xp": progress.total_xp,
        "level": progress.level,
        "level_title": progress.level_title,
        "current_streak": progress.current_streak,
        "longest_streak": progress.longest_streak,
        "lessons_completed": progress.lessons_completed,
        "last_active_at": progress.last_active_at,
    }


class ProgressService:
    """XP and level bookkeeping on a user's progress row.

    A missing progress row is not an error: reads and ``add_xp`` return None
    and callers decide what to do.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_row(self, user_id: str) -> Optional[UserProgress]:
        return self.db.query(UserProgress).filter_by(user_id=user_id).first()

    def add_xp(self, user_id: str, amount: int) -> Optional[Dict]:
        progress = self.get_row(user_id)
        if progress is None:
            logger.info("add_xp skipped: no progress for user %s", user_id)
            return None

        old_level = level_for_xp(progress.total_xp)
        new_total = progress.total_xp + amount
        new_level = level_for_xp(new_total)
        leveled_up = new_level > old_level

        progress.total_xp = new_total
        progress.level = new_level
        progress.level_title = title_for_level(new_level)
        progress.last_active_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(progress)

        if leveled_up:
            logger.info("User %s leveled up to %d (%s)", user_id, new_level, progress.level_title)

        return {
            "progress": progress_to_dict(progress),
            "leveled_up": leveled_up,
            "xp_added": amount,
        }

    def get_progress(self, user_id: str) -> Optional[Dict]:
        progress = self.get_row(user_id)
        if progress is None:
            return None

        earned = (
            self.db.query(UserBadge)
            .filter_by(user_id=user_id)
            .order_by(UserBadge.earned_at)
            .all()
        )

        summary = progress_to_dict(progress)
        summary["xp_to_next_level"] = xp_for_next_level(progress.level) - progress.total_xp
        summary["xp_in_current_level"] = xp_progress_in_level(progress.total_xp)
        summary["xp_progress_percent"] = xp_progress_percent(progress.total_xp)
        summary["badges"] = [
            {
                "id": ub.badge.id,
                "slug": ub.badge.slug,
                "name": ub.badge.name,
                "icon": ub.badge.icon,
                "earned_at": ub.earned_at,
            }
            for ub in earned
        ]
        return summary
