# backend/logic/streaks.py
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from logic.badges import BadgeEvaluator
from logic.levels import level_for_xp, title_for_level
from logic.scoring import streak_bonus
from models.streak_log import StreakLog
from models.user_progress import UserProgress

logger = logging.getLogger(__name__)


class StreakTracker:
    """Daily check-ins.

    One StreakLog row per user per calendar day. The unique (user_id, date)
    constraint is what makes a second check-in on the same day a no-op when
    two requests race past the existence check.
    """

    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today

    def _has_log(self, user_id: str, day: date) -> bool:
        exists = self.db.query(StreakLog.id).filter(StreakLog.user_id == user_id, StreakLog.date == day)
        return exists.first() is not None

    def _already_checked_in(self, user_id: str) -> Dict:
        progress = self.db.query(UserProgress).filter_by(user_id=user_id).first()
        return {
            "current_streak": progress.current_streak if progress else 0,
            "streak_bonus_xp": 0,
            "already_checked_in": True,
        }

    def checkin(self, user_id: str) -> Dict:
        today = self.today()

        if self._has_log(user_id, today):
            return self._already_checked_in(user_id)

        continued = self._has_log(user_id, today - timedelta(days=1))
        progress = self.db.query(UserProgress).filter_by(user_id=user_id).first()

        old_streak = progress.current_streak if progress else 0
        new_streak = old_streak + 1 if continued else 1
        bonus = streak_bonus(new_streak)

        self.db.add(StreakLog(user_id=user_id, date=today, bonus_xp=bonus))
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Concurrent check-in for %s on %s, keeping the first one", user_id, today)
            return self._already_checked_in(user_id)

        if progress is None:
            # Nothing to update; the log alone records the day
            self.db.commit()
            logger.info("Check-in for %s without progress record (streak %d)", user_id, new_streak)
            return {
                "current_streak": new_streak,
                "streak_bonus_xp": bonus,
                "already_checked_in": False,
            }

        self.db.query(UserProgress).filter_by(user_id=user_id).update(
            {
                UserProgress.current_streak: new_streak,
                UserProgress.longest_streak: max(progress.longest_streak, new_streak),
                UserProgress.total_xp: UserProgress.total_xp + bonus,
                UserProgress.last_active_at: datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )
        self.db.refresh(progress)
        progress.level = level_for_xp(progress.total_xp)
        progress.level_title = title_for_level(progress.level)
        self.db.commit()

        logger.info("Check-in for %s: streak %d, +%d XP", user_id, new_streak, bonus)

        BadgeEvaluator(self.db).check_and_award_badges(user_id)

        return {
            "current_streak": new_streak,
            "streak_bonus_xp": bonus,
            "already_checked_in": False,
        }
