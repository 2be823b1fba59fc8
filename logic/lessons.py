# backend/logic/lessons.py
import logging
from typing import Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from logic.badges import BadgeEvaluator
from logic.errors import ConflictError, NotFoundError
from logic.progress import ProgressService
from logic.scoring import lesson_xp_with_bonuses
from models.lesson import Lesson
from models.lesson_completion import LessonCompletion
from models.user_progress import UserProgress

logger = logging.getLogger(__name__)


class LessonService:
    """Lesson completion: the main XP-earning event.

    A lesson counts once per user. The unique (user_id, lesson_id)
    constraint backs the existence check when two completions race.
    """

    def __init__(self, db: Session):
        self.db = db

    def _is_completed(self, user_id: str, lesson_id: str) -> bool:
        done = self.db.query(LessonCompletion.id).filter(
            LessonCompletion.user_id == user_id, LessonCompletion.lesson_id == lesson_id
        )
        return done.first() is not None

    def complete_lesson(self, lesson_id: str, user_id: str, time_spent_seconds: int,
                        quiz_score: int = 0) -> Dict:
        lesson = self.db.query(Lesson).filter_by(id=lesson_id).first()
        if lesson is None:
            raise NotFoundError(f"Lesson not found: {lesson_id}")

        if self._is_completed(user_id, lesson_id):
            raise ConflictError(f"Lesson already completed: {lesson_id}")

        progress = self.db.query(UserProgress).filter_by(user_id=user_id).first()
        xp = lesson_xp_with_bonuses(
            lesson.xp_reward,
            time_spent_seconds,
            lesson.estimated_minutes,
            quiz_score=quiz_score,
            current_streak=progress.current_streak if progress else 0,
        )

        completion = LessonCompletion(
            user_id=user_id,
            lesson_id=lesson_id,
            time_spent_seconds=time_spent_seconds,
            xp_earned=xp["total_xp"],
        )
        self.db.add(completion)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Concurrent completion of %s by %s rejected", lesson_id, user_id)
            raise ConflictError(f"Lesson already completed: {lesson_id}")

        if progress is not None:
            self.db.query(UserProgress).filter_by(user_id=user_id).update(
                {UserProgress.lessons_completed: UserProgress.lessons_completed + 1},
                synchronize_session=False,
            )
        self.db.commit()
        self.db.refresh(completion)

        logger.info("Lesson %s completed by %s (+%d XP)", lesson_id, user_id, xp["total_xp"])

        added = ProgressService(self.db).add_xp(user_id, xp["total_xp"])
        badges = BadgeEvaluator(self.db).check_and_award_badges(user_id)

        return {
            "lesson_id": lesson_id,
            "xp_earned": xp["total_xp"],
            "breakdown": xp["breakdown"],
            "completed_at": completion.completed_at,
            "leveled_up": bool(added and added["leveled_up"]),
            "badges": badges,
        }
