# backend/logic/badges.py
import logging
from enum import Enum
from typing import Dict, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.badge import Badge, UserBadge
from models.user_progress import UserProgress

logger = logging.getLogger(__name__)


class RequirementKind(Enum):
    """Progress thresholds a badge can ask for, keyed by their catalog name."""

    LESSONS_COMPLETED = "lessonsCompleted"
    STREAK = "streak"
    LEVEL = "level"
    TOTAL_XP = "totalXp"

    def current_value(self, progress: UserProgress) -> int:
        if self is RequirementKind.LESSONS_COMPLETED:
            return progress.lessons_completed
        if self is RequirementKind.STREAK:
            return progress.current_streak
        if self is RequirementKind.LEVEL:
            return progress.level
        return progress.total_xp


def parse_requirement(requirement: Dict) -> List[Tuple[RequirementKind, int]]:
    # Keys outside the four known kinds are ignored
    known = {kind.value: kind for kind in RequirementKind}
    return [
        (known[key], int(threshold))
        for key, threshold in (requirement or {}).items()
        if key in known and threshold is not None
    ]


def requirement_met(requirement: Dict, progress: UserProgress) -> bool:
    """A badge is earned when ANY of its listed thresholds is reached."""
    return any(
        kind.current_value(progress) >= threshold
        for kind, threshold in parse_requirement(requirement)
    )


def badge_to_dict(badge: Badge) -> Dict:
    return {
        "id": badge.id,
        "slug": badge.slug,
        "name": badge.name,
        "description": badge.description,
        "icon": badge.icon,
        "category": badge.category,
        "xp_bonus": badge.xp_bonus,
    }


class BadgeEvaluator:
    def __init__(self, db: Session):
        self.db = db

    def check_and_award_badges(self, user_id: str) -> List[Dict]:
        progress = self.db.query(UserProgress).filter_by(user_id=user_id).first()
        if progress is None:
            return []

        badges = self.db.query(Badge).order_by(Badge.id).all()
        earned_ids = {
            badge_id for (badge_id,) in
            self.db.query(UserBadge.badge_id).filter(UserBadge.user_id == user_id).all()
        }

        awarded = []
        for badge in badges:
            if badge.id in earned_ids:
                continue
            if not requirement_met(badge.requirement, progress):
                continue

            # A concurrent evaluator may have inserted the same award; the
            # unique (user_id, badge_id) constraint decides who wins.
            try:
                with self.db.begin_nested():
                    self.db.add(UserBadge(user_id=user_id, badge_id=badge.id))
            except IntegrityError:
                logger.warning("Badge %s already awarded to %s concurrently, skipping", badge.slug, user_id)
                continue

            if badge.xp_bonus > 0:
                # Level and title are left as they are until the next add_xp/checkin
                self.db.query(UserProgress).filter_by(user_id=user_id).update(
                    {UserProgress.total_xp: UserProgress.total_xp + badge.xp_bonus},
                    synchronize_session=False,
                )

            logger.info("Awarded badge %s to %s (+%d XP)", badge.slug, user_id, badge.xp_bonus)
            awarded.append(badge_to_dict(badge))

        self.db.commit()
        return awarded

    def list_badges(self, user_id: str) -> Dict:
        earned = (
            self.db.query(UserBadge)
            .filter_by(user_id=user_id)
            .order_by(UserBadge.earned_at)
            .all()
        )
        earned_ids = {ub.badge_id for ub in earned}

        locked = (
            self.db.query(Badge)
            .filter(Badge.is_secret.is_(False))
            .order_by(Badge.category, Badge.id)
            .all()
        )

        return {
            "earned": [dict(badge_to_dict(ub.badge), earned_at=ub.earned_at) for ub in earned],
            "locked": [badge_to_dict(b) for b in locked if b.id not in earned_ids],
        }
