# backend/logic/leaderboard.py
"""Game score leaderboards.

Two views over the append-only ``game_scores`` table:

* raw: every attempt is a row on the board;
* unique users: each user's attempts are first reduced to their best one
  (highest score, earliest attempt on ties), then sorted and paginated the
  same way as the raw view.

Both reductions run in the database. Ranks on a page are positional
(``offset + index + 1``); ``user_rank`` instead uses competition ranking,
so users with equal best scores share a rank.

The XP boards (global total XP, weekly lesson XP) live here too.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from logic.errors import NotFoundError, ValidationError
from models.game_score import GameScore
from models.lesson_completion import LessonCompletion
from models.user_progress import UserProgress

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

XP_PERIODS = ("global", "weekly")


def _check_page(limit: int, offset: int):
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValidationError("offset must not be negative")


def _rank_entries(rows, offset: int, viewer_user_id: Optional[str]) -> List[Dict]:
    return [
        {
            "rank": offset + index + 1,
            "score_id": row.id,
            "user_id": row.user_id,
            "score": row.score,
            "level": row.level,
            "created_at": row.created_at,
            "is_current_user": row.user_id == viewer_user_id,
        }
        for index, row in enumerate(rows)
    ]


def score_to_dict(score: GameScore) -> Dict:
    return {
        "id": score.id,
        "user_id": score.user_id,
        "game_type": score.game_type,
        "score": score.score,
        "level": score.level,
        "metadata": score.metadata_,
        "created_at": score.created_at,
    }


class LeaderboardRanker:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today

    def _scope(self, game_type: str, level: Optional[int]):
        filters = [GameScore.game_type == game_type]
        if level is not None:
            filters.append(GameScore.level == level)
        return filters

    # ---- writes ----

    def submit_score(self, user_id: str, game_type: str, score: int,
                     level: Optional[int] = None, metadata: Optional[Dict] = None) -> Dict:
        if not game_type:
            raise ValidationError("game_type is required")

        row = GameScore(
            user_id=user_id,
            game_type=game_type,
            score=score,
            level=level,
            metadata_=metadata or None,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)

        logger.info("Score %d submitted for %s on %s", score, user_id, game_type)
        return score_to_dict(row)

    def delete_score(self, score_id: int):
        row = self.db.query(GameScore).filter_by(id=score_id).first()
        if row is None:
            raise NotFoundError(f"Score with ID {score_id} not found")

        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted score %s", score_id)

    # ---- views ----

    def top_scores(self, game_type: str, level: Optional[int] = None, limit: int = 50,
                   offset: int = 0, viewer_user_id: Optional[str] = None) -> Dict:
        _check_page(limit, offset)
        scope = self._scope(game_type, level)

        rows = (
            self.db.query(GameScore)
            .filter(*scope)
            .order_by(GameScore.score.desc(), GameScore.created_at.asc(), GameScore.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        total = self.db.query(func.count(GameScore.id)).filter(*scope).scalar()

        return {
            "game_type": game_type,
            "entries": _rank_entries(rows, offset, viewer_user_id),
            "total": total,
            "offset": offset,
            "limit": limit,
        }

    def top_scores_unique_users(self, game_type: str, level: Optional[int] = None, limit: int = 50,
                                offset: int = 0, viewer_user_id: Optional[str] = None) -> Dict:
        _check_page(limit, offset)
        scope = self._scope(game_type, level)

        # stage 1: one row per user, their best attempt
        ranked = (
            self.db.query(
                GameScore.id,
                GameScore.user_id,
                GameScore.score,
                GameScore.level,
                GameScore.created_at,
                func.row_number().over(
                    partition_by=GameScore.user_id,
                    order_by=(GameScore.score.desc(), GameScore.created_at.asc(), GameScore.id.asc()),
                ).label("rn"),
            )
            .filter(*scope)
            .subquery()
        )

        # stage 2: sort the bests and cut the page
        rows = (
            self.db.query(ranked.c.id, ranked.c.user_id, ranked.c.score, ranked.c.level, ranked.c.created_at)
            .filter(ranked.c.rn == 1)
            .order_by(ranked.c.score.desc(), ranked.c.created_at.asc(), ranked.c.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        total = self.db.query(func.count(func.distinct(GameScore.user_id))).filter(*scope).scalar()

        return {
            "game_type": game_type,
            "entries": _rank_entries(rows, offset, viewer_user_id),
            "total": total,
            "offset": offset,
            "limit": limit,
        }

    def user_rank(self, user_id: str, game_type: str, level: Optional[int] = None) -> int:
        """Competition rank of the user's best score; 0 when unranked."""
        scope = self._scope(game_type, level)

        best = (
            self.db.query(func.max(GameScore.score))
            .filter(GameScore.user_id == user_id, *scope)
            .scalar()
        )
        if best is None:
            return 0

        bests = (
            self.db.query(GameScore.user_id, func.max(GameScore.score).label("best"))
            .filter(*scope)
            .group_by(GameScore.user_id)
            .subquery()
        )
        better = self.db.query(func.count()).select_from(bests).filter(bests.c.best > best).scalar()
        return better + 1

    def personal_bests(self, user_id: str) -> List[Dict]:
        rows = (
            self.db.query(GameScore)
            .filter_by(user_id=user_id)
            .order_by(GameScore.game_type, GameScore.score.desc(), GameScore.created_at.asc(), GameScore.id.asc())
            .all()
        )

        # rows arrive best-first within each game type
        out = {}
        for row in rows:
            entry = out.get(row.game_type)
            if entry is None:
                out[row.game_type] = {
                    "game_type": row.game_type,
                    "best_score": row.score,
                    "level": row.level,
                    "achieved_at": row.created_at,
                    "total_attempts": 1,
                }
            else:
                entry["total_attempts"] += 1
        return list(out.values())

    def personal_best_for_game(self, user_id: str, game_type: str) -> Optional[Dict]:
        best = (
            self.db.query(GameScore)
            .filter_by(user_id=user_id, game_type=game_type)
            .order_by(GameScore.score.desc(), GameScore.created_at.asc(), GameScore.id.asc())
            .first()
        )
        if best is None:
            return None

        attempts = (
            self.db.query(func.count(GameScore.id))
            .filter(GameScore.user_id == user_id, GameScore.game_type == game_type)
            .scalar()
        )
        return {
            "game_type": game_type,
            "best_score": best.score,
            "level": best.level,
            "achieved_at": best.created_at,
            "total_attempts": attempts,
        }

    def xp_leaderboard(self, viewer_user_id: Optional[str] = None, limit: int = 10,
                       period: str = "global") -> Dict:
        """Board of users by XP, plus the viewer's own rank.

        ``global`` ranks total XP; ``weekly`` ranks XP earned from lesson
        completions since the start of the current week (Sunday).
        """
        _check_page(limit, 0)
        if period not in XP_PERIODS:
            raise ValidationError(f"period must be one of {', '.join(XP_PERIODS)}")

        if period == "global":
            rows = (
                self.db.query(UserProgress.user_id, UserProgress.total_xp.label("xp"), UserProgress.level)
                .order_by(UserProgress.total_xp.desc(), UserProgress.user_id.asc())
                .limit(limit)
                .all()
            )
        else:
            weekly = self._weekly_xp().subquery()
            rows = (
                self.db.query(weekly.c.user_id, weekly.c.xp, func.coalesce(UserProgress.level, 1).label("level"))
                .outerjoin(UserProgress, UserProgress.user_id == weekly.c.user_id)
                .order_by(weekly.c.xp.desc(), weekly.c.user_id.asc())
                .limit(limit)
                .all()
            )

        # On-page ranks are positional; the off-page viewer gets a competition
        # rank, so with tied XP the two can differ.
        entries = [
            {
                "rank": index + 1,
                "user_id": row.user_id,
                "total_xp": row.xp,
                "level": row.level,
                "is_current_user": row.user_id == viewer_user_id,
            }
            for index, row in enumerate(rows)
        ]

        user_rank = next((e["rank"] for e in entries if e["is_current_user"]), 0)
        if not user_rank and viewer_user_id is not None:
            user_rank = self._xp_rank(viewer_user_id, period)

        return {"period": period, "entries": entries, "user_rank": user_rank}

    def _week_start(self) -> datetime:
        today = self.today()
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return datetime.combine(start, time.min)

    def _weekly_xp(self):
        return (
            self.db.query(LessonCompletion.user_id, func.sum(LessonCompletion.xp_earned).label("xp"))
            .filter(LessonCompletion.completed_at >= self._week_start())
            .group_by(LessonCompletion.user_id)
        )

    def _xp_rank(self, user_id: str, period: str) -> int:
        if period == "global":
            viewer = self.db.query(UserProgress).filter_by(user_id=user_id).first()
            if viewer is None:
                return 0
            ahead = self.db.query(func.count(UserProgress.user_id)).filter(
                UserProgress.total_xp > viewer.total_xp
            ).scalar()
            return ahead + 1

        weekly = self._weekly_xp().subquery()
        mine = self.db.query(weekly.c.xp).filter(weekly.c.user_id == user_id).scalar()
        if mine is None:
            return 0
        ahead = self.db.query(func.count()).select_from(weekly).filter(weekly.c.xp > mine).scalar()
        return ahead + 1
