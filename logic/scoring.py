# backend/logic/scoring.py
from typing import Dict


QUIZ_BONUSES = {
    "perfect": 50,    # 100%
    "excellent": 25,  # 90%+
    "good": 10,       # 70%+
}

SPEED_BONUS_XP = 25


def percentage(part: int, whole: int) -> int:
    """Integer percentage of part/whole, rounding halves up."""
    return (part * 200 + whole) // (whole * 2)


def streak_bonus(streak: int) -> int:
    if streak >= 30:
        return 100
    elif streak >= 14:
        return 50
    elif streak >= 7:
        return 25
    elif streak >= 3:
        return 10
    else:
        return 5


def streak_multiplier(streak: int) -> float:
    if streak >= 30:
        return 1.5
    elif streak >= 14:
        return 1.3
    elif streak >= 7:
        return 1.2
    elif streak >= 3:
        return 1.1
    else:
        return 1.0


def quiz_bonus(score: int) -> int:
    if score >= 100:
        return QUIZ_BONUSES["perfect"]
    elif score >= 90:
        return QUIZ_BONUSES["excellent"]
    elif score >= 70:
        return QUIZ_BONUSES["good"]
    else:
        return 0


def lesson_xp_with_bonuses(base_xp: int, time_spent_seconds: int, estimated_minutes: int,
                           quiz_score: int = 0, current_streak: int = 0) -> Dict:
    """XP for a completed lesson.

    Speed and quiz bonuses are added to the base first, then the streak
    multiplier is applied to the sum and the result floored.
    """
    estimated_seconds = estimated_minutes * 60
    speed = SPEED_BONUS_XP if estimated_seconds > 0 and time_spent_seconds / estimated_seconds < 0.8 else 0
    quiz = quiz_bonus(quiz_score)

    base_with_bonuses = base_xp + speed + quiz
    multiplier = streak_multiplier(current_streak)

    return {
        "total_xp": int(base_with_bonuses * multiplier),
        "breakdown": {
            "base": base_xp,
            "speed_bonus": speed,
            "quiz_bonus": quiz,
            "base_with_bonuses": base_with_bonuses,
            "streak_multiplier": multiplier,
        },
    }
