import pytest

from logic.scoring import lesson_xp_with_bonuses, percentage, quiz_bonus, streak_bonus


@pytest.mark.parametrize("streak,bonus", [
    (1, 5), (2, 5), (3, 10), (6, 10), (7, 25), (13, 25), (14, 50), (29, 50), (30, 100), (365, 100),
])
def test_streak_bonus_table(streak, bonus):
    assert streak_bonus(streak) == bonus


@pytest.mark.parametrize("score,bonus", [(100, 50), (90, 25), (99, 25), (70, 10), (69, 0)])
def test_quiz_bonus_table(score, bonus):
    assert quiz_bonus(score) == bonus


def test_percentage_rounds_halves_up():
    assert percentage(1, 8) == 13
    assert percentage(2, 3) == 67
    assert percentage(7, 10) == 70


def test_lesson_xp_fast_with_perfect_quiz_and_week_streak():
    result = lesson_xp_with_bonuses(100, time_spent_seconds=300, estimated_minutes=10,
                                    quiz_score=100, current_streak=7)
    assert result["breakdown"]["speed_bonus"] == 25
    assert result["breakdown"]["quiz_bonus"] == 50
    assert result["breakdown"]["base_with_bonuses"] == 175
    assert result["total_xp"] == 210


def test_lesson_xp_slow_without_bonuses():
    result = lesson_xp_with_bonuses(100, time_spent_seconds=900, estimated_minutes=10)
    assert result["total_xp"] == 100
    assert result["breakdown"]["streak_multiplier"] == 1.0
