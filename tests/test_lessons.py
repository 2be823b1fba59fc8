import pytest

from logic.errors import ConflictError, NotFoundError
from logic.lessons import LessonService
from models.lesson import Lesson
from models.lesson_completion import LessonCompletion
from models.user_progress import UserProgress


@pytest.fixture
def lesson(db):
    row = Lesson(id="l1", title="Tokens", xp_reward=100, estimated_minutes=10)
    db.add(row)
    db.commit()
    return row


def test_complete_lesson_awards_xp_and_counts(db, make_progress, lesson):
    make_progress()

    result = LessonService(db).complete_lesson("l1", "u1", time_spent_seconds=900)

    assert result["xp_earned"] == 100
    assert result["breakdown"]["speed_bonus"] == 0
    progress = db.query(UserProgress).filter_by(user_id="u1").one()
    assert progress.lessons_completed == 1
    assert progress.total_xp == 100


def test_complete_lesson_applies_bonuses(db, make_progress, lesson):
    make_progress(current_streak=7)

    result = LessonService(db).complete_lesson("l1", "u1", time_spent_seconds=300, quiz_score=90)

    assert result["breakdown"]["base_with_bonuses"] == 150
    assert result["xp_earned"] == 180


def test_first_lesson_badge_is_earned(db, make_progress, make_badge, lesson):
    make_progress()
    make_badge("first-lesson", {"lessonsCompleted": 1}, xp_bonus=50)

    result = LessonService(db).complete_lesson("l1", "u1", time_spent_seconds=900)

    assert [b["slug"] for b in result["badges"]] == ["first-lesson"]
    assert db.query(UserProgress).filter_by(user_id="u1").one().total_xp == 150


def test_complete_lesson_level_up(db, make_progress, lesson):
    make_progress(total_xp=450)

    result = LessonService(db).complete_lesson("l1", "u1", time_spent_seconds=900)

    assert result["leveled_up"] is True


def test_unknown_lesson(db, make_progress):
    make_progress()
    with pytest.raises(NotFoundError):
        LessonService(db).complete_lesson("nope", "u1", time_spent_seconds=60)


def test_second_completion_rejected(db, make_progress, lesson):
    make_progress()
    service = LessonService(db)
    service.complete_lesson("l1", "u1", time_spent_seconds=900)

    with pytest.raises(ConflictError):
        service.complete_lesson("l1", "u1", time_spent_seconds=900)

    progress = db.query(UserProgress).filter_by(user_id="u1").one()
    assert progress.lessons_completed == 1
    assert progress.total_xp == 100


def test_racing_completion_hits_unique_constraint(db, make_progress, lesson, monkeypatch):
    make_progress()
    db.add(LessonCompletion(user_id="u1", lesson_id="l1", xp_earned=100))
    db.commit()
    service = LessonService(db)
    monkeypatch.setattr(service, "_is_completed", lambda user_id, lesson_id: False)

    with pytest.raises(ConflictError):
        service.complete_lesson("l1", "u1", time_spent_seconds=900)

    assert db.query(LessonCompletion).filter_by(user_id="u1").count() == 1
    progress = db.query(UserProgress).filter_by(user_id="u1").one()
    assert progress.lessons_completed == 0
    assert progress.total_xp == 0


def test_completion_without_progress_is_recorded(db, lesson):
    result = LessonService(db).complete_lesson("l1", "ghost", time_spent_seconds=900)

    assert result["leveled_up"] is False
    assert result["badges"] == []
    assert db.query(LessonCompletion).filter_by(user_id="ghost").count() == 1
