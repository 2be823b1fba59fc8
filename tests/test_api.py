import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from main import app, get_db
from models.lesson import Lesson


@pytest.fixture
def client(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_add_xp_unknown_user_returns_null(client):
    response = client.post("/progress/ghost/xp", json={"amount": 50})
    assert response.status_code == 200
    assert response.json() == {"result": None}


def test_add_xp_and_read_progress(client, make_progress):
    make_progress(total_xp=480)

    response = client.post("/progress/u1/xp", json={"amount": 40})
    assert response.json()["result"]["leveled_up"] is True

    progress = client.get("/progress/u1").json()["progress"]
    assert progress["total_xp"] == 520
    assert progress["level"] == 2


def test_checkin_twice(client, make_progress):
    make_progress()

    first = client.post("/streaks/u1/checkin").json()
    second = client.post("/streaks/u1/checkin").json()

    assert first["already_checked_in"] is False
    assert second == {"current_streak": 1, "streak_bonus_xp": 0, "already_checked_in": True}


def test_quiz_errors_map_to_status_codes(client, db):
    db.add(Lesson(id="l1", title="Tokens", quiz={"questions": [{"id": "q1", "correct_answer": "a"}]}))
    db.commit()

    missing = client.post("/lessons/nope/quiz", json={"user_id": "u1", "answers": []})
    assert missing.status_code == 404

    wrong = client.post("/lessons/l1/quiz", json={
        "user_id": "u1", "answers": [{"question_id": "q2", "selected_answer": "a"}],
    })
    assert wrong.status_code == 400
    assert "q2" in wrong.json()["detail"]

    ok = client.post("/lessons/l1/quiz", json={
        "user_id": "u1", "answers": [{"question_id": "q1", "selected_answer": "a"}],
    })
    assert ok.json()["score"] == 100


def test_scores_and_leaderboards(client):
    for user_id, score in [("a", 10), ("a", 40), ("b", 30)]:
        response = client.post("/games/scores", json={"user_id": user_id, "game_type": "tetris", "score": score})
        assert response.status_code == 201

    raw = client.get("/games/tetris/leaderboard", params={"user_id": "b"}).json()
    assert raw["total"] == 3

    unique = client.get("/games/tetris/leaderboard", params={"unique": True}).json()
    assert [e["user_id"] for e in unique["entries"]] == ["a", "b"]
    assert unique["total"] == 2

    assert client.get("/games/tetris/rank/b").json() == {"rank": 2}
    assert client.get("/games/tetris/leaderboard", params={"limit": 0}).status_code == 422


def test_negative_score_rejected(client):
    response = client.post("/games/scores", json={"user_id": "a", "game_type": "tetris", "score": -1})
    assert response.status_code == 422


def test_delete_missing_score(client):
    assert client.delete("/games/scores/999").status_code == 404


def test_complete_lesson_twice_conflicts(client, db, make_progress):
    make_progress()
    db.add(Lesson(id="l1", title="Tokens", xp_reward=100, estimated_minutes=10))
    db.commit()
    body = {"user_id": "u1", "time_spent_seconds": 900}

    first = client.post("/lessons/l1/complete", json=body)
    second = client.post("/lessons/l1/complete", json=body)

    assert first.status_code == 200
    assert first.json()["xp_earned"] == 100
    assert second.status_code == 409
    assert client.get("/progress/u1").json()["progress"]["lessons_completed"] == 1


def test_request_examples_in_openapi(client):
    schema = client.get("/openapi.json").json()["components"]["schemas"]
    assert schema["ScoreInput"]["properties"]["game_type"]["examples"] == ["embedding-match"]
    assert schema["LessonCompletionInput"]["properties"]["time_spent_seconds"]["examples"] == [300]
