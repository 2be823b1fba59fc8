#backend/main.py
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from db import SessionLocal, ALLOWED_ORIGINS, LOG_LEVEL
from logic.badges import BadgeEvaluator
from logic.errors import ConflictError, InvalidRequestError, NotFoundError, ValidationError
from logic.leaderboard import LeaderboardRanker, MAX_PAGE_SIZE
from logic.lessons import LessonService
from logic.progress import ProgressService
from logic.quiz import QuizScorer
from logic.streaks import StreakTracker

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# --------- App Setup ---------
app = FastAPI(title="Learning Gamification API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --------- DB Dependency ---------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# --------- Error Mapping ---------
@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidRequestError)
def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# --------- Pydantic Models ---------
class AddXpInput(BaseModel):
    amount: int = Field(..., examples=[100])


class QuizAnswer(BaseModel):
    question_id: str = Field(..., examples=["q1"])
    selected_answer: str = Field(..., examples=["b"])


class QuizSubmission(BaseModel):
    user_id: str = Field(..., examples=["anon_001"])
    answers: List[QuizAnswer]


class LessonCompletionInput(BaseModel):
    user_id: str = Field(..., examples=["anon_001"])
    time_spent_seconds: int = Field(..., ge=0, examples=[300])
    quiz_score: int = Field(0, ge=0, le=100, examples=[90])


class ScoreInput(BaseModel):
    user_id: str = Field(..., examples=["anon_001"])
    game_type: str = Field(..., min_length=1, examples=["embedding-match"])
    score: int = Field(..., ge=0, examples=[850])
    level: Optional[int] = Field(None, ge=1, examples=[1])
    metadata: Optional[Dict] = Field(None, examples=[{"time_remaining": 45}])


# --------- Progress ---------
@app.post("/progress/{user_id}/xp")
def add_xp(user_id: str, data: AddXpInput, db: Session = Depends(get_db)):
    # result is null when the user has no progress record yet
    return {"result": ProgressService(db).add_xp(user_id, data.amount)}


@app.get("/progress/{user_id}")
def get_progress(user_id: str, db: Session = Depends(get_db)):
    return {"progress": ProgressService(db).get_progress(user_id)}


# --------- Streaks ---------
@app.post("/streaks/{user_id}/checkin")
def checkin(user_id: str, db: Session = Depends(get_db)):
    return StreakTracker(db).checkin(user_id)


# --------- Badges ---------
@app.get("/badges/{user_id}")
def list_badges(user_id: str, db: Session = Depends(get_db)):
    return BadgeEvaluator(db).list_badges(user_id)


@app.post("/badges/{user_id}/check")
def check_badges(user_id: str, db: Session = Depends(get_db)):
    return {"awarded": BadgeEvaluator(db).check_and_award_badges(user_id)}


# --------- Lessons ---------
@app.post("/lessons/{lesson_id}/complete")
def complete_lesson(lesson_id: str, data: LessonCompletionInput, db: Session = Depends(get_db)):
    return LessonService(db).complete_lesson(
        lesson_id, data.user_id, data.time_spent_seconds, quiz_score=data.quiz_score
    )


# --------- Quiz ---------
@app.post("/lessons/{lesson_id}/quiz")
def submit_quiz(lesson_id: str, data: QuizSubmission, db: Session = Depends(get_db)):
    answers = [a.model_dump() for a in data.answers]
    return QuizScorer(db).submit_quiz(lesson_id, data.user_id, answers)


# --------- Game Scores & Leaderboards ---------
@app.post("/games/scores", status_code=201)
def submit_score(data: ScoreInput, db: Session = Depends(get_db)):
    return LeaderboardRanker(db).submit_score(
        data.user_id, data.game_type, data.score, level=data.level, metadata=data.metadata
    )


@app.delete("/games/scores/{score_id}", status_code=204)
def delete_score(score_id: int, db: Session = Depends(get_db)):
    LeaderboardRanker(db).delete_score(score_id)


@app.get("/games/personal-bests/{user_id}")
def personal_bests(user_id: str, db: Session = Depends(get_db)):
    return {"personal_bests": LeaderboardRanker(db).personal_bests(user_id)}


@app.get("/games/{game_type}/personal-best/{user_id}")
def personal_best_for_game(game_type: str, user_id: str, db: Session = Depends(get_db)):
    best = LeaderboardRanker(db).personal_best_for_game(user_id, game_type)
    if best is None:
        raise NotFoundError(f"No scores for {user_id} in {game_type}")
    return best


@app.get("/games/{game_type}/leaderboard")
def game_leaderboard(
    game_type: str,
    user_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    level: Optional[int] = None,
    unique: bool = False,
    db: Session = Depends(get_db),
):
    ranker = LeaderboardRanker(db)
    if unique:
        return ranker.top_scores_unique_users(game_type, level, limit, offset, user_id)
    return ranker.top_scores(game_type, level, limit, offset, user_id)


@app.get("/games/{game_type}/rank/{user_id}")
def game_rank(game_type: str, user_id: str, level: Optional[int] = None, db: Session = Depends(get_db)):
    return {"rank": LeaderboardRanker(db).user_rank(user_id, game_type, level)}


@app.get("/leaderboard/xp")
def xp_leaderboard(
    user_id: Optional[str] = None,
    limit: int = 10,
    period: str = "global",
    db: Session = Depends(get_db),
):
    return LeaderboardRanker(db).xp_leaderboard(user_id, min(limit, MAX_PAGE_SIZE), period=period)
