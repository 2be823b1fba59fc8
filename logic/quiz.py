# backend/logic/quiz.py
from typing import Dict, List

from sqlalchemy.orm import Session

from logic.errors import InvalidRequestError, NotFoundError
from logic.scoring import percentage, quiz_bonus
from models.lesson import Lesson

DEFAULT_PASSING_SCORE = 70


def grade_quiz(quiz: Dict, answers: List[Dict]) -> Dict:
    """Grade answers against a quiz definition.

    ``answers`` is a list of ``{"question_id", "selected_answer"}``. Answers
    are compared to ``correct_answer`` by plain equality, so callers must
    stringify booleans and numbers the same way the quiz content does.
    """
    questions = (quiz or {}).get("questions") or []
    if not questions:
        raise InvalidRequestError("Quiz has no questions")

    by_id = {q["id"]: q for q in questions}
    answered_ids = [a["question_id"] for a in answers]

    if len(set(answered_ids)) != len(by_id):
        raise InvalidRequestError("All questions must be answered")
    if len(set(answered_ids)) != len(answered_ids):
        raise InvalidRequestError("Each question must be answered once")
    for question_id in answered_ids:
        if question_id not in by_id:
            raise InvalidRequestError(f"Question not found: {question_id}")

    results = []
    correct = 0
    for answer in answers:
        question = by_id[answer["question_id"]]
        is_correct = answer["selected_answer"] == question["correct_answer"]
        if is_correct:
            correct += 1
        result = {
            "question_id": question["id"],
            "is_correct": is_correct,
            "selected_answer": answer["selected_answer"],
            "correct_answer": question["correct_answer"],
        }
        if question.get("explanation") is not None:
            result["explanation"] = question["explanation"]
        results.append(result)

    total = len(questions)
    score = percentage(correct, total)
    passing_score = quiz.get("passing_score") or DEFAULT_PASSING_SCORE
    passed = score >= passing_score

    return {
        "score": score,
        "passed": passed,
        "total_questions": total,
        "correct_answers": correct,
        "xp_bonus": quiz_bonus(score) if passed else 0,
        "results": results,
    }


class QuizScorer:
    def __init__(self, db: Session):
        self.db = db

    def submit_quiz(self, lesson_id: str, user_id: str, answers: List[Dict]) -> Dict:
        lesson = self.db.query(Lesson).filter_by(id=lesson_id).first()
        if lesson is None:
            raise NotFoundError(f"Lesson not found: {lesson_id}")
        if not lesson.quiz:
            raise InvalidRequestError("This lesson has no quiz")

        return grade_quiz(lesson.quiz, answers)
