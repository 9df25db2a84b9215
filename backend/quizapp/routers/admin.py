from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import QuizNotFoundError
from ..models import Question, Quiz, Score, User
from ..schemas import AdminQuizOut, AttemptOut
from ..security import TokenClaims
from .auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _percentage(score: int, total: int) -> int:
	if not total:
		return 0
	# half away from zero, like SQL ROUND
	return (score * 200 + total) // (2 * total)


@router.get("/quizzes", response_model=List[AdminQuizOut])
async def list_quizzes(user: TokenClaims = Depends(require_admin), db: Session = Depends(get_db)):
	question_counts = (
		select(Question.quiz_id, func.count(Question.id).label("n"))
		.group_by(Question.quiz_id)
		.subquery()
	)
	attempt_counts = (
		select(Score.quiz_id, func.count(Score.id).label("n"))
		.group_by(Score.quiz_id)
		.subquery()
	)
	stmt = (
		select(
			Quiz.id,
			Quiz.title,
			Quiz.created_at,
			User.username.label("created_by"),
			func.coalesce(question_counts.c.n, 0).label("question_count"),
			func.coalesce(attempt_counts.c.n, 0).label("attempt_count"),
		)
		.outerjoin(User, Quiz.created_by == User.id)
		.outerjoin(question_counts, question_counts.c.quiz_id == Quiz.id)
		.outerjoin(attempt_counts, attempt_counts.c.quiz_id == Quiz.id)
		.order_by(Quiz.created_at.desc(), Quiz.id.desc())
	)
	return [AdminQuizOut(**row._mapping) for row in db.execute(stmt)]


@router.delete("/quizzes/{quiz_id}")
async def delete_quiz(quiz_id: int, user: TokenClaims = Depends(require_admin), db: Session = Depends(get_db)):
	quiz = db.get(Quiz, quiz_id)
	if quiz is None:
		raise QuizNotFoundError()
	db.delete(quiz)
	db.commit()
	logger.info("Admin %s deleted quiz %s", user.username, quiz_id)
	return {"message": "Quiz deleted successfully"}


@router.get("/quizzes/{quiz_id}/attempts", response_model=List[AttemptOut])
async def quiz_attempts(quiz_id: int, user: TokenClaims = Depends(require_admin), db: Session = Depends(get_db)):
	if db.get(Quiz, quiz_id) is None:
		raise QuizNotFoundError()
	rows = db.execute(
		select(Score.id, User.username, Score.score, Score.total, Score.taken_at)
		.join(User, Score.user_id == User.id)
		.where(Score.quiz_id == quiz_id)
		.order_by(Score.taken_at.desc(), Score.id.desc())
	).all()
	return [
		AttemptOut(
			id=r.id,
			username=r.username,
			score=r.score,
			total=r.total,
			taken_at=r.taken_at,
			percentage=_percentage(r.score, r.total),
		)
		for r in rows
	]
