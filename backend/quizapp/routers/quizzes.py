from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_generation_pipeline, get_grading_engine
from ..errors import QuizNotFoundError
from ..generation import QuizGenerationPipeline
from ..grading import GradingEngine
from ..models import Question, Quiz, Score
from ..schemas import (
	CreateQuizRequest,
	CreateQuizResponse,
	QuestionPublic,
	QuizDetail,
	QuizSummary,
	ScoreOut,
	SubmitRequest,
	SubmitResponse,
)
from ..security import TokenClaims
from .auth import get_current_user, require_admin, require_student

router = APIRouter(tags=["quizzes"])


@router.post("/quizzes", status_code=201, response_model=CreateQuizResponse)
async def create_quiz(
	req: CreateQuizRequest,
	user: TokenClaims = Depends(require_admin),
	pipeline: QuizGenerationPipeline = Depends(get_generation_pipeline),
):
	quiz_id = await pipeline.generate(req.title, req.ai_prompt, user.user_id)
	return CreateQuizResponse(message="Quiz created successfully!", quiz_id=quiz_id)


@router.get("/quizzes", response_model=List[QuizSummary])
async def list_quizzes(
	search: Optional[str] = None,
	user: TokenClaims = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	stmt = select(Quiz)
	if search:
		stmt = stmt.where(Quiz.title.icontains(search, autoescape=True))
	stmt = stmt.order_by(Quiz.created_at.desc(), Quiz.id.desc())
	return [QuizSummary(id=q.id, title=q.title, created_at=q.created_at) for q in db.scalars(stmt)]


@router.get("/quizzes/{quiz_id}", response_model=QuizDetail)
async def get_quiz(quiz_id: int, user: TokenClaims = Depends(get_current_user), db: Session = Depends(get_db)):
	quiz = db.get(Quiz, quiz_id)
	if quiz is None:
		raise QuizNotFoundError()
	rows = db.execute(
		select(Question.id, Question.question_text, Question.options)
		.where(Question.quiz_id == quiz_id)
		.order_by(Question.id)
	).all()
	return QuizDetail(
		quiz=QuizSummary(id=quiz.id, title=quiz.title, created_at=quiz.created_at),
		questions=[QuestionPublic(id=r.id, question_text=r.question_text, options=r.options) for r in rows],
	)


@router.post("/submit/{quiz_id}", status_code=201, response_model=SubmitResponse)
def submit_quiz(
	quiz_id: int,
	req: SubmitRequest,
	user: TokenClaims = Depends(get_current_user),
	engine: GradingEngine = Depends(get_grading_engine),
):
	result = engine.grade(quiz_id, user.user_id, req.answers)
	return SubmitResponse(message="Quiz submitted!", score=result.score, total=result.total)


@router.get("/scores", response_model=List[ScoreOut])
async def my_scores(user: TokenClaims = Depends(require_student), db: Session = Depends(get_db)):
	rows = db.execute(
		select(Score.quiz_id, Quiz.title, Score.score, Score.total, Score.taken_at)
		.join(Quiz, Score.quiz_id == Quiz.id)
		.where(Score.user_id == user.user_id)
		.order_by(Score.taken_at.desc(), Score.id.desc())
	).all()
	return [
		ScoreOut(quiz_id=r.quiz_id, title=r.title, score=r.score, total=r.total, taken_at=r.taken_at)
		for r in rows
	]
