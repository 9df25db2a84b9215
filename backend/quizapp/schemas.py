from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
	username: Optional[str] = None
	password: Optional[str] = None
	role: Optional[str] = None


class LoginRequest(BaseModel):
	username: str
	password: str


class UserOut(BaseModel):
	id: int
	username: str
	role: str


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class LoginResponse(BaseModel):
	message: str
	token: str
	user: UserOut


class CreateQuizRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	title: str = Field(min_length=1, max_length=255)
	ai_prompt: str = Field(min_length=1, alias="aiPrompt")


class CreateQuizResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	message: str
	quiz_id: int = Field(alias="quizId")


class QuizSummary(BaseModel):
	id: int
	title: str
	created_at: datetime


class QuestionPublic(BaseModel):
	# student-facing view, never carries correct_option
	id: int
	question_text: str
	options: List[Any]


class QuizDetail(BaseModel):
	quiz: QuizSummary
	questions: List[QuestionPublic]


class SubmittedAnswer(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	question_id: Any = Field(default=None, alias="questionId")
	# Kept untyped so a string or bool is recorded as wrong rather than coerced
	answer_index: Any = Field(default=None, alias="answerIndex")


class SubmitRequest(BaseModel):
	answers: List[SubmittedAnswer] = Field(default_factory=list)


class SubmitResponse(BaseModel):
	message: str
	score: int
	total: int


class ScoreOut(BaseModel):
	quiz_id: int
	title: str
	score: int
	total: int
	taken_at: datetime


class AdminQuizOut(BaseModel):
	id: int
	title: str
	created_at: datetime
	created_by: Optional[str]
	question_count: int
	attempt_count: int


class AttemptOut(BaseModel):
	id: int
	username: str
	score: int
	total: int
	taken_at: datetime
	percentage: int
