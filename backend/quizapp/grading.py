from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from sqlalchemy import select

from .db import SessionFactory, unit_of_work
from .errors import QuizNotFoundError
from .models import Question, Quiz, Score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeResult:
	score: int
	total: int


def _answer_fields(answer: Any) -> Tuple[Any, Any]:
	if isinstance(answer, dict):
		return answer.get("questionId", answer.get("question_id")), answer.get("answerIndex", answer.get("answer_index"))
	return getattr(answer, "question_id", None), getattr(answer, "answer_index", None)


def _matches(submitted: Any, correct: int) -> bool:
	# strict: only a real int equal to the key counts, never bool/str/None
	return type(submitted) is int and submitted == correct


def score_answers(answer_key: Dict[int, int], answers: Iterable[Any]) -> int:
	"""Count questions in `answer_key` answered correctly.

	Ids outside the key are ignored. A question submitted several times
	scores only when every one of its answers is correct, so the result
	never depends on submission order and never exceeds len(answer_key).
	"""
	verdicts: Dict[int, bool] = {}
	for answer in answers:
		question_id, answer_index = _answer_fields(answer)
		if type(question_id) is not int or question_id not in answer_key:
			continue
		ok = _matches(answer_index, answer_key[question_id])
		verdicts[question_id] = verdicts.get(question_id, True) and ok
	return sum(1 for ok in verdicts.values() if ok)


class GradingEngine:
	def __init__(self, session_factory: SessionFactory) -> None:
		self._session_factory = session_factory

	def grade(self, quiz_id: int, user_id: int, answers: Iterable[Any]) -> GradeResult:
		"""Score a submission against the stored key and record one attempt.

		`total` is the number of questions stored for the quiz, whatever was
		submitted; missing answers simply score nothing.
		"""
		with unit_of_work(self._session_factory) as session:
			if session.get(Quiz, quiz_id) is None:
				raise QuizNotFoundError()
			rows = session.execute(
				select(Question.id, Question.correct_option).where(Question.quiz_id == quiz_id)
			).all()
			answer_key = {row.id: row.correct_option for row in rows}
			total = len(answer_key)
			score = score_answers(answer_key, answers)
			session.add(Score(user_id=user_id, quiz_id=quiz_id, score=score, total=total))
		logger.info("User %s scored %d/%d on quiz %s", user_id, score, total, quiz_id)
		return GradeResult(score=score, total=total)
