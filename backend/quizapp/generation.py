from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Sequence

from starlette.concurrency import run_in_threadpool

from .db import SessionFactory, unit_of_work
from .errors import MissingConfigurationError
from .gemini_client import GeminiClient
from .models import Question, Quiz
from .settings import Settings
from .validation import ValidQuestion, parse_question_payload, validate_questions

logger = logging.getLogger(__name__)


QUIZ_RESPONSE_SCHEMA: Dict[str, Any] = {
	"type": "ARRAY",
	"items": {
		"type": "OBJECT",
		"properties": {
			"question_text": {"type": "STRING"},
			"options": {
				"type": "ARRAY",
				"items": {
					"type": "OBJECT",
					"properties": {"text": {"type": "STRING"}},
					"required": ["text"],
				},
			},
			"correct_option": {
				"type": "NUMBER",
				"description": "The 0-based index of the correct option in the 'options' array.",
			},
		},
		"required": ["question_text", "options", "correct_option"],
	},
}


def build_generation_prompt(topic_prompt: str) -> str:
	return (
		f'Generate a quiz based on the following topic: "{topic_prompt}".\n\n'
		"Please provide the output in the requested JSON format.\n\n"
		"- The quiz should have a reasonable number of questions (e.g., 5-10) unless specified otherwise.\n"
		"- Each question must have between 3 and 5 multiple-choice options.\n"
		"- Each question must have exactly one correct answer, indicated by the 'correct_option' index."
	)


class QuizGenerationPipeline:
	"""Turns an admin's topic prompt into a persisted quiz.

	The AI call, response parsing and validation all happen before the
	transaction opens; the quiz row and its questions are then written in a
	single unit of work so readers see all of them or none.
	"""

	def __init__(
		self,
		settings: Settings,
		session_factory: SessionFactory,
		*,
		client_factory: Callable[[Settings], GeminiClient] = GeminiClient,
	) -> None:
		self.settings = settings
		self._session_factory = session_factory
		self._client_factory = client_factory

	async def generate(self, title: str, topic_prompt: str, requesting_user_id: int) -> int:
		if not self.settings.gemini_api_key:
			raise MissingConfigurationError()
		prompt = build_generation_prompt(topic_prompt)
		client = self._client_factory(self.settings)
		try:
			text = await client.generate_structured(prompt, QUIZ_RESPONSE_SCHEMA)
		finally:
			await client.aclose()
		raw_questions = parse_question_payload(text)
		result = validate_questions(raw_questions)
		quiz_id = await run_in_threadpool(self.persist, title, requesting_user_id, result.accepted)
		logger.info(
			"Created quiz %s with %d questions (%d rejected) for user %s",
			quiz_id, len(result.accepted), result.rejected_count, requesting_user_id,
		)
		return quiz_id

	def persist(self, title: str, created_by: int, questions: Sequence[ValidQuestion]) -> int:
		with unit_of_work(self._session_factory) as session:
			quiz = Quiz(title=title, created_by=created_by)
			session.add(quiz)
			# flush so the generated id is known before any question insert
			session.flush()
			for q in questions:
				session.add(Question(
					quiz_id=quiz.id,
					question_text=q.question_text,
					options=list(q.options),
					correct_option=q.correct_option,
				))
			session.flush()
			quiz_id = quiz.id
		return quiz_id
