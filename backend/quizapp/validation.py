from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from .errors import EmptyQuizError, MalformedResponseError

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2


@dataclass(frozen=True)
class ValidQuestion:
	question_text: str
	options: Tuple[Any, ...]
	correct_option: int


@dataclass(frozen=True)
class Rejection:
	position: int
	reason: str


@dataclass
class ValidationResult:
	accepted: List[ValidQuestion] = field(default_factory=list)
	rejections: List[Rejection] = field(default_factory=list)

	@property
	def rejected_count(self) -> int:
		return len(self.rejections)


def parse_question_payload(text: str) -> Any:
	"""Decode the model's JSON text, tolerating a ```json fenced block."""
	try:
		return json.loads(text)
	except (TypeError, ValueError):
		pass
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text or "")
	if code_block:
		try:
			return json.loads(code_block.group(1))
		except ValueError:
			pass
	raise MalformedResponseError("Failed to parse AI response as JSON.")


def _as_index(value: Any) -> Optional[int]:
	# bool is an int subclass but never a valid index
	if isinstance(value, bool):
		return None
	if isinstance(value, int):
		return value
	if isinstance(value, float) and value.is_integer():
		return int(value)
	return None


def _normalize_option(option: Any) -> Any:
	# bare strings become {"text": ...}; any other shape is stored as given
	if isinstance(option, str):
		return {"text": option}
	return option


def check_question(raw: Any) -> Tuple[Optional[ValidQuestion], Optional[str]]:
	"""Return (question, None) when `raw` is well formed, else (None, reason)."""
	if not isinstance(raw, dict):
		return None, "record is not an object"
	text = raw.get("question_text")
	if not isinstance(text, str) or not text:
		return None, "question_text missing or empty"
	options = raw.get("options")
	if not isinstance(options, (list, tuple)) or len(options) < MIN_OPTIONS:
		return None, f"options must be a list of at least {MIN_OPTIONS}"
	normalized = [_normalize_option(o) for o in options]
	index = _as_index(raw.get("correct_option"))
	if index is None:
		return None, "correct_option is not an integer"
	if not 0 <= index < len(options):
		return None, f"correct_option {index} out of range for {len(options)} options"
	return ValidQuestion(question_text=text, options=tuple(normalized), correct_option=index), None


def validate_questions(raw_questions: Any) -> ValidationResult:
	"""Filter an untyped question list down to well-formed questions.

	Malformed records are dropped and recorded on the result. Raises
	EmptyQuizError when the input is not a non-empty list or when nothing
	survives the filter.
	"""
	if not isinstance(raw_questions, Sequence) or isinstance(raw_questions, (str, bytes)) or not raw_questions:
		raise EmptyQuizError("AI did not return any questions.")
	result = ValidationResult()
	for position, raw in enumerate(raw_questions):
		question, reason = check_question(raw)
		if question is None:
			logger.warning("Skipping malformed question %d from AI: %s", position, reason)
			result.rejections.append(Rejection(position=position, reason=reason))
			continue
		result.accepted.append(question)
	if not result.accepted:
		raise EmptyQuizError(f"All {result.rejected_count} questions from AI were malformed.")
	return result
