from __future__ import annotations
from typing import Dict, Optional


class QuizAppError(Exception):
	"""Base for failures that map onto a client-facing HTTP response.

	`message` is safe to show to the client; it never carries stack or driver
	detail.
	"""

	status_code: int = 500
	default_message: str = "Internal server error."

	def __init__(self, message: Optional[str] = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)

	@property
	def headers(self) -> Optional[Dict[str, str]]:
		return None


class MissingConfigurationError(QuizAppError):
	status_code = 500
	default_message = "Server is missing API key configuration."


class UpstreamServiceError(QuizAppError):
	status_code = 502
	default_message = "Failed to communicate with AI service."


class TransientServiceError(UpstreamServiceError):
	default_message = "AI service is unavailable, retries exhausted."


class PermanentServiceError(UpstreamServiceError):
	def __init__(self, message: Optional[str] = None, *, status: Optional[int] = None) -> None:
		self.status = status
		super().__init__(message)


class MalformedResponseError(QuizAppError):
	status_code = 502
	default_message = "Failed to parse AI response."


class EmptyQuizError(QuizAppError):
	status_code = 400
	default_message = "AI did not return any usable questions."


class PersistenceError(QuizAppError):
	status_code = 500
	default_message = "Could not save to the database."


class QuizNotFoundError(QuizAppError):
	status_code = 404
	default_message = "Quiz not found"


class AuthError(QuizAppError):
	status_code = 401
	default_message = "Could not validate credentials"

	def __init__(self, message: Optional[str] = None, *, status_code: int = 401) -> None:
		super().__init__(message)
		self.status_code = status_code

	@property
	def headers(self) -> Optional[Dict[str, str]]:
		if self.status_code == 401:
			return {"WWW-Authenticate": "Bearer"}
		return None
