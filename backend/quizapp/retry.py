from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from .errors import MalformedResponseError, PermanentServiceError, TransientServiceError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def is_retryable_status(status_code: int) -> bool:
	return status_code == 429 or status_code >= 500


@dataclass(frozen=True)
class RetryPolicy:
	max_attempts: int = 5
	base_delay: float = 1.0
	retryable_status: Callable[[int], bool] = is_retryable_status

	def delay_for(self, attempt: int) -> float:
		"""Backoff after the given 0-indexed attempt failed."""
		return self.base_delay * (2 ** attempt)


def _upstream_message(response: httpx.Response) -> Optional[str]:
	try:
		data = response.json()
	except ValueError:
		return None
	if isinstance(data, dict):
		err = data.get("error")
		if isinstance(err, dict) and err.get("message"):
			return str(err["message"])
		if isinstance(err, str) and err:
			return err
	return None


class RetryingHttpClient:
	"""Issues one outbound request with exponential backoff on transient failure.

	Retries 429, any 5xx and network-level errors; any other 4xx fails at once.
	Holds no state between calls besides the underlying httpx client.
	"""

	def __init__(
		self,
		client: httpx.AsyncClient,
		policy: Optional[RetryPolicy] = None,
		*,
		sleep: Sleep = asyncio.sleep,
	) -> None:
		self._client = client
		self.policy = policy or RetryPolicy()
		self._sleep = sleep

	async def call(self, method: str, url: str, **kwargs: Any) -> Any:
		last_error = "no attempt made"
		attempts = self.policy.max_attempts
		for attempt in range(attempts):
			try:
				r = await self._client.request(method, url, **kwargs)
			except httpx.RequestError as net_err:
				last_error = f"network error: {net_err.__class__.__name__}"
			else:
				if self.policy.retryable_status(r.status_code):
					last_error = f"APIError status:{r.status_code}"
				elif r.is_error:
					message = _upstream_message(r) or f"APIError status:{r.status_code}"
					raise PermanentServiceError(message, status=r.status_code)
				else:
					try:
						return r.json()
					except ValueError as exc:
						raise MalformedResponseError("AI service returned a non-JSON body.") from exc
			if attempt == attempts - 1:
				break
			delay = self.policy.delay_for(attempt)
			logger.warning("Upstream attempt %d/%d failed (%s); retrying in %.1fs", attempt + 1, attempts, last_error, delay)
			await self._sleep(delay)
		raise TransientServiceError(f"Failed to communicate with AI service. {last_error}")

	async def post_json(self, url: str, payload: Dict[str, Any], **kwargs: Any) -> Any:
		return await self.call("POST", url, json=payload, **kwargs)
