from __future__ import annotations
import asyncio
import httpx
from typing import Any, Dict, Optional

from .errors import MalformedResponseError, MissingConfigurationError
from .retry import RetryingHttpClient, RetryPolicy, Sleep
from .settings import Settings


class GeminiClient:
	def __init__(
		self,
		settings: Settings,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
		sleep: Sleep = asyncio.sleep,
	) -> None:
		self.api_key = settings.gemini_api_key
		if not self.api_key:
			raise MissingConfigurationError()
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds, transport=transport)
		policy = RetryPolicy(max_attempts=settings.gemini_max_attempts, base_delay=settings.gemini_base_delay_seconds)
		self._http = RetryingHttpClient(self._client, policy, sleep=sleep)

	async def generate_structured(self, prompt: str, response_schema: Dict[str, Any]) -> str:
		"""Ask for JSON conforming to `response_schema`; returns the raw text part."""
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {
				"responseMimeType": "application/json",
				"responseSchema": response_schema,
			},
		}
		data = await self._post_payload(payload)
		return extract_candidate_text(data)

	async def _post_payload(self, payload: Dict[str, Any]) -> Any:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		return await self._http.post_json(self.base_url, payload, params=params, headers=headers)

	async def aclose(self) -> None:
		await self._client.aclose()


def extract_candidate_text(data: Any) -> str:
	"""Pull candidates[0].content.parts[0].text out of a generateContent body."""
	try:
		text = data["candidates"][0]["content"]["parts"][0]["text"]
	except (KeyError, IndexError, TypeError):
		text = None
	if not isinstance(text, str) or not text.strip():
		raise MalformedResponseError("Invalid response structure from AI service.")
	return text
