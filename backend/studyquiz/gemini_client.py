from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, Optional, Protocol, Tuple
from .errors import UpstreamError
from .settings import Settings

logger = logging.getLogger(__name__)

# Errors that mean "no usable text came back"
_CALL_ERRORS = (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError)


class TextGenerator(Protocol):
	async def generate(self, prompt: str) -> str:
		...

	async def aclose(self) -> None:
		...


class GeminiClient:
	"""Thin async client for Gemini's ``generateContent`` endpoint.

	One client is created per application and shared by all requests; call
	:meth:`aclose` on shutdown. When an OpenRouter key is set, a failed Gemini call
	is answered once through OpenRouter's chat completions API instead.
	"""

	def __init__(self, settings: Settings, *, model: Optional[str] = None, base_url: Optional[str] = None, timeout: float = 30) -> None:
		if not settings.gemini_api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.settings = settings
		self.model = model or settings.gemini_model
		self.url, self._key_param = self._endpoint(base_url)
		self._http = httpx.AsyncClient(timeout=timeout)
		self._openrouter: Optional[httpx.AsyncClient] = None
		if settings.openrouter_api_key:
			self._openrouter = httpx.AsyncClient(timeout=timeout)

	def _endpoint(self, base_url: Optional[str]) -> Tuple[str, bool]:
		s = self.settings
		if s.gemini_provider == "vertex":
			# Vertex AI Express; key goes in a header
			project = s.vertex_project or "placeholder-project"
			url = (
				f"https://{s.vertex_region}-aiplatform.googleapis.com/v1/projects/{project}"
				f"/locations/{s.vertex_region}/publishers/google/models/{self.model}:generateContent"
			)
			return base_url or url, False
		# Google AI Studio; key goes in the query string
		return base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent", True

	async def generate(self, prompt: str) -> str:
		try:
			return await self._gemini(prompt)
		except _CALL_ERRORS as err:
			logger.warning("Gemini call failed: %s", err)
			if self._openrouter is None:
				raise UpstreamError("Question service is unavailable", detail=f"Gemini call failed: {err}") from err
			try:
				return await self._via_openrouter(prompt)
			except _CALL_ERRORS as fallback_err:
				raise UpstreamError(
					"Question service is unavailable",
					detail=f"Gemini call failed ({err}); OpenRouter fallback also failed ({fallback_err})",
				) from fallback_err

	async def aclose(self) -> None:
		await self._http.aclose()
		if self._openrouter is not None:
			await self._openrouter.aclose()

	async def _gemini(self, prompt: str) -> str:
		key = self.settings.gemini_api_key
		params = {"key": key} if self._key_param else {}
		headers = {} if self._key_param else {"x-goog-api-key": key}
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		r = await self._http.post(self.url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		return r.json()["candidates"][0]["content"]["parts"][0]["text"]

	async def _via_openrouter(self, prompt: str) -> str:
		s = self.settings
		headers = {
			"Authorization": f"Bearer {s.openrouter_api_key}",
			"HTTP-Referer": s.openrouter_referer,
			"X-Title": s.openrouter_title,
		}
		payload = {"model": s.openrouter_model, "messages": [{"role": "user", "content": prompt}]}
		r = await self._openrouter.post(s.openrouter_base_url, headers=headers, json=payload)
		r.raise_for_status()
		return r.json()["choices"][0]["message"]["content"]
