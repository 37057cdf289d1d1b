from __future__ import annotations
import json
import logging
import re
import httpx
from typing import Any, Dict, Optional
from .settings import settings

logger = logging.getLogger(__name__)


class AIGenerationError(RuntimeError):
	"""The AI provider could not produce a usable answer."""


def extract_json_object(text: str) -> Dict[str, Any]:
	try:
		data = json.loads(text)
		if isinstance(data, dict):
			return data
	except ValueError:
		pass
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		try:
			data = json.loads(code_block.group(1))
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last > first:
		try:
			data = json.loads(text[first : last + 1])
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	raise AIGenerationError("AI provider did not return a JSON object")


class GeminiClient:
	def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None, model: Optional[str] = None) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise AIGenerationError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		timeout = settings.ai_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._openrouter_api_key:
			self._fallback_client = httpx.AsyncClient(timeout=timeout)

	async def generate(self, prompt: str, *, system: Optional[str] = None) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system:
			payload["systemInstruction"] = {"parts": [{"text": system}]}
		return await self._post_payload(payload, prompt=prompt, system=system)

	async def generate_json(
		self,
		prompt: str,
		*,
		schema: Dict[str, Any],
		system: Optional[str] = None,
	) -> Dict[str, Any]:
		"""Ask for structured output matching ``schema`` and parse it."""
		payload: Dict[str, Any] = {
			"contents": [{"role": "user", "parts": [{"text": prompt}]}],
			"generationConfig": {
				"responseMimeType": "application/json",
				"responseSchema": schema,
			},
		}
		if system:
			payload["systemInstruction"] = {"parts": [{"text": system}]}
		text = await self._post_payload(payload, prompt=prompt, system=system)
		return extract_json_object(text)

	async def _post_payload(self, payload: Dict[str, Any], *, prompt: str, system: Optional[str]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPError as err:
			last_error = err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = AIGenerationError(f"Unexpected Gemini response: {r.text[:500]}")
		logger.warning("Gemini call failed: %s", last_error)
		if self._fallback_client is None:
			raise AIGenerationError(str(last_error)) from last_error
		return await self._fallback_generate(prompt, system, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, prompt: str, system: Optional[str], primary_error: Exception) -> str:
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		messages = [{"role": "user", "content": prompt}]
		if system:
			messages.insert(0, {"role": "system", "content": system})
		payload: Dict[str, Any] = {
			"model": settings.openrouter_model,
			"messages": messages,
		}
		try:
			r = await self._fallback_client.post(settings.openrouter_base_url, headers=headers, json=payload)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise AIGenerationError(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err
