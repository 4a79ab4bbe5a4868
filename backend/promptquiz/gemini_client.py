from __future__ import annotations
import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import BaseModel

from .settings import settings

logger = logging.getLogger(__name__)


class GeminiErrorKind(str, Enum):
	UNAUTHORIZED = "unauthorized"
	CLIENT_ERROR = "client_error"
	SERVER_ERROR = "server_error"


class GeminiError(Exception):
	def __init__(
		self,
		message: str,
		*,
		kind: GeminiErrorKind,
		status_code: Optional[int] = None,
		retryable: bool = False,
	) -> None:
		super().__init__(message)
		self.message = message
		self.kind = kind
		self.status_code = status_code
		self.retryable = retryable


class GenerationResult(BaseModel):
	text: str
	# Seconds spent on the successful attempt
	latency: float


class CallMetric(BaseModel):
	model: str
	attempts: int
	latency: float
	prompt_size: int
	status: str
	error: Optional[str] = None


def classify_status(status_code: int, message: str) -> GeminiError:
	if status_code in (401, 403):
		return GeminiError(message, kind=GeminiErrorKind.UNAUTHORIZED, status_code=status_code)
	if status_code == 429 or status_code >= 500:
		return GeminiError(message, kind=GeminiErrorKind.SERVER_ERROR, status_code=status_code, retryable=True)
	return GeminiError(message, kind=GeminiErrorKind.CLIENT_ERROR, status_code=status_code)


class GeminiClient:
	"""Async client for the Generative Language ``generateContent`` endpoint.

	One instance is meant to be shared by every request of the process; the
	underlying ``httpx.AsyncClient`` pools connections and is safe for
	concurrent use.
	"""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		max_retries: Optional[int] = None,
		backoff_seconds: float = 0.25,
		observer: Optional[Callable[[CallMetric], None]] = None,
		http_client: Optional[httpx.AsyncClient] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.base_url = (base_url or settings.gemini_api_base).rstrip("/")
		self.timeout = timeout if timeout and timeout > 0 else settings.gemini_timeout_seconds
		retries = settings.gemini_max_retries if max_retries is None else max_retries
		self.max_retries = max(0, retries)
		self.backoff_seconds = backoff_seconds
		self._observer = observer
		self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

	def endpoint(self, model: Optional[str] = None) -> str:
		return f"{self.base_url}/models/{model or self.model}:generateContent"

	async def generate(self, prompt: str, *, model: Optional[str] = None) -> GenerationResult:
		if not prompt or not prompt.strip():
			raise ValueError("prompt is empty")
		model_name = model or self.model
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		state = {"attempts": 0}
		started = time.perf_counter()
		try:
			result = await asyncio.wait_for(
				self._generate_with_retries(model_name, payload, state),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			self._emit(model_name, state["attempts"], time.perf_counter() - started, len(prompt), "failure", "deadline exceeded")
			raise GeminiError(
				f"Gemini call exceeded {self.timeout:g}s",
				kind=GeminiErrorKind.SERVER_ERROR,
				retryable=True,
			)
		except Exception as err:
			self._emit(model_name, state["attempts"], time.perf_counter() - started, len(prompt), "failure", str(err))
			raise
		self._emit(model_name, state["attempts"], result.latency, len(prompt), "success")
		return result

	async def _generate_with_retries(self, model: str, payload: Dict[str, Any], state: Dict[str, Any]) -> GenerationResult:
		attempt = 0
		while True:
			attempt += 1
			state["attempts"] = attempt
			started = time.perf_counter()
			try:
				text = await self._post(model, payload)
				return GenerationResult(text=text, latency=time.perf_counter() - started)
			except GeminiError as err:
				if not err.retryable or attempt > self.max_retries:
					raise
				logger.warning("Gemini attempt %d failed (%s), retrying", attempt, err)
			await asyncio.sleep(self.backoff_seconds * attempt)

	async def _post(self, model: str, payload: Dict[str, Any]) -> str:
		headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
		try:
			r = await self._client.post(self.endpoint(model), headers=headers, json=payload)
		except httpx.RequestError as net_err:
			raise GeminiError(
				f"Gemini request failed: {net_err}",
				kind=GeminiErrorKind.SERVER_ERROR,
				retryable=True,
			) from net_err
		if r.is_success:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				raise GeminiError(
					f"Unexpected Gemini response: {r.text[:500]}",
					kind=GeminiErrorKind.SERVER_ERROR,
					status_code=r.status_code,
				)
		message = f"Gemini returned status {r.status_code}"
		try:
			message = r.json()["error"]["message"] or message
		except (ValueError, KeyError, TypeError):
			pass
		raise classify_status(r.status_code, message)

	def _emit(self, model: str, attempts: int, latency: float, prompt_size: int, status: str, error: Optional[str] = None) -> None:
		if self._observer is None:
			return
		metric = CallMetric(
			model=model,
			attempts=attempts,
			latency=latency,
			prompt_size=prompt_size,
			status=status,
			error=error,
		)
		self._observer(metric)

	async def aclose(self) -> None:
		await self._client.aclose()
