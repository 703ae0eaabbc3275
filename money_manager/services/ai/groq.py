"""
Groq text generation (fallback provider).

Talks to Groq's OpenAI-compatible chat completions endpoint over httpx.
The persona goes in as the system message.
"""

from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from money_manager.config import GroqSettings, get_settings
from money_manager.services.ai.interface import (
    ASSISTANT_PERSONA,
    AIErrorKind,
    AIServiceError,
    TextGenerator,
    is_retryable,
)

logger = structlog.get_logger(__name__)


class GroqTextGenerator(TextGenerator):
    """
    Chat completions over HTTP.

    A shared ``httpx.AsyncClient`` can be passed in; otherwise a client is
    opened for each request.
    """

    name = "groq"

    def __init__(
        self,
        settings: Optional[GroqSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_wait: Any = None,
        max_attempts: int = 3,
    ):
        self._settings = settings or get_settings().groq
        self._client = client
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._max_attempts = max_attempts

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.api_key)

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self._settings.model_name,
            "messages": [
                {"role": "system", "content": ASSISTANT_PERSONA},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

    async def generate(self, prompt: str) -> str:
        if not self.is_configured:
            raise AIServiceError(
                AIErrorKind.NOT_CONFIGURED,
                "Groq API key is not configured",
                provider=self.name,
            )
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                return await self._generate_once(prompt)

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            self._settings.api_url,
            json=self._payload(prompt),
            headers={"Authorization": f"Bearer {self._settings.api_key}"},
            timeout=self._settings.timeout_seconds,
        )

    async def _generate_once(self, prompt: str) -> str:
        try:
            if self._client is not None:
                response = await self._post(self._client, prompt)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, prompt)
        except httpx.HTTPError as e:
            logger.warning("groq_request_failed", error=str(e))
            raise AIServiceError(
                AIErrorKind.UNAVAILABLE, f"Groq request failed: {e}", provider=self.name
            )

        status = response.status_code
        if status == 429:
            raise AIServiceError(
                AIErrorKind.RATE_LIMITED, "Groq rate limit reached", provider=self.name, status_code=status
            )
        if status in (401, 403):
            raise AIServiceError(
                AIErrorKind.NOT_CONFIGURED, "Groq rejected the API key", provider=self.name, status_code=status
            )
        if status >= 500:
            raise AIServiceError(
                AIErrorKind.UNAVAILABLE, f"Groq API Error: {status}", provider=self.name, status_code=status
            )
        if status != 200:
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, f"Groq API Error: {status}", provider=self.name, status_code=status
            )

        try:
            text = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, f"Unexpected Groq response: {e}", provider=self.name
            )

        if not isinstance(text, str) or not text.strip():
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, "Groq returned an empty reply", provider=self.name
            )
        return text.strip()
