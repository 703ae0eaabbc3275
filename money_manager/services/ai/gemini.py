"""
Gemini text generation (primary provider).

The persona is prepended to every prompt, matching what the assistant
has always sent to ``generateContent``.
"""

from typing import Any, Optional

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from money_manager.config import GeminiSettings, get_settings
from money_manager.services.ai.interface import (
    ASSISTANT_PERSONA,
    AIErrorKind,
    AIServiceError,
    TextGenerator,
    is_retryable,
)

logger = structlog.get_logger(__name__)


class GeminiTextGenerator(TextGenerator):
    """
    Text generation through ``google-generativeai``.

    ``model`` can be injected (anything with ``generate_content_async``);
    otherwise one is built from the settings on first use.
    """

    name = "gemini"

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        retry_wait: Any = None,
        max_attempts: int = 3,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._max_attempts = max_attempts

    @property
    def is_configured(self) -> bool:
        return self._model is not None or bool(self._settings.api_key)

    def _configure_genai(self) -> Any:
        """Configure Google Generative AI."""
        if self._model is None:
            if not self._settings.api_key:
                raise AIServiceError(
                    AIErrorKind.NOT_CONFIGURED,
                    "Gemini API key is not configured",
                    provider=self.name,
                )
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                }
            )
        return self._model

    async def generate(self, prompt: str) -> str:
        model = self._configure_genai()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                return await self._generate_once(model, prompt)

    async def _generate_once(self, model: Any, prompt: str) -> str:
        try:
            response = await model.generate_content_async(f"{ASSISTANT_PERSONA}\n\n{prompt}")
        except (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests) as e:
            raise AIServiceError(
                AIErrorKind.RATE_LIMITED, f"Gemini rate limit: {e}", provider=self.name, status_code=429
            )
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise AIServiceError(
                AIErrorKind.NOT_CONFIGURED, f"Gemini rejected the API key: {e}", provider=self.name
            )
        except google_exceptions.InvalidArgument as e:
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, f"Gemini rejected the request: {e}", provider=self.name
            )
        except google_exceptions.GoogleAPIError as e:
            logger.warning("gemini_request_failed", error=str(e))
            raise AIServiceError(
                AIErrorKind.UNAVAILABLE, f"Gemini request failed: {e}", provider=self.name
            )

        try:
            text = response.text.strip()
        except (AttributeError, IndexError, ValueError) as e:
            # .text raises ValueError when the candidate was blocked
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, f"Gemini returned no text: {e}", provider=self.name
            )

        if not text:
            raise AIServiceError(
                AIErrorKind.BAD_RESPONSE, "Gemini returned an empty reply", provider=self.name
            )
        return text
