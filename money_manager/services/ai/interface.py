"""
Abstract Text Generation Interface

DESIGN DECISION: Generative AI sits behind a one-method interface.
The insight agent builds prompts from computed numbers and hands over
text only; it never knows which provider answered. This allows us to:
1. Chain providers (Gemini first, Groq as fallback)
2. Use deterministic fakes in tests
3. Run every metric with no AI configured at all
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional


ASSISTANT_PERSONA = """You are a professional personal finance assistant.
Your role is to provide clear, helpful, and actionable financial advice.
Be supportive, informative, and encouraging while maintaining professionalism.
Use minimal emojis (max 1 per response, only when appropriate).
Keep responses concise, practical, and easy to understand.
Focus on helping users make better financial decisions with empathy and expertise."""

SERVICE_UNAVAILABLE_MESSAGE = "AI service temporarily unavailable. Please try again later."


class AIErrorKind(str, Enum):
    """Why a generation request failed."""
    NOT_CONFIGURED = "not_configured"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    BAD_RESPONSE = "bad_response"


class AIServiceError(Exception):
    """A text generator could not produce an answer."""

    def __init__(
        self,
        kind: AIErrorKind,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.provider = provider
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in (AIErrorKind.UNAVAILABLE, AIErrorKind.RATE_LIMITED)


class TextGenerator(ABC):
    """
    Abstract interface for a text generation provider.

    Implementations prepend or attach ``ASSISTANT_PERSONA`` themselves.
    """

    name: str = "generator"

    @property
    def is_configured(self) -> bool:
        """False when the provider is missing credentials."""
        return True

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate a reply for a prompt.

        Args:
            prompt: The user-facing prompt, without the persona

        Returns:
            The generated text (never empty)

        Raises:
            AIServiceError: If no text could be produced
        """
        pass


def is_retryable(error: BaseException) -> bool:
    """tenacity predicate: retry only transient provider failures."""
    return isinstance(error, AIServiceError) and error.retryable
