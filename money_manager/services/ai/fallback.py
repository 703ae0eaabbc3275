"""
Provider chain.

Each provider is tried in order until one answers. Provider failures are
logged and reported to ``on_failure``; only when every provider has failed
does the caller see an error, and then it is the generic "temporarily
unavailable" one.
"""

from collections.abc import Callable, Sequence
from typing import Optional

import structlog

from money_manager.services.ai.interface import (
    SERVICE_UNAVAILABLE_MESSAGE,
    AIErrorKind,
    AIServiceError,
    TextGenerator,
)

logger = structlog.get_logger(__name__)


class FallbackTextGenerator(TextGenerator):
    """Try ``generators`` in order; the first successful reply wins."""

    name = "fallback"

    def __init__(
        self,
        generators: Sequence[TextGenerator],
        on_failure: Optional[Callable[[AIServiceError], None]] = None,
    ):
        self._generators = list(generators)
        self._on_failure = on_failure

    @property
    def generators(self) -> list[TextGenerator]:
        return list(self._generators)

    @property
    def is_configured(self) -> bool:
        return any(g.is_configured for g in self._generators)

    async def generate(self, prompt: str) -> str:
        if not self._generators:
            raise AIServiceError(
                AIErrorKind.NOT_CONFIGURED, "No AI provider is configured", provider=self.name
            )

        for generator in self._generators:
            try:
                text = await generator.generate(prompt)
            except AIServiceError as e:
                logger.warning(
                    "ai_provider_failed",
                    provider=generator.name,
                    kind=e.kind.value,
                    error=str(e),
                )
                if self._on_failure is not None:
                    self._on_failure(e)
                continue

            logger.info("ai_provider_answered", provider=generator.name)
            return text

        raise AIServiceError(AIErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE_MESSAGE, provider=self.name)
