"""
AI Services Package

Text generation providers behind the ``TextGenerator`` interface:
Gemini (primary), Groq (fallback) and the chain that combines them.
"""

from money_manager.services.ai.interface import (
    ASSISTANT_PERSONA,
    SERVICE_UNAVAILABLE_MESSAGE,
    AIErrorKind,
    AIServiceError,
    TextGenerator,
)
from money_manager.services.ai.gemini import GeminiTextGenerator
from money_manager.services.ai.groq import GroqTextGenerator
from money_manager.services.ai.fallback import FallbackTextGenerator

__all__ = [
    # Interface
    "ASSISTANT_PERSONA",
    "SERVICE_UNAVAILABLE_MESSAGE",
    "AIErrorKind",
    "AIServiceError",
    "TextGenerator",
    # Providers
    "FallbackTextGenerator",
    "GeminiTextGenerator",
    "GroqTextGenerator",
]
