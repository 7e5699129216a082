"""API clients for external services."""

from .base import AssistantBackend, ImageService, TextService
from .gemini import GeminiChat, GeminiClient
from .llm import LLMClient

__all__ = [
    "AssistantBackend",
    "GeminiChat",
    "GeminiClient",
    "ImageService",
    "LLMClient",
    "TextService",
]
