"""Provider implementations."""

from coursegen.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse
from coursegen.ai.providers.gemini import GeminiModel, GeminiProvider

__all__ = ["AIModel", "ModelResponse", "SimpleModelResponse", "Provider", "GeminiModel", "GeminiProvider"]
