"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import logging
import os
from typing import Final

from google import genai
from google.genai import types

from coursegen.ai.providers.base import AIModel, ModelResponse, Provider, SimpleModelResponse

logger = logging.getLogger(__name__)


class GeminiModel(AIModel):
  """Gemini text model client."""

  def __init__(self, name: str, api_key: str | None = None, *, temperature: float = 0.2, max_output_tokens: int = 8192, timeout_seconds: float | None = None) -> None:
    self.name: str = name

    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
      raise ValueError("GEMINI_API_KEY environment variable is required")

    # The SDK expects the HTTP timeout in milliseconds.
    http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000)) if timeout_seconds else None
    self._client = genai.Client(api_key=api_key, http_options=http_options)
    self._config = types.GenerateContentConfig(temperature=temperature, max_output_tokens=max_output_tokens)

  async def generate(self, prompt: str) -> ModelResponse:
    """Generate text response from Gemini."""
    # Use the async client to avoid blocking the asyncio event loop.
    response = await self._client.aio.models.generate_content(model=self.name, contents=prompt, config=self._config)
    text = response.text or ""
    logger.debug("Gemini response model=%s chars=%s", self.name, len(text))

    usage = None
    if response.usage_metadata:
      usage = {"prompt_tokens": response.usage_metadata.prompt_token_count or 0, "completion_tokens": response.usage_metadata.candidates_token_count or 0, "total_tokens": response.usage_metadata.total_token_count or 0}
    return SimpleModelResponse(content=text, usage=usage)


class GeminiProvider(Provider):
  """Gemini provider."""

  _DEFAULT_MODEL: Final[str] = "gemini-2.5-flash-lite"
  _AVAILABLE_MODELS: Final[set[str]] = {"gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.5-flash-lite", "gemini-2.0-flash", "gemini-2.0-flash-lite"}

  def __init__(self, api_key: str | None = None, *, temperature: float = 0.2, max_output_tokens: int = 8192, timeout_seconds: float | None = None) -> None:
    self.name: str = "gemini"
    self._api_key = api_key
    self._temperature = temperature
    self._max_output_tokens = max_output_tokens
    self._timeout_seconds = timeout_seconds

  def get_model(self, model: str | None = None) -> AIModel:
    """Return a Gemini model client."""
    model_name = model or self._DEFAULT_MODEL
    if model_name not in self._AVAILABLE_MODELS:
      raise ValueError(f"Unsupported Gemini model '{model_name}'.")

    return GeminiModel(model_name, api_key=self._api_key, temperature=self._temperature, max_output_tokens=self._max_output_tokens, timeout_seconds=self._timeout_seconds)
