"""Generation client: the single boundary between the pipeline and the model service."""

from __future__ import annotations

import asyncio
import logging
import time

from coursegen.ai.contracts import GenerationOutcome, GenerationRequest
from coursegen.ai.errors import classify_generation_error
from coursegen.ai.providers.base import AIModel

logger = logging.getLogger(__name__)


class GenerationClient:
  """Issue prompts to a model and return classified outcomes instead of raising."""

  def __init__(self, model: AIModel, *, timeout_seconds: float | None = None) -> None:
    self._model = model
    self._timeout_seconds = timeout_seconds

  @property
  def model_name(self) -> str:
    return self._model.name

  async def generate(self, request: GenerationRequest) -> GenerationOutcome:
    """Run one generation call and classify any failure exactly once."""
    started = time.perf_counter()
    try:
      if self._timeout_seconds:
        response = await asyncio.wait_for(self._model.generate(request.prompt_text), timeout=self._timeout_seconds)
      else:
        response = await self._model.generate(request.prompt_text)
    except Exception as exc:  # noqa: BLE001
      error_class = classify_generation_error(exc)
      elapsed_ms = (time.perf_counter() - started) * 1000
      logger.warning("Generation failed stage=%s model=%s class=%s after %.0fms: %s", request.stage.value, self._model.name, error_class.value, elapsed_ms, exc)
      return GenerationOutcome.failure(error_class, str(exc) or type(exc).__name__)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Generation succeeded stage=%s model=%s prompt_chars=%s response_chars=%s in %.0fms", request.stage.value, self._model.name, len(request.prompt_text), len(response.content or ""), elapsed_ms)
    return GenerationOutcome.success(response.content or "", usage=response.usage)
