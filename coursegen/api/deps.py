"""Shared FastAPI dependencies for the generation client and pipeline policy."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status

from coursegen.ai.client import GenerationClient
from coursegen.ai.providers import GeminiProvider
from coursegen.config import Settings, get_settings
from coursegen.pipeline.extraction import DocumentTextExtractor, TextExtractor
from coursegen.pipeline.policy import PipelinePolicy

logger = logging.getLogger(__name__)


def get_generation_client(settings: Settings = Depends(get_settings)) -> GenerationClient:  # noqa: B008
  """Build a generation client bound to the configured Gemini model."""
  provider = GeminiProvider(api_key=settings.gemini_api_key, temperature=settings.generation_temperature, max_output_tokens=settings.generation_max_output_tokens, timeout_seconds=settings.generation_timeout_seconds)
  try:
    model = provider.get_model(settings.gemini_model)
  except ValueError as exc:
    logger.error("Generation client unavailable: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="AI service is not configured") from exc
  return GenerationClient(model, timeout_seconds=settings.generation_timeout_seconds)


def get_text_extractor() -> TextExtractor:
  return DocumentTextExtractor()


def get_pipeline_policy(settings: Settings = Depends(get_settings)) -> PipelinePolicy:  # noqa: B008
  return PipelinePolicy.from_settings(settings)
