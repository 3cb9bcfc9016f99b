import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from coursegen.config import get_settings
from coursegen.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging after uvicorn starts and report generation readiness."""
  settings = get_settings()
  logger = logging.getLogger("coursegen.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # Keep serving with the default handlers when the log directory is unavailable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  if not settings.gemini_api_key:
    logger.warning("GEMINI_API_KEY is not set; course generation requests will fail until it is configured.")

  yield

  logger.info("Shutdown complete.")
