"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from coursegen.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the course generation service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  gemini_api_key: str | None
  gemini_model: str
  generation_timeout_seconds: float
  generation_temperature: float
  generation_max_output_tokens: int
  max_files: int
  max_total_chars: int
  chunk_trigger_threshold: int
  chunk_target_size: int
  max_chunks: int
  min_source_chars: int
  min_total_chars: int
  min_summary_chars: int
  max_section_chars: int
  map_max_attempts: int
  transient_backoff_seconds: tuple[float, ...]
  rate_limit_backoff_seconds: tuple[float, ...]
  inter_chunk_delay_seconds: float
  synthesis_max_attempts: int
  metadata_sample_chars: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("COURSEGEN_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("COURSEGEN_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("COURSEGEN_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _non_negative_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value < 0:
    raise ValueError(f"{name} must be zero or positive.")
  return value


def _parse_schedule(name: str, default: str) -> tuple[float, ...]:
  """Parse a comma separated list of backoff delays in seconds."""
  raw = os.getenv(name, default)
  delays = tuple(float(part) for part in raw.split(",") if part.strip())
  if not delays:
    raise ValueError(f"{name} must list at least one delay.")
  if any(delay < 0 for delay in delays):
    raise ValueError(f"{name} must not contain negative delays.")
  return delays


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("COURSEGEN_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("COURSEGEN_DEBUG"))

  log_max_bytes = _positive_int("COURSEGEN_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("COURSEGEN_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("COURSEGEN_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Pipeline budgets bound the cost of extraction and generation calls per request.
  max_total_chars = _positive_int("COURSEGEN_MAX_TOTAL_CHARS", "800000")
  chunk_trigger_threshold = _positive_int("COURSEGEN_CHUNK_TRIGGER_THRESHOLD", "100000")
  chunk_target_size = _positive_int("COURSEGEN_CHUNK_TARGET_SIZE", "40000")
  if chunk_trigger_threshold > max_total_chars:
    raise ValueError("COURSEGEN_CHUNK_TRIGGER_THRESHOLD must not exceed COURSEGEN_MAX_TOTAL_CHARS.")

  min_source_chars = _positive_int("COURSEGEN_MIN_SOURCE_CHARS", "50")
  min_total_chars = _positive_int("COURSEGEN_MIN_TOTAL_CHARS", "100")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("COURSEGEN_ALLOWED_ORIGINS")),
    log_dir=os.getenv("COURSEGEN_LOG_DIR", "logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("COURSEGEN_LOG_HTTP_4XX")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=os.getenv("COURSEGEN_GEMINI_MODEL", "gemini-2.5-flash-lite").strip(),
    generation_timeout_seconds=float(_positive_int("COURSEGEN_GENERATION_TIMEOUT_SECONDS", "120")),
    generation_temperature=_non_negative_float("COURSEGEN_GENERATION_TEMPERATURE", "0.2"),
    generation_max_output_tokens=_positive_int("COURSEGEN_GENERATION_MAX_OUTPUT_TOKENS", "8192"),
    max_files=_positive_int("COURSEGEN_MAX_FILES", "10"),
    max_total_chars=max_total_chars,
    chunk_trigger_threshold=chunk_trigger_threshold,
    chunk_target_size=chunk_target_size,
    max_chunks=_positive_int("COURSEGEN_MAX_CHUNKS", "20"),
    min_source_chars=min_source_chars,
    min_total_chars=max(min_total_chars, min_source_chars),
    min_summary_chars=_positive_int("COURSEGEN_MIN_SUMMARY_CHARS", "20"),
    max_section_chars=_positive_int("COURSEGEN_MAX_SECTION_CHARS", "1000"),
    map_max_attempts=_positive_int("COURSEGEN_MAP_MAX_ATTEMPTS", "3"),
    transient_backoff_seconds=_parse_schedule("COURSEGEN_TRANSIENT_BACKOFF_SECONDS", "2,5"),
    rate_limit_backoff_seconds=_parse_schedule("COURSEGEN_RATE_LIMIT_BACKOFF_SECONDS", "10,30"),
    inter_chunk_delay_seconds=_non_negative_float("COURSEGEN_INTER_CHUNK_DELAY_SECONDS", "2"),
    synthesis_max_attempts=_positive_int("COURSEGEN_SYNTHESIS_MAX_ATTEMPTS", "1"),
    metadata_sample_chars=_positive_int("COURSEGEN_METADATA_SAMPLE_CHARS", "50000"),
  )


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
