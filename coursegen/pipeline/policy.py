"""Pipeline budgets and thresholds resolved from settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from coursegen.ai.backoff import RetryPolicy
from coursegen.config import Settings


@dataclass(frozen=True)
class PipelinePolicy:
  """Policy constants for one pipeline run. Values are tunable defaults, not invariants."""

  max_files: int = 10
  max_total_chars: int = 800_000
  chunk_trigger_threshold: int = 100_000
  chunk_target_size: int = 40_000
  max_chunks: int = 20
  min_source_chars: int = 50
  min_total_chars: int = 100
  min_summary_chars: int = 20
  max_section_chars: int = 1000
  inter_chunk_delay_seconds: float = 2.0
  metadata_sample_chars: int = 50_000
  map_retry: RetryPolicy = field(default_factory=RetryPolicy)
  synthesis_retry: RetryPolicy = field(default_factory=RetryPolicy.single_attempt)

  @classmethod
  def from_settings(cls, settings: Settings) -> PipelinePolicy:
    map_retry = RetryPolicy(max_attempts=settings.map_max_attempts, transient_delays=settings.transient_backoff_seconds, rate_limit_delays=settings.rate_limit_backoff_seconds)
    synthesis_retry = RetryPolicy(max_attempts=settings.synthesis_max_attempts, transient_delays=settings.transient_backoff_seconds, rate_limit_delays=settings.rate_limit_backoff_seconds)
    return cls(
      max_files=settings.max_files,
      max_total_chars=settings.max_total_chars,
      chunk_trigger_threshold=settings.chunk_trigger_threshold,
      chunk_target_size=settings.chunk_target_size,
      max_chunks=settings.max_chunks,
      min_source_chars=settings.min_source_chars,
      min_total_chars=settings.min_total_chars,
      min_summary_chars=settings.min_summary_chars,
      max_section_chars=settings.max_section_chars,
      inter_chunk_delay_seconds=settings.inter_chunk_delay_seconds,
      metadata_sample_chars=settings.metadata_sample_chars,
      map_retry=map_retry,
      synthesis_retry=synthesis_retry,
    )
