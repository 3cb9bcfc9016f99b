"""Map stage: sequential, retried summarization of corpus chunks."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from coursegen.ai.backoff import generate_with_retry
from coursegen.ai.client import GenerationClient
from coursegen.ai.contracts import GenerationErrorClass, GenerationOutcome, GenerationRequest, GenerationStage, GenerationStatus
from coursegen.pipeline.context import GenerateFn, RunContext
from coursegen.pipeline.contracts import Chunk, ChunkOutcome, ChunkStatus
from coursegen.pipeline.errors import ChunkProcessingError, PipelineCancelledError, PipelineError, fatal_error_for
from coursegen.pipeline.policy import PipelinePolicy
from coursegen.pipeline.prompts import build_summary_prompt

logger = logging.getLogger(__name__)


class ChunkSummarizer:
  """Summarizes chunks one at a time, in index order, under the map retry policy."""

  def __init__(self, client: GenerationClient, policy: PipelinePolicy) -> None:
    self._client = client
    self._policy = policy

  def _accept(self, outcome: GenerationOutcome) -> GenerationOutcome:
    # An empty or near-empty answer is retried like a transient failure.
    if len((outcome.text or "").strip()) < self._policy.min_summary_chars:
      return GenerationOutcome.failure(GenerationErrorClass.UNKNOWN, "Summary was empty or too short.")
    return outcome

  async def summarize(self, chunks: Sequence[Chunk], ctx: RunContext) -> list[ChunkOutcome]:
    """
    Summarize every chunk and return the succeeded outcomes.

    A chunk that exhausts its attempts is recorded as failed and skipped. A
    fatal outcome (quota, timeout) aborts the run immediately. Raises
    ``ChunkProcessingError`` when no chunk succeeds.
    """
    total = len(chunks)
    generate = ctx.counted(self._client.generate)
    ctx.diagnostics.chunk_count = total
    ctx.log(f"Queued {total} chunks ({ChunkStatus.PENDING.value}).", level=logging.DEBUG)

    for position, chunk in enumerate(chunks):
      # Keep the request rate bounded even when every call succeeds.
      if position > 0 and self._policy.inter_chunk_delay_seconds > 0:
        await ctx.sleep(self._policy.inter_chunk_delay_seconds)
      await ctx.ensure_not_cancelled(f"chunk {chunk.index + 1}/{total}")

      outcome = await self._summarize_chunk(chunk, total, generate, ctx)
      ctx.chunk_outcomes.append(outcome)

    succeeded = [outcome for outcome in ctx.chunk_outcomes if outcome.status is ChunkStatus.SUCCEEDED]
    failed = total - len(succeeded)
    ctx.diagnostics.chunks_succeeded = len(succeeded)
    ctx.diagnostics.chunks_failed = failed

    if not succeeded:
      ctx.log(f"All {total} chunks failed to summarize.", level=logging.ERROR)
      raise ChunkProcessingError("Failed to process document content. Please try again later.", logs=ctx.logs)
    if failed:
      ctx.warn(f"{failed} of {total} chunks could not be summarized; continuing with {len(succeeded)} summaries.")
    else:
      ctx.log(f"Summarized all {total} chunks.")
    return succeeded

  async def _summarize_chunk(self, chunk: Chunk, total: int, generate: GenerateFn, ctx: RunContext) -> ChunkOutcome:
    label = f"Chunk {chunk.index + 1}/{total}"
    ctx.log(f"{label}: {ChunkStatus.ATTEMPTING.value} ({chunk.char_length} chars)", level=logging.DEBUG)
    request = GenerationRequest(prompt_text=build_summary_prompt(chunk, total), stage=GenerationStage.SUMMARIZE)

    def record_retry(failed_attempts: int, error_class: GenerationErrorClass, delay: float) -> None:
      ctx.log(f"{label}: {ChunkStatus.RETRYING.value} after attempt {failed_attempts} ({error_class.value}); waiting {delay:.1f}s.", level=logging.WARNING)
      ctx.log(f"{label}: {ChunkStatus.ATTEMPTING.value} attempt {failed_attempts + 1}", level=logging.DEBUG)

    result = await generate_with_retry(generate, request, self._policy.map_retry, sleep=ctx.sleep, is_cancelled=ctx.is_cancelled, label=label, accept=self._accept, on_retry=record_retry)

    if result.cancelled:
      ctx.log(f"{label}: cancelled by caller between attempts.", level=logging.WARNING)
      raise PipelineCancelledError("The request was cancelled before processing finished.", logs=ctx.logs)

    outcome = result.outcome
    if outcome.succeeded:
      ctx.log(f"{label}: {ChunkStatus.SUCCEEDED.value} after {result.attempts_used} attempt(s).")
      return ChunkOutcome(chunk_index=chunk.index, status=ChunkStatus.SUCCEEDED, summary_text=(outcome.text or "").strip(), attempts_used=result.attempts_used)

    error_class = outcome.error_class.value if outcome.error_class else None
    if outcome.status is GenerationStatus.FATAL_FAILURE:
      ctx.log(f"{label}: fatal {error_class} failure; aborting run.", level=logging.ERROR)
      raise self._fatal(outcome, ctx)

    ctx.log(f"{label}: {ChunkStatus.FAILED.value} after {result.attempts_used} attempt(s) ({error_class}).", level=logging.WARNING)
    return ChunkOutcome(chunk_index=chunk.index, status=ChunkStatus.FAILED, attempts_used=result.attempts_used, error_class=error_class)

  @staticmethod
  def _fatal(outcome: GenerationOutcome, ctx: RunContext) -> PipelineError:
    return fatal_error_for(outcome, fallback=ChunkProcessingError, message="Failed to process document content. Please try again later.", logs=ctx.logs)
