"Orchestration for the document-to-course pipeline."

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from coursegen.ai.backoff import generate_with_retry
from coursegen.ai.client import GenerationClient
from coursegen.ai.contracts import GenerationRequest, GenerationStage
from coursegen.ai.json_parser import parse_json_with_fallback
from coursegen.ai.providers.base import AIModel
from coursegen.pipeline.budget import enforce_size_budget
from coursegen.pipeline.chunking import chunk_corpus
from coursegen.pipeline.context import CancelCheck, RunContext, SleepFn
from coursegen.pipeline.contracts import ChunkStatus, Corpus, CourseMetadata, PipelinePath, PipelineResult, PipelineStatus, SourceFile
from coursegen.pipeline.corpus import assemble_corpus
from coursegen.pipeline.errors import MetadataSuggestionError, PipelineCancelledError, PipelineError, fatal_error_for
from coursegen.pipeline.extraction import TextExtractor
from coursegen.pipeline.policy import PipelinePolicy
from coursegen.pipeline.prompts import build_analyze_prompt, join_summaries
from coursegen.pipeline.summarizer import ChunkSummarizer
from coursegen.pipeline.synthesizer import CourseSynthesizer
from coursegen.pipeline.validation import validate_batch

logger = logging.getLogger(__name__)


class CourseOrchestrator:
  """
  Sequences validation, extraction, chunking, summarization and synthesis.

  Create one instance per request. All mutable state lives in a ``RunContext``
  created inside each call, so nothing is shared between runs.
  """

  def __init__(self, *, client: GenerationClient, extractor: TextExtractor, policy: PipelinePolicy, is_cancelled: CancelCheck | None = None, sleep: SleepFn | None = None) -> None:
    self._client = client
    self._extractor = extractor
    self._policy = policy
    self._is_cancelled = is_cancelled
    self._sleep = sleep
    self._summarizer = ChunkSummarizer(client, policy)
    self._synthesizer = CourseSynthesizer(client, policy)

  def _new_context(self) -> RunContext:
    return RunContext.start(is_cancelled=self._is_cancelled, sleep=self._sleep)

  async def run(self, sources: Sequence[SourceFile], metadata: CourseMetadata | None = None) -> PipelineResult:
    """Run the whole pipeline; fatal errors become a failed result with no content."""
    ctx = self._new_context()
    ctx.log(f"Course generation started with {len(sources)} file(s) on model {self._client.model_name}.")

    try:
      content = await self._execute(sources, metadata, ctx)
    except PipelineError as exc:
      level = logging.WARNING if exc.status_code < 500 else logging.ERROR
      ctx.log(f"Course generation failed code={exc.code.value}: {exc.message}", level=level)
      return self._result(ctx, status=PipelineStatus.FAILED, error_code=exc.code.value, error_message=exc.message)

    ctx.log(f"Course generation complete ({ctx.diagnostics.generation_calls} generation calls).")
    return self._result(ctx, status=PipelineStatus.COMPLETED, content=content)

  async def _execute(self, sources: Sequence[SourceFile], metadata: CourseMetadata | None, ctx: RunContext) -> str:
    corpus = await self._prepare_corpus(sources, ctx)

    if corpus.total_char_length > self._policy.chunk_trigger_threshold:
      ctx.diagnostics.path = PipelinePath.MAP_REDUCE
      ctx.log(f"Corpus of {corpus.total_char_length} chars exceeds {self._policy.chunk_trigger_threshold}; using map-reduce.")
      with ctx.stage("chunking"):
        chunks = chunk_corpus(corpus.combined_text, total_char_length=corpus.total_char_length, target_size=self._policy.chunk_target_size, max_chunks=self._policy.max_chunks)
      ctx.log(f"Split corpus into {len(chunks)} chunks.")
      with ctx.stage("summarize"):
        outcomes = await self._summarizer.summarize(chunks, ctx)
      body = join_summaries(outcomes)
    else:
      ctx.diagnostics.path = PipelinePath.DIRECT
      body = corpus.combined_text

    with ctx.stage("synthesize"):
      return await self._synthesizer.synthesize(body, metadata, ctx)

  async def _prepare_corpus(self, sources: Sequence[SourceFile], ctx: RunContext) -> Corpus:
    """Validate, budget and extract the batch into a usable corpus."""
    with ctx.stage("validation"):
      validate_batch(sources, max_files=self._policy.max_files)
      estimate = enforce_size_budget(sources, max_total_chars=self._policy.max_total_chars)
    ctx.log(f"Validated {len(sources)} file(s); estimated {estimate} characters.")

    await ctx.ensure_not_cancelled("extraction")
    with ctx.stage("extraction"):
      corpus = await assemble_corpus(sources, self._extractor, min_source_chars=self._policy.min_source_chars, min_total_chars=self._policy.min_total_chars, max_total_chars=self._policy.max_total_chars)

    ctx.diagnostics.source_count = len(corpus.sources)
    ctx.diagnostics.corpus_chars = corpus.total_char_length
    ctx.diagnostics.source_failures = list(corpus.per_source_failures)
    for failure in corpus.per_source_failures:
      ctx.warn(f"Skipped {failure.source_name}: {failure.reason}")
    ctx.log(f"Assembled corpus of {corpus.total_char_length} chars from {len(corpus.sources)} file(s).")
    return corpus

  async def suggest_metadata(self, sources: Sequence[SourceFile]) -> CourseMetadata:
    """Propose course metadata from the documents. Raises ``PipelineError`` on failure."""
    ctx = self._new_context()
    corpus = await self._prepare_corpus(sources, ctx)
    await ctx.ensure_not_cancelled("metadata analysis")

    request = GenerationRequest(prompt_text=build_analyze_prompt(corpus.combined_text, sample_chars=self._policy.metadata_sample_chars), stage=GenerationStage.ANALYZE)
    result = await generate_with_retry(ctx.counted(self._client.generate), request, self._policy.map_retry, sleep=ctx.sleep, is_cancelled=ctx.is_cancelled, label="Metadata analysis")
    if result.cancelled:
      raise PipelineCancelledError("The request was cancelled before processing finished.", logs=ctx.logs)
    if not result.outcome.succeeded:
      raise fatal_error_for(result.outcome, fallback=MetadataSuggestionError, message="Failed to analyze documents.", logs=ctx.logs)

    try:
      payload = parse_json_with_fallback(AIModel.strip_json_fences(result.outcome.text or ""))
      return CourseMetadata.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
      ctx.log(f"Metadata response could not be parsed: {exc}", level=logging.WARNING)
      raise MetadataSuggestionError("Failed to analyze documents: the AI service returned an unexpected response.", logs=ctx.logs) from exc

  @staticmethod
  def _result(ctx: RunContext, *, status: PipelineStatus, content: str | None = None, error_code: str | None = None, error_message: str | None = None) -> PipelineResult:
    diagnostics = ctx.diagnostics
    diagnostics.chunks_succeeded = sum(1 for outcome in ctx.chunk_outcomes if outcome.status is ChunkStatus.SUCCEEDED)
    diagnostics.chunks_failed = sum(1 for outcome in ctx.chunk_outcomes if outcome.status is ChunkStatus.FAILED)
    return PipelineResult(status=status, content=content, error_code=error_code, error_message=error_message, chunk_outcomes=list(ctx.chunk_outcomes), diagnostics=diagnostics)
