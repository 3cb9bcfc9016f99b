"""Reduce stage: one generation call that turns the content body into a course."""

from __future__ import annotations

import logging

from coursegen.ai.backoff import generate_with_retry
from coursegen.ai.client import GenerationClient
from coursegen.ai.contracts import GenerationErrorClass, GenerationOutcome, GenerationRequest, GenerationStage
from coursegen.pipeline.context import RunContext
from coursegen.pipeline.contracts import CourseMetadata
from coursegen.pipeline.errors import PipelineCancelledError, SynthesisError, fatal_error_for
from coursegen.pipeline.outline import collect_overlong_sections, parse_course_markdown
from coursegen.pipeline.policy import PipelinePolicy
from coursegen.pipeline.prompts import build_synthesis_prompt

logger = logging.getLogger(__name__)


def _reject_empty(outcome: GenerationOutcome) -> GenerationOutcome:
  if not (outcome.text or "").strip():
    return GenerationOutcome.failure(GenerationErrorClass.UNKNOWN, "Course generation returned no content.")
  return outcome


class CourseSynthesizer:
  """Builds the final prompt and issues the single synthesis call."""

  def __init__(self, client: GenerationClient, policy: PipelinePolicy) -> None:
    self._client = client
    self._policy = policy

  def build_request(self, body: str, metadata: CourseMetadata | None) -> GenerationRequest:
    prompt = build_synthesis_prompt(body, metadata, max_section_chars=self._policy.max_section_chars)
    return GenerationRequest(prompt_text=prompt, stage=GenerationStage.SYNTHESIZE)

  async def synthesize(self, body: str, metadata: CourseMetadata | None, ctx: RunContext) -> str:
    """Return the course markdown, or raise the pipeline error for the failure class."""
    await ctx.ensure_not_cancelled("synthesis")
    request = self.build_request(body, metadata)
    ctx.log(f"Synthesizing course from {len(body)} characters of content (prompt {len(request.prompt_text)} chars).")

    result = await generate_with_retry(ctx.counted(self._client.generate), request, self._policy.synthesis_retry, sleep=ctx.sleep, is_cancelled=ctx.is_cancelled, label="Synthesis", accept=_reject_empty)
    if result.cancelled:
      raise PipelineCancelledError("The request was cancelled before processing finished.", logs=ctx.logs)

    outcome = result.outcome
    if not outcome.succeeded:
      error_class = outcome.error_class.value if outcome.error_class else "unknown"
      ctx.log(f"Synthesis failed ({error_class}): {outcome.error_message}", level=logging.ERROR)
      raise fatal_error_for(outcome, fallback=SynthesisError, message="Failed to generate course content. Please try again.", logs=ctx.logs)

    content = (outcome.text or "").strip()
    self._check_outline(content, ctx)
    return content

  def _check_outline(self, content: str, ctx: RunContext) -> None:
    outline = parse_course_markdown(content)
    ctx.diagnostics.section_count = len(outline.sections)
    if outline.title is None:
      ctx.warn("Generated course has no title heading.")
    for warning in collect_overlong_sections(outline, max_section_chars=self._policy.max_section_chars):
      ctx.warn(warning)
