"""Error taxonomy for the course generation pipeline."""

from __future__ import annotations

from enum import Enum

from coursegen.ai.contracts import GenerationErrorClass, GenerationOutcome


class PipelineErrorCode(str, Enum):
  """Stable error codes returned to API callers."""

  VALIDATION_FAILED = "VALIDATION_FAILED"
  BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
  NO_READABLE_CONTENT = "NO_READABLE_CONTENT"
  CHUNK_PROCESSING_FAILED = "CHUNK_PROCESSING_FAILED"
  QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
  GENERATION_TIMEOUT = "GENERATION_TIMEOUT"
  SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
  METADATA_FAILED = "METADATA_FAILED"
  CANCELLED = "CANCELLED"


# 499 mirrors the de facto "client closed request" status.
_STATUS_BY_CODE: dict[PipelineErrorCode, int] = {
  PipelineErrorCode.VALIDATION_FAILED: 400,
  PipelineErrorCode.BUDGET_EXCEEDED: 400,
  PipelineErrorCode.NO_READABLE_CONTENT: 500,
  PipelineErrorCode.CHUNK_PROCESSING_FAILED: 500,
  PipelineErrorCode.QUOTA_EXCEEDED: 429,
  PipelineErrorCode.GENERATION_TIMEOUT: 408,
  PipelineErrorCode.SYNTHESIS_FAILED: 500,
  PipelineErrorCode.METADATA_FAILED: 500,
  PipelineErrorCode.CANCELLED: 499,
}


def http_status_for(code: PipelineErrorCode | str) -> int:
  """Return the HTTP status class for a pipeline error code."""
  try:
    return _STATUS_BY_CODE[PipelineErrorCode(code)]
  except ValueError:
    return 500


class PipelineError(RuntimeError):
  """Raised when the pipeline encounters a fatal error."""

  code: PipelineErrorCode = PipelineErrorCode.SYNTHESIS_FAILED

  def __init__(self, message: str, *, logs: list[str] | None = None) -> None:
    """Store the user-facing message and a log snapshot for upstream handlers."""
    super().__init__(message)
    self.message = message
    self.logs = list(logs or [])

  @property
  def status_code(self) -> int:
    return http_status_for(self.code)


class InputValidationError(PipelineError):
  """One or more files failed type or size validation."""

  code = PipelineErrorCode.VALIDATION_FAILED

  def __init__(self, message: str, *, reasons: list[str] | None = None, logs: list[str] | None = None) -> None:
    super().__init__(message, logs=logs)
    self.reasons = list(reasons or [])


class BudgetExceededError(PipelineError):
  """Estimated or actual size, or chunk count, is over its ceiling."""

  code = PipelineErrorCode.BUDGET_EXCEEDED


class NoReadableContentError(PipelineError):
  """The assembled corpus is empty or too short to build a course from."""

  code = PipelineErrorCode.NO_READABLE_CONTENT


class ChunkProcessingError(PipelineError):
  """Every chunk failed in the map stage."""

  code = PipelineErrorCode.CHUNK_PROCESSING_FAILED


class QuotaExceededError(PipelineError):
  """The generation service reported an exhausted account quota."""

  code = PipelineErrorCode.QUOTA_EXCEEDED


class GenerationTimeoutError(PipelineError):
  """A generation call timed out."""

  code = PipelineErrorCode.GENERATION_TIMEOUT


class SynthesisError(PipelineError):
  """The reduce-stage call failed."""

  code = PipelineErrorCode.SYNTHESIS_FAILED


class MetadataSuggestionError(PipelineError):
  """Course metadata could not be suggested from the documents."""

  code = PipelineErrorCode.METADATA_FAILED


class PipelineCancelledError(PipelineError):
  """The caller went away before the run finished."""

  code = PipelineErrorCode.CANCELLED


class ExtractionError(Exception):
  """Text could not be extracted from a single file. Recovered by the corpus assembler."""


def fatal_error_for(outcome: GenerationOutcome, *, fallback: type[PipelineError], message: str, logs: list[str] | None = None) -> PipelineError:
  """Translate a failed generation outcome into the pipeline error to raise."""
  if outcome.error_class is GenerationErrorClass.QUOTA_EXCEEDED:
    return QuotaExceededError("The AI service quota has been exhausted. Please try again later or contact your administrator.", logs=logs)
  if outcome.error_class is GenerationErrorClass.TIMEOUT:
    return GenerationTimeoutError("The AI service timed out. Try again with smaller or fewer documents.", logs=logs)
  return fallback(message, logs=logs)
