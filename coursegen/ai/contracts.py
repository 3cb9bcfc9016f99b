"""Contracts shared by the generation client and the pipeline stages that call it."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GenerationStage(str, Enum):
  """Pipeline stage that issued a generation request."""

  SUMMARIZE = "summarize"
  SYNTHESIZE = "synthesize"
  ANALYZE = "analyze"


class GenerationStatus(str, Enum):
  """Outcome status of a single generation call."""

  SUCCESS = "success"
  RETRYABLE_FAILURE = "retryable_failure"
  FATAL_FAILURE = "fatal_failure"


class GenerationErrorClass(str, Enum):
  """Failure classes assigned once at the generation client boundary."""

  RATE_LIMITED = "rate_limited"
  QUOTA_EXCEEDED = "quota_exceeded"
  TIMEOUT = "timeout"
  UNKNOWN = "unknown"

  @property
  def retryable(self) -> bool:
    return self in {GenerationErrorClass.RATE_LIMITED, GenerationErrorClass.UNKNOWN}


class GenerationRequest(BaseModel):
  """Single prompt sent to the generation service."""

  prompt_text: str = Field(min_length=1)
  stage: GenerationStage
  model_config = ConfigDict(frozen=True)


class GenerationOutcome(BaseModel):
  """Classified result of one generation call."""

  status: GenerationStatus
  text: str | None = None
  error_class: GenerationErrorClass | None = None
  error_message: str | None = None
  usage: dict[str, int] | None = None
  model_config = ConfigDict(frozen=True)

  @classmethod
  def success(cls, text: str, usage: dict[str, int] | None = None) -> GenerationOutcome:
    return cls(status=GenerationStatus.SUCCESS, text=text, usage=usage)

  @classmethod
  def failure(cls, error_class: GenerationErrorClass, message: str | None = None) -> GenerationOutcome:
    """Build a failed outcome whose status follows from the error class."""
    status = GenerationStatus.RETRYABLE_FAILURE if error_class.retryable else GenerationStatus.FATAL_FAILURE
    return cls(status=status, error_class=error_class, error_message=message)

  @property
  def succeeded(self) -> bool:
    return self.status is GenerationStatus.SUCCESS
