"""Shared data contracts for the course generation pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class DifficultyLevel(str, Enum):
  """Target audience level for the generated course."""

  BEGINNER = "Beginner"
  MODERATE = "Moderate"
  ADVANCED = "Advanced"


class SourceFile(BaseModel):
  """Uploaded document as received at request intake."""

  name: str = Field(min_length=1)
  mime_type: str = ""
  byte_size: int = Field(ge=0)
  data: bytes = Field(default=b"", repr=False)


class DocumentLimits(BaseModel):
  """Per-format size policy applied by the validator."""

  max_size_bytes: int
  chars_per_byte: float
  description: str
  model_config = ConfigDict(frozen=True)


class ValidationVerdict(BaseModel):
  """Validator decision for one source file."""

  source_name: str
  is_valid: bool
  reason: str | None = None
  limits: DocumentLimits | None = None


class ExtractedText(BaseModel):
  """Decoded text for one source file."""

  source_name: str
  text: str

  @property
  def char_length(self) -> int:
    return len(self.text)


class SourceFailure(BaseModel):
  """Soft, per-file extraction failure."""

  source_name: str
  reason: str


class Corpus(BaseModel):
  """Usable text assembled from every source that survived filtering."""

  combined_text: str
  total_char_length: int = Field(ge=0)
  sources: list[str] = Field(default_factory=list)
  per_source_failures: list[SourceFailure] = Field(default_factory=list)


class Chunk(BaseModel):
  """Bounded slice of the corpus, in original text order."""

  index: int = Field(ge=0)
  text: str

  @property
  def char_length(self) -> int:
    return len(self.text)


class ChunkStatus(str, Enum):
  """Map-stage lifecycle of a chunk."""

  PENDING = "pending"
  ATTEMPTING = "attempting"
  RETRYING = "retrying"
  SUCCEEDED = "succeeded"
  FAILED = "failed"


class ChunkOutcome(BaseModel):
  """Terminal map-stage result for one chunk."""

  chunk_index: int = Field(ge=0)
  status: ChunkStatus
  summary_text: str | None = None
  attempts_used: int = Field(ge=0)
  error_class: str | None = None
  model_config = ConfigDict(frozen=True)


class CourseMetadata(BaseModel):
  """Caller supplied course details echoed into the synthesis prompt."""

  title: StrictStr | None = None
  description: StrictStr | None = None
  category: StrictStr | None = None
  difficulty_level: DifficultyLevel | None = Field(default=None, alias="difficulty")
  duration: StrictStr | None = None
  objectives: list[StrictStr] = Field(default_factory=list)
  compliance_mapping: StrictStr | None = Field(default=None, alias="complianceMapping")
  model_config = ConfigDict(populate_by_name=True, frozen=True)

  @field_validator("difficulty_level", mode="before")
  @classmethod
  def normalize_difficulty(cls, value: Any) -> Any:
    # Accept case variants such as "beginner" from form inputs.
    if isinstance(value, str):
      cleaned = value.strip()
      if not cleaned:
        return None
      for level in DifficultyLevel:
        if level.value.lower() == cleaned.lower():
          return level
    return value

  @field_validator("objectives", mode="before")
  @classmethod
  def drop_blank_objectives(cls, value: Any) -> Any:
    if value is None:
      return []
    if isinstance(value, list):
      return [item.strip() if isinstance(item, str) else item for item in value if not (isinstance(item, str) and not item.strip())]
    return value


class PipelinePath(str, Enum):
  """Route the content body took to the reduce stage."""

  DIRECT = "direct"
  MAP_REDUCE = "map_reduce"


class RunDiagnostics(BaseModel):
  """Per-run counters and warnings reported alongside the result."""

  run_id: str
  path: PipelinePath | None = None
  source_count: int = 0
  corpus_chars: int = 0
  chunk_count: int = 0
  chunks_succeeded: int = 0
  chunks_failed: int = 0
  generation_calls: int = 0
  section_count: int = 0
  source_failures: list[SourceFailure] = Field(default_factory=list)
  stage_durations_ms: dict[str, float] = Field(default_factory=dict)
  warnings: list[str] = Field(default_factory=list)


class PipelineStatus(str, Enum):
  COMPLETED = "completed"
  FAILED = "failed"


class PipelineResult(BaseModel):
  """Terminal output of one pipeline run."""

  status: PipelineStatus
  content: str | None = None
  error_code: str | None = None
  error_message: str | None = None
  chunk_outcomes: list[ChunkOutcome] = Field(default_factory=list)
  diagnostics: RunDiagnostics

  @property
  def completed(self) -> bool:
    return self.status is PipelineStatus.COMPLETED
