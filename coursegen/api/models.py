from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, StrictStr, model_validator

from coursegen.pipeline.contracts import CourseMetadata, RunDiagnostics, SourceFile
from coursegen.pipeline.validation import infer_mime_type, normalize_mime_type


def _decode_base64(data: str) -> bytes:
  """Decode a base64 payload, accepting an optional ``data:<type>;base64,`` prefix."""
  if data.startswith("data:") and "," in data:
    data = data.split(",", 1)[1]
  compact = "".join(data.split())
  try:
    return base64.b64decode(compact, validate=True)
  except (binascii.Error, ValueError) as exc:
    raise ValueError("File data must be valid base64.") from exc


class UploadedFile(BaseModel):
  """One uploaded document; ``data`` carries the file bytes as base64."""

  name: StrictStr = Field(min_length=1, description="Original file name.", examples=["handbook.pdf"])
  type: StrictStr = Field(default="", description="Declared MIME type. Inferred from the file extension when empty.", examples=["application/pdf"])
  data: StrictStr = Field(repr=False, description="Base64-encoded file content, optionally as a data URL.")
  model_config = ConfigDict(extra="forbid")
  _raw: bytes = PrivateAttr(default=b"")

  @model_validator(mode="after")
  def decode_payload(self) -> UploadedFile:
    # Decode once so malformed payloads fail as request validation errors.
    self._raw = _decode_base64(self.data)
    if not self.type:
      self.type = infer_mime_type(self.name)
    return self

  def to_source_file(self) -> SourceFile:
    return SourceFile(name=self.name, mime_type=normalize_mime_type(self.type), byte_size=len(self._raw), data=self._raw)


class DocumentBatchRequest(BaseModel):
  """Shared payload for endpoints that take a batch of documents."""

  files: list[UploadedFile] = Field(default_factory=list, description="Documents to build the course from.")
  model_config = ConfigDict(extra="forbid", populate_by_name=True)

  def source_files(self) -> list[SourceFile]:
    return [upload.to_source_file() for upload in self.files]


class GenerateCourseRequest(DocumentBatchRequest):
  """Request payload for course generation."""

  course_metadata: CourseMetadata | None = Field(default=None, alias="courseMetadata", description="Optional course metadata that steers generation.")

  @model_validator(mode="before")
  @classmethod
  def drop_empty_metadata(cls, values: Any) -> Any:
    # Treat an empty metadata object the same as no metadata.
    if isinstance(values, dict):
      for key in ("courseMetadata", "course_metadata"):
        if values.get(key) == {}:
          values = {**values, key: None}
    return values


class GenerateCourseResponse(BaseModel):
  """Generated course markdown plus run diagnostics."""

  content: StrictStr
  diagnostics: RunDiagnostics


class AnalyzeDocumentsRequest(DocumentBatchRequest):
  """Request payload for metadata suggestion."""


class AnalyzeDocumentsResponse(BaseModel):
  """Suggested course metadata derived from the documents."""

  metadata: CourseMetadata


class ErrorResponse(BaseModel):
  """Body returned for every failed request."""

  error: Any
  code: StrictStr | None = None
  request_id: StrictStr | None = Field(default=None, alias="requestId")
