"""Per-file type and size validation applied before any processing."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from coursegen.pipeline.contracts import DocumentLimits, SourceFile, ValidationVerdict
from coursegen.pipeline.errors import InputValidationError

logger = logging.getLogger(__name__)

_MEGABYTE = 1024 * 1024

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"
MARKDOWN_MIME = "text/markdown"

DOCUMENT_LIMITS: dict[str, DocumentLimits] = {
  PDF_MIME: DocumentLimits(max_size_bytes=25 * _MEGABYTE, chars_per_byte=0.15, description="PDF files (max 25MB)"),
  DOCX_MIME: DocumentLimits(max_size_bytes=50 * _MEGABYTE, chars_per_byte=0.10, description="DOCX files (max 50MB)"),
  DOC_MIME: DocumentLimits(max_size_bytes=50 * _MEGABYTE, chars_per_byte=0.10, description="DOC files (max 50MB)"),
  TEXT_MIME: DocumentLimits(max_size_bytes=10 * _MEGABYTE, chars_per_byte=1.0, description="Text files (max 10MB)"),
  MARKDOWN_MIME: DocumentLimits(max_size_bytes=10 * _MEGABYTE, chars_per_byte=1.0, description="Markdown files (max 10MB)"),
}


def normalize_mime_type(mime_type: str | None) -> str:
  """Lower-case a declared type and drop parameters such as ``; charset=utf-8``."""
  if not mime_type:
    return ""
  return mime_type.split(";", 1)[0].strip().lower()


def format_file_size(byte_size: int) -> str:
  if byte_size < 1024:
    return f"{byte_size} B"
  if byte_size < _MEGABYTE:
    return f"{byte_size / 1024:.1f} KB"
  return f"{byte_size / _MEGABYTE:.1f} MB"


def limits_for(mime_type: str) -> DocumentLimits | None:
  return DOCUMENT_LIMITS.get(normalize_mime_type(mime_type))


def validate_source_file(source: SourceFile) -> ValidationVerdict:
  """Check one file's declared type and size against the allow-list."""
  limits = limits_for(source.mime_type)
  if limits is None:
    declared = source.mime_type or "unknown"
    return ValidationVerdict(source_name=source.name, is_valid=False, reason=f"Unsupported file type: {declared}. Supported types: PDF, DOCX, DOC, TXT, MD")

  if source.byte_size <= 0:
    return ValidationVerdict(source_name=source.name, is_valid=False, reason="File is empty.", limits=limits)

  if source.byte_size > limits.max_size_bytes:
    limit_mb = limits.max_size_bytes // _MEGABYTE
    reason = f"File size ({format_file_size(source.byte_size)}) exceeds limit for {limits.description}. Maximum allowed: {limit_mb}MB"
    return ValidationVerdict(source_name=source.name, is_valid=False, reason=reason, limits=limits)

  return ValidationVerdict(source_name=source.name, is_valid=True, limits=limits)


def validate_batch(sources: Sequence[SourceFile], *, max_files: int) -> list[ValidationVerdict]:
  """
  Validate every file in a request; all-or-nothing.

  Raises ``InputValidationError`` listing every failure reason when the batch is
  empty, too large, or contains any invalid file.
  """
  if not sources:
    raise InputValidationError("No files provided.", reasons=["No files provided."])
  if len(sources) > max_files:
    reason = f"Too many files ({len(sources)}). Maximum allowed per request: {max_files}."
    raise InputValidationError(reason, reasons=[reason])

  verdicts = [validate_source_file(source) for source in sources]
  reasons = [f"{verdict.source_name}: {verdict.reason}" for verdict in verdicts if not verdict.is_valid]
  if reasons:
    logger.info("Rejected batch of %s files: %s", len(sources), "; ".join(reasons))
    raise InputValidationError("File validation failed: " + "; ".join(reasons), reasons=reasons)
  return verdicts


_MIME_BY_EXTENSION: dict[str, str] = {".pdf": PDF_MIME, ".docx": DOCX_MIME, ".doc": DOC_MIME, ".txt": TEXT_MIME, ".md": MARKDOWN_MIME, ".markdown": MARKDOWN_MIME}


def infer_mime_type(name: str) -> str:
  """Guess a supported type from the file extension; empty when unknown."""
  suffix = name.rsplit(".", 1)[-1].lower() if "." in name else ""
  return _MIME_BY_EXTENSION.get(f".{suffix}", "")
