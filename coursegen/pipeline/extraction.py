"""Text extraction for the supported document formats."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import Protocol

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from starlette.concurrency import run_in_threadpool

from coursegen.pipeline.contracts import SourceFile
from coursegen.pipeline.errors import ExtractionError
from coursegen.pipeline.validation import DOC_MIME, DOCX_MIME, MARKDOWN_MIME, PDF_MIME, TEXT_MIME, normalize_mime_type

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
  """Turns one source file into text or raises ``ExtractionError``."""

  async def extract(self, source: SourceFile) -> str: ...


class DocumentTextExtractor:
  """Default extractor for PDF, DOCX, plain text and markdown uploads."""

  async def extract(self, source: SourceFile) -> str:
    mime_type = normalize_mime_type(source.mime_type)
    if mime_type == DOC_MIME:
      raise ExtractionError("Legacy .doc files cannot be read; please convert to .docx or PDF.")
    if mime_type == PDF_MIME:
      # Parsing is CPU bound; keep it off the event loop.
      return await run_in_threadpool(_extract_pdf, source.data, source.name)
    if mime_type == DOCX_MIME:
      return await run_in_threadpool(_extract_docx, source.data, source.name)
    if mime_type in {TEXT_MIME, MARKDOWN_MIME}:
      return _decode_text(source.data)
    raise ExtractionError(f"No extractor for file type '{source.mime_type}'.")


def _decode_text(data: bytes) -> str:
  try:
    return data.decode("utf-8-sig")
  except UnicodeDecodeError:
    return data.decode("latin-1", errors="replace")


def _extract_pdf(data: bytes, name: str) -> str:
  try:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
  except (PdfReadError, ValueError, OSError) as exc:
    raise ExtractionError(f"Could not read PDF: {exc}") from exc

  text = "\n\n".join(page for page in pages if page.strip())
  logger.info("Extracted %s characters from %s pages of %s", len(text), len(pages), name)
  return text


def _extract_docx(data: bytes, name: str) -> str:
  try:
    document = Document(io.BytesIO(data))
  except (PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError, OSError) as exc:
    raise ExtractionError(f"Could not read DOCX: {exc}") from exc

  paragraphs = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
  # Tables often carry procedures and checklists; keep their cell text too.
  for table in document.tables:
    for row in table.rows:
      cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
      if cells:
        paragraphs.append(" | ".join(cells))

  text = "\n\n".join(paragraphs)
  logger.info("Extracted %s characters from %s", len(text), name)
  return text
