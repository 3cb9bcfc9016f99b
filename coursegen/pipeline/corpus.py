"""Corpus assembly from per-file extraction results."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from coursegen.pipeline.contracts import Corpus, ExtractedText, SourceFailure, SourceFile
from coursegen.pipeline.errors import BudgetExceededError, ExtractionError, NoReadableContentError
from coursegen.pipeline.extraction import TextExtractor

logger = logging.getLogger(__name__)


def tag_document(extracted: ExtractedText) -> str:
  """Wrap document text with markers naming its source."""
  return f"--- DOCUMENT: {extracted.source_name} ---\n{extracted.text}\n--- END DOCUMENT ---"


async def extract_all(sources: Sequence[SourceFile], extractor: TextExtractor, *, min_source_chars: int) -> tuple[list[ExtractedText], list[SourceFailure]]:
  """Extract every source once, separating usable text from soft failures."""
  extracted: list[ExtractedText] = []
  failures: list[SourceFailure] = []

  for source in sources:
    try:
      raw_text = await extractor.extract(source)
    except ExtractionError as exc:
      logger.warning("Extraction failed for %s: %s", source.name, exc)
      failures.append(SourceFailure(source_name=source.name, reason=str(exc) or "Extraction failed."))
      continue
    except Exception as exc:  # noqa: BLE001
      # A broken file must not take the rest of the batch down with it.
      logger.warning("Unexpected extraction error for %s", source.name, exc_info=True)
      failures.append(SourceFailure(source_name=source.name, reason=f"Extraction failed: {type(exc).__name__}"))
      continue

    text = (raw_text or "").strip()
    if len(text) < min_source_chars:
      logger.info("Discarding %s: %s characters is below the %s character floor", source.name, len(text), min_source_chars)
      failures.append(SourceFailure(source_name=source.name, reason=f"Too little readable text ({len(text)} characters)."))
      continue

    extracted.append(ExtractedText(source_name=source.name, text=text))

  return extracted, failures


def build_corpus(extracted: Sequence[ExtractedText], failures: Sequence[SourceFailure], *, min_total_chars: int, max_total_chars: int) -> Corpus:
  """Merge usable texts into one corpus, failing when nothing meaningful remains."""
  if not extracted:
    detail = "; ".join(f"{failure.source_name}: {failure.reason}" for failure in failures)
    message = "No readable content could be extracted from the uploaded files."
    raise NoReadableContentError(f"{message} {detail}" if detail else message)

  total_chars = sum(item.char_length for item in extracted)
  if total_chars < min_total_chars:
    raise NoReadableContentError(f"No readable content: the documents contain only {total_chars} characters of text, at least {min_total_chars} are required.")
  if total_chars > max_total_chars:
    raise BudgetExceededError(f"Documents are too large to process ({total_chars:,} characters extracted, limit {max_total_chars:,}). Please upload fewer or smaller files.")

  combined = "\n\n".join(tag_document(item) for item in extracted)
  return Corpus(combined_text=combined, total_char_length=total_chars, sources=[item.source_name for item in extracted], per_source_failures=list(failures))


async def assemble_corpus(sources: Sequence[SourceFile], extractor: TextExtractor, *, min_source_chars: int, min_total_chars: int, max_total_chars: int) -> Corpus:
  extracted, failures = await extract_all(sources, extractor, min_source_chars=min_source_chars)
  return build_corpus(extracted, failures, min_total_chars=min_total_chars, max_total_chars=max_total_chars)
