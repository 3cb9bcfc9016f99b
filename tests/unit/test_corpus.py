"""Unit tests for extraction fan-in and corpus assembly."""

from __future__ import annotations

import pytest

from coursegen.pipeline.contracts import ExtractedText, SourceFile
from coursegen.pipeline.corpus import assemble_corpus, tag_document
from coursegen.pipeline.errors import BudgetExceededError, ExtractionError, NoReadableContentError


class _StubExtractor:
  """Returns canned text per file name; names mapped to an exception raise it."""

  def __init__(self, texts: dict[str, str | Exception]) -> None:
    self._texts = texts
    self.calls: list[str] = []

  async def extract(self, source: SourceFile) -> str:
    self.calls.append(source.name)
    value = self._texts[source.name]
    if isinstance(value, Exception):
      raise value
    return value


def _sources(*names: str) -> list[SourceFile]:
  return [SourceFile(name=name, mime_type="text/plain", byte_size=10) for name in names]


def test_tag_document_wraps_text_with_source_name() -> None:
  tagged = tag_document(ExtractedText(source_name="policy.pdf", text="Body"))
  assert tagged == "--- DOCUMENT: policy.pdf ---\nBody\n--- END DOCUMENT ---"


@pytest.mark.anyio
async def test_corpus_keeps_usable_sources_and_records_failures() -> None:
  extractor = _StubExtractor({"a.txt": "  " + "A" * 80 + "  ", "b.txt": ExtractionError("Could not read PDF: broken xref"), "c.txt": "tiny", "d.txt": RuntimeError("boom")})
  corpus = await assemble_corpus(_sources("a.txt", "b.txt", "c.txt", "d.txt"), extractor, min_source_chars=50, min_total_chars=50, max_total_chars=10_000)

  assert extractor.calls == ["a.txt", "b.txt", "c.txt", "d.txt"]
  assert corpus.sources == ["a.txt"]
  assert corpus.total_char_length == 80
  assert corpus.combined_text.startswith("--- DOCUMENT: a.txt ---\n" + "A" * 80)
  reasons = {failure.source_name: failure.reason for failure in corpus.per_source_failures}
  assert reasons["b.txt"] == "Could not read PDF: broken xref"
  assert reasons["c.txt"] == "Too little readable text (4 characters)."
  assert reasons["d.txt"] == "Extraction failed: RuntimeError"


@pytest.mark.anyio
async def test_corpus_preserves_source_order() -> None:
  extractor = _StubExtractor({"first.txt": "1" * 60, "second.txt": "2" * 60})
  corpus = await assemble_corpus(_sources("first.txt", "second.txt"), extractor, min_source_chars=50, min_total_chars=100, max_total_chars=10_000)
  assert corpus.combined_text.index("first.txt") < corpus.combined_text.index("second.txt")
  assert corpus.total_char_length == 120


@pytest.mark.anyio
async def test_empty_corpus_is_fatal_no_readable_content() -> None:
  extractor = _StubExtractor({"short.txt": "x" * 30})
  with pytest.raises(NoReadableContentError, match="No readable content could be extracted") as exc_info:
    await assemble_corpus(_sources("short.txt"), extractor, min_source_chars=50, min_total_chars=100, max_total_chars=10_000)
  assert exc_info.value.status_code == 500


@pytest.mark.anyio
async def test_corpus_below_total_floor_is_fatal() -> None:
  extractor = _StubExtractor({"a.txt": "x" * 60})
  with pytest.raises(NoReadableContentError, match="only 60 characters"):
    await assemble_corpus(_sources("a.txt"), extractor, min_source_chars=50, min_total_chars=100, max_total_chars=10_000)


@pytest.mark.anyio
async def test_actual_length_over_ceiling_is_a_budget_error() -> None:
  extractor = _StubExtractor({"a.txt": "x" * 500})
  with pytest.raises(BudgetExceededError):
    await assemble_corpus(_sources("a.txt"), extractor, min_source_chars=50, min_total_chars=100, max_total_chars=400)
