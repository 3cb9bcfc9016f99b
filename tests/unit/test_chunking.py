"""Unit tests for size budgets and deterministic chunking."""

from __future__ import annotations

import pytest

from coursegen.pipeline.budget import enforce_size_budget, estimate_chars, expected_chunk_count
from coursegen.pipeline.chunking import chunk_corpus, split_text
from coursegen.pipeline.contracts import SourceFile
from coursegen.pipeline.errors import BudgetExceededError
from coursegen.pipeline.validation import DOCX_MIME, PDF_MIME


def test_estimates_use_per_type_ratios() -> None:
  assert estimate_chars(SourceFile(name="a.pdf", mime_type=PDF_MIME, byte_size=1000)) == 150
  assert estimate_chars(SourceFile(name="a.docx", mime_type=DOCX_MIME, byte_size=1000)) == 100
  assert estimate_chars(SourceFile(name="a.txt", mime_type="text/plain", byte_size=1000)) == 1000
  assert estimate_chars(SourceFile(name="a.bin", mime_type="application/octet-stream", byte_size=1000)) == 100


def test_size_budget_rejects_estimate_over_ceiling() -> None:
  sources = [SourceFile(name="a.txt", mime_type="text/plain", byte_size=600), SourceFile(name="b.txt", mime_type="text/plain", byte_size=500)]
  assert enforce_size_budget(sources, max_total_chars=1100) == 1100
  with pytest.raises(BudgetExceededError, match="too large"):
    enforce_size_budget(sources, max_total_chars=1099)


def test_expected_chunk_count_rounds_up() -> None:
  assert expected_chunk_count(0, 40_000) == 0
  assert expected_chunk_count(40_000, 40_000) == 1
  assert expected_chunk_count(40_001, 40_000) == 2
  assert expected_chunk_count(500_000, 40_000) == 13


def test_split_text_packs_paragraphs_in_order(paragraph_text) -> None:
  text = paragraph_text(10, width=100)
  pieces = split_text(text, 250)
  # Two 100-char paragraphs plus a separator fit; a third does not.
  assert [len(piece) for piece in pieces] == [202] * 5
  assert "\n\n".join(pieces) == text


def test_split_text_breaks_long_paragraphs_on_sentences() -> None:
  paragraph = " ".join(f"Sentence number {index} ends here." for index in range(40))
  pieces = split_text(paragraph, 120)
  assert all(len(piece) <= 120 for piece in pieces)
  assert " ".join(pieces) == paragraph


def test_split_text_hard_cuts_a_single_overlong_sentence() -> None:
  pieces = split_text("x" * 95, 30)
  assert [len(piece) for piece in pieces] == [30, 30, 30, 5]


def test_chunk_corpus_never_exceeds_target(paragraph_text) -> None:
  text = paragraph_text(117)
  chunks = chunk_corpus(text, total_char_length=len(text), target_size=40_000, max_chunks=20)
  assert [chunk.index for chunk in chunks] == [0, 1, 2]
  assert all(chunk.char_length <= 40_000 for chunk in chunks)


def test_chunk_corpus_rejects_expected_count_before_splitting() -> None:
  with pytest.raises(BudgetExceededError, match="3 chunks would be needed"):
    chunk_corpus("", total_char_length=120_000, target_size=40_000, max_chunks=2)


def test_chunk_corpus_rejects_actual_count_over_ceiling(paragraph_text) -> None:
  # Paragraph packing can produce more chunks than the estimate.
  text = paragraph_text(6, width=60)
  with pytest.raises(BudgetExceededError, match="chunks were produced"):
    chunk_corpus(text, total_char_length=len(text), target_size=100, max_chunks=5)
