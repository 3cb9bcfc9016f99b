"""Deterministic splitting of an oversized corpus into bounded chunks.

Paragraphs are packed greedily up to the target size. A paragraph longer than
the target is broken on sentence boundaries, and a sentence longer than the
target is cut at the target size. No chunk is ever longer than the target.
"""

from __future__ import annotations

import re

from coursegen.pipeline.budget import expected_chunk_count
from coursegen.pipeline.contracts import Chunk
from coursegen.pipeline.errors import BudgetExceededError

PARAGRAPH_SEPARATOR = "\n\n"
_PARAGRAPH_RE = re.compile(r"\n\s*\n")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _pack(pieces: list[str], target_size: int, separator: str) -> list[str]:
  """Greedily join pieces (each already within the target) into target-sized groups."""
  groups: list[str] = []
  current = ""
  for piece in pieces:
    if not current:
      current = piece
    elif len(current) + len(separator) + len(piece) <= target_size:
      current = f"{current}{separator}{piece}"
    else:
      groups.append(current)
      current = piece
  if current:
    groups.append(current)
  return groups


def _hard_split(text: str, target_size: int) -> list[str]:
  return [text[start : start + target_size] for start in range(0, len(text), target_size)]


def _split_paragraph(paragraph: str, target_size: int) -> list[str]:
  """Break an oversized paragraph into sentence groups within the target."""
  sentences: list[str] = []
  for sentence in _SENTENCE_RE.split(paragraph):
    if not sentence:
      continue
    if len(sentence) > target_size:
      sentences.extend(_hard_split(sentence, target_size))
    else:
      sentences.append(sentence)
  return _pack(sentences, target_size, " ")


def split_text(text: str, target_size: int) -> list[str]:
  """Split text into ordered pieces no longer than ``target_size``."""
  if target_size <= 0:
    raise ValueError("target_size must be positive.")

  units: list[str] = []
  for paragraph in _PARAGRAPH_RE.split(text):
    paragraph = paragraph.strip()
    if not paragraph:
      continue
    if len(paragraph) > target_size:
      units.extend(_split_paragraph(paragraph, target_size))
    else:
      units.append(paragraph)
  return _pack(units, target_size, PARAGRAPH_SEPARATOR)


def chunk_corpus(text: str, *, total_char_length: int, target_size: int, max_chunks: int) -> list[Chunk]:
  """
  Split the corpus into chunks, enforcing the chunk ceiling.

  The expected count (``ceil(total / target)``) is checked before splitting and
  the actual count after, so an oversized batch is rejected before any
  generation call is made.
  """
  expected = expected_chunk_count(total_char_length, target_size)
  if expected > max_chunks:
    raise BudgetExceededError(f"Documents are too large to process: {expected} chunks would be needed, the maximum is {max_chunks}. Please upload fewer or smaller files.")

  pieces = split_text(text, target_size)
  if len(pieces) > max_chunks:
    raise BudgetExceededError(f"Documents are too large to process: {len(pieces)} chunks were produced, the maximum is {max_chunks}. Please upload fewer or smaller files.")

  return [Chunk(index=index, text=piece) for index, piece in enumerate(pieces)]
