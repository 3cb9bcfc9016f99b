"""Character budget estimation from declared byte sizes."""

from __future__ import annotations

import math
from collections.abc import Sequence

from coursegen.pipeline.contracts import SourceFile
from coursegen.pipeline.errors import BudgetExceededError
from coursegen.pipeline.validation import limits_for

# Used for any type without its own ratio.
DEFAULT_CHARS_PER_BYTE = 0.10


def estimate_chars(source: SourceFile) -> int:
  """Estimate extractable characters from the byte size using a fixed per-type ratio."""
  limits = limits_for(source.mime_type)
  ratio = limits.chars_per_byte if limits is not None else DEFAULT_CHARS_PER_BYTE
  return math.floor(source.byte_size * ratio)


def estimate_total_chars(sources: Sequence[SourceFile]) -> int:
  return sum(estimate_chars(source) for source in sources)


def enforce_size_budget(sources: Sequence[SourceFile], *, max_total_chars: int) -> int:
  """Return the aggregate estimate, raising when it exceeds the global ceiling."""
  estimate = estimate_total_chars(sources)
  if estimate > max_total_chars:
    raise BudgetExceededError(f"Documents are too large to process (estimated {estimate:,} characters, limit {max_total_chars:,}). Please upload fewer or smaller files.")
  return estimate


def expected_chunk_count(total_chars: int, chunk_target_size: int) -> int:
  if total_chars <= 0:
    return 0
  return math.ceil(total_chars / chunk_target_size)
