"""Unit tests for prompt assembly."""

from __future__ import annotations

from coursegen.pipeline.contracts import Chunk, ChunkOutcome, ChunkStatus, CourseMetadata, DifficultyLevel
from coursegen.pipeline.prompts import TRUNCATION_MARKER, build_analyze_prompt, build_metadata_block, build_summary_prompt, build_synthesis_prompt, difficulty_directive, join_summaries


def test_summary_prompt_names_part_and_preserves_text() -> None:
  prompt = build_summary_prompt(Chunk(index=2, text="Step 1. Lock out the machine."), 5)
  assert "(part 3 of 5)" in prompt
  assert "every procedure and step-by-step instruction" in prompt
  assert prompt.rstrip().endswith("Step 1. Lock out the machine.")


def test_synthesis_prompt_orders_blocks() -> None:
  metadata = CourseMetadata(title="Lockout Basics", objectives=["Apply a lock"], difficulty=DifficultyLevel.ADVANCED)
  prompt = build_synthesis_prompt("BODY TEXT", metadata, max_section_chars=1000)

  structure = prompt.index("OUTPUT STRUCTURE")
  metadata_block = prompt.index("COURSE METADATA")
  directive = prompt.index("DIFFICULTY LEVEL: ADVANCED")
  content = prompt.index("CONTENT:\nBODY TEXT")
  assert structure < metadata_block < directive < content
  assert "under 1000 characters" in prompt
  assert "- Title: Lockout Basics" in prompt
  assert "  1. Apply a lock" in prompt


def test_missing_metadata_defaults_to_moderate_without_metadata_block() -> None:
  prompt = build_synthesis_prompt("BODY", None, max_section_chars=1000)
  assert "COURSE METADATA" not in prompt
  assert "DIFFICULTY LEVEL: MODERATE" in prompt
  assert build_metadata_block(CourseMetadata()) == ""


def test_difficulty_only_changes_the_directive_block() -> None:
  beginner = build_synthesis_prompt("BODY", CourseMetadata(title="T", difficulty="Beginner"), max_section_chars=1000)
  advanced = build_synthesis_prompt("BODY", CourseMetadata(title="T", difficulty="Advanced"), max_section_chars=1000)

  assert beginner != advanced
  assert beginner.replace(difficulty_directive(DifficultyLevel.BEGINNER), "") == advanced.replace(difficulty_directive(DifficultyLevel.ADVANCED), "")


def test_directives_are_mutually_exclusive() -> None:
  prompt = build_synthesis_prompt("BODY", CourseMetadata(difficulty="beginner"), max_section_chars=1000)
  assert "DIFFICULTY LEVEL: BEGINNER" in prompt
  assert "DIFFICULTY LEVEL: MODERATE" not in prompt
  assert "DIFFICULTY LEVEL: ADVANCED" not in prompt


def test_join_summaries_orders_by_chunk_index_and_skips_failures() -> None:
  outcomes = [
    ChunkOutcome(chunk_index=2, status=ChunkStatus.SUCCEEDED, summary_text="third", attempts_used=1),
    ChunkOutcome(chunk_index=0, status=ChunkStatus.SUCCEEDED, summary_text="first", attempts_used=1),
    ChunkOutcome(chunk_index=1, status=ChunkStatus.FAILED, attempts_used=3, error_class="unknown"),
  ]
  assert join_summaries(outcomes) == "--- SUMMARY PART 1 ---\nfirst\n\n--- SUMMARY PART 3 ---\nthird"


def test_analyze_prompt_truncates_long_corpora() -> None:
  prompt = build_analyze_prompt("x" * 200, sample_chars=50)
  assert "x" * 50 + TRUNCATION_MARKER in prompt
  assert "x" * 51 not in prompt
  assert '"complianceMapping"' in prompt
