"""Prompt builders for the summarize, synthesize and analyze calls."""

from __future__ import annotations

from collections.abc import Sequence

from coursegen.pipeline.contracts import Chunk, ChunkOutcome, CourseMetadata, DifficultyLevel

DEFAULT_DIFFICULTY = DifficultyLevel.MODERATE

_SUMMARY_TEMPLATE = """You are an expert analyst preparing source material for a training course.
Condense the following document section (part {part} of {total}).

Preserve, without loss of instructional fidelity:
- every procedure and step-by-step instruction, in its original order
- every definition and key term
- requirements, thresholds, roles and responsibilities
- structural elements such as headings and numbered lists

Remove repetition, boilerplate and page furniture. Do not add facts that are not in the text.

Text:
{text}
"""

_STRUCTURE_CONTRACT = """You are an expert instructional designer and master educator.
Create a DETAILED, COMPREHENSIVE, ENGAGING training course from the content provided at the end of this prompt.

OUTPUT STRUCTURE (required):
1. Course title as a level-1 heading (# Title).
2. A short course description of 2-3 sentences.
3. A horizontal rule (---).
4. A sequence of sections. Each section starts with a level-2 heading (## Module N: Title) and ends with a horizontal rule (---).
5. Finish with a "## Summary" section listing what the learner can now do.

SECTION LENGTH (required):
- Each section body must stay under {max_section_chars} characters, not counting its heading.
- When a topic needs more room, split it into consecutive sections ("## Module 5: Topic - Part 1", "## Module 5: Topic - Part 2") instead of compressing it.
- Prefer more, shorter sections over fewer, denser ones.

CONTENT QUALITY:
- Teach thoroughly; do not reduce material to bare bullet points.
- Keep every procedure, definition and step-by-step instruction from the content.
- Use **bold** for key terms when first introduced and numbered lists for sequential steps.
- Leave blank lines around headings, lists and paragraphs.
- Use > **Note**: callouts for important warnings.
- Write mathematical expressions in LaTeX ($inline$ or $$block$$) and explain them in plain language.
"""

_METADATA_HEADER = "COURSE METADATA (use these values verbatim and structure the course around them):"

_DIFFICULTY_DIRECTIVES: dict[DifficultyLevel, str] = {
  DifficultyLevel.BEGINNER: """DIFFICULTY LEVEL: BEGINNER
- Use plain, everyday language; explain any technical term immediately
- Use simple analogies from daily life
- Break concepts into small pieces and give step-by-step instructions
- Focus on practical "how-to"
- Use an encouraging, supportive tone""",
  DifficultyLevel.MODERATE: """DIFFICULTY LEVEL: MODERATE
- Use professional terminology, with a short inline definition the first time each term appears
- Balance conceptual understanding with practical application
- Explain the "why" behind processes
- Assume basic familiarity but not expertise""",
  DifficultyLevel.ADVANCED: """DIFFICULTY LEVEL: ADVANCED
- Use precise technical terminology
- Provide theoretical foundations and reference relevant frameworks and compliance requirements
- Work through multiple scenarios, including edge cases and failure modes
- Assume professional expertise""",
}

_ANALYZE_TEMPLATE = """You are an expert instructional designer. Analyze the following documents and suggest metadata for a training course built from them.

DOCUMENTS:
{documents}

Return ONLY a JSON object, without markdown fences, with exactly these keys:
{{
  "title": "Suggested course title",
  "description": "2-3 sentence description of what learners will gain",
  "category": "One of: Healthcare Compliance, Cybersecurity and Technology, HR & Ethics, Medical Equipment, or Other",
  "difficulty": "One of: Beginner, Moderate, Advanced",
  "duration": "One of: < 30 mins, < 45 mins, < 1 hour, 1-2 hours, 2+ hours",
  "objectives": ["Learning objective 1", "Learning objective 2", "Learning objective 3"],
  "complianceMapping": "Relevant compliance standard if applicable, or an empty string"
}}
"""

TRUNCATION_MARKER = "\n...[Text truncated for analysis]..."


def build_summary_prompt(chunk: Chunk, total_chunks: int) -> str:
  return _SUMMARY_TEMPLATE.format(part=chunk.index + 1, total=total_chunks, text=chunk.text)


def build_structure_contract(max_section_chars: int) -> str:
  return _STRUCTURE_CONTRACT.format(max_section_chars=max_section_chars)


def build_metadata_block(metadata: CourseMetadata | None) -> str:
  """Echo caller supplied metadata; empty when nothing was supplied."""
  if metadata is None:
    return ""

  lines: list[str] = []
  if metadata.title:
    lines.append(f"- Title: {metadata.title}")
  if metadata.description:
    lines.append(f"- Description: {metadata.description}")
  if metadata.category:
    lines.append(f"- Category: {metadata.category}")
  if metadata.duration:
    lines.append(f"- Estimated Duration: {metadata.duration}")
  if metadata.objectives:
    lines.append("- Learning Objectives (address every one):")
    lines.extend(f"  {number}. {objective}" for number, objective in enumerate(metadata.objectives, start=1))
  if metadata.compliance_mapping:
    lines.append(f"- Compliance Mapping: {metadata.compliance_mapping}")

  if not lines:
    return ""
  return "\n".join([_METADATA_HEADER, *lines])


def difficulty_directive(level: DifficultyLevel | None) -> str:
  return _DIFFICULTY_DIRECTIVES[level or DEFAULT_DIFFICULTY]


def join_summaries(outcomes: Sequence[ChunkOutcome]) -> str:
  """Concatenate succeeded summaries in chunk index order."""
  ordered = sorted((outcome for outcome in outcomes if outcome.summary_text), key=lambda outcome: outcome.chunk_index)
  return "\n\n".join(f"--- SUMMARY PART {outcome.chunk_index + 1} ---\n{outcome.summary_text}" for outcome in ordered)


def build_synthesis_prompt(body: str, metadata: CourseMetadata | None, *, max_section_chars: int) -> str:
  """Assemble the reduce prompt: structure, metadata, style directive, then content."""
  level = metadata.difficulty_level if metadata is not None else None
  blocks = [build_structure_contract(max_section_chars), build_metadata_block(metadata), difficulty_directive(level), f"CONTENT:\n{body}"]
  return "\n\n".join(block for block in blocks if block)


def build_analyze_prompt(corpus_text: str, *, sample_chars: int) -> str:
  documents = corpus_text
  if len(documents) > sample_chars:
    documents = documents[:sample_chars] + TRUNCATION_MARKER
  return _ANALYZE_TEMPLATE.format(documents=documents)
