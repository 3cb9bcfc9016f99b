"""Outline parsing for synthesized course markdown.

The synthesized course is free-form markdown. This module recovers its shape
(title, description, sections) so section length can be checked against the
budget the prompt asked for. Overlong sections are reported as warnings only.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

_RULE = "---"


class CourseSection(BaseModel):
  heading: str
  body: str

  @property
  def char_length(self) -> int:
    return len(self.body)


class CourseOutline(BaseModel):
  title: str | None = None
  description: str = ""
  sections: list[CourseSection] = Field(default_factory=list)


def parse_course_markdown(content: str) -> CourseOutline:
  """Split course markdown into its H1 title, lead description and H2 sections."""
  title: str | None = None
  description_lines: list[str] = []
  sections: list[CourseSection] = []
  heading: str | None = None
  body_lines: list[str] = []

  def _flush() -> None:
    if heading is not None:
      sections.append(CourseSection(heading=heading, body="\n".join(body_lines).strip()))

  for line in content.splitlines():
    stripped = line.strip()
    if stripped.startswith("## "):
      _flush()
      heading = stripped[3:].strip()
      body_lines = []
    elif stripped.startswith("# ") and title is None and heading is None:
      title = stripped[2:].strip()
    elif stripped == _RULE:
      continue
    elif heading is None:
      description_lines.append(line)
    else:
      body_lines.append(line)
  _flush()

  return CourseOutline(title=title, description="\n".join(description_lines).strip(), sections=sections)


def collect_overlong_sections(outline: CourseOutline, *, max_section_chars: int) -> list[str]:
  """Return warning strings for sections whose body exceeds the budget."""
  if max_section_chars <= 0:
    raise ValueError("max_section_chars must be positive.")
  return [f"Section '{section.heading}' is {section.char_length} characters, over the {max_section_chars} character budget." for section in outline.sections if section.char_length > max_section_chars]
