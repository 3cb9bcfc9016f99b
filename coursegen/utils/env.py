"""Lightweight .env loader for local configuration."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the default .env path at the repo root."""

  return Path(__file__).resolve().parents[2] / ".env"


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Load key=value pairs from a .env file into the process environment."""

  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    key, value = _parse_line(raw_line)
    if key is None:
      continue
    if not override and key in os.environ:
      continue
    os.environ[key] = value


def _parse_line(raw_line: str) -> tuple[str | None, str]:
  """Split one .env line into a key and an unquoted value."""
  line = raw_line.strip()
  # Skip blanks, comments and lines without an assignment.
  if not line or line.startswith("#"):
    return None, ""
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()
  if "=" not in line:
    return None, ""

  key, value = line.split("=", 1)
  key = key.strip()
  value = value.strip()
  if not key:
    return None, ""
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    value = value[1:-1]
  return key, value
