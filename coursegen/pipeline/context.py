"""Run-scoped state for one pipeline execution."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from coursegen.ai.contracts import GenerationOutcome, GenerationRequest
from coursegen.pipeline.contracts import ChunkOutcome, RunDiagnostics
from coursegen.pipeline.errors import PipelineCancelledError

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
CancelCheck = Callable[[], Awaitable[bool]]
GenerateFn = Callable[[GenerationRequest], Awaitable[GenerationOutcome]]


async def _never_cancelled() -> bool:
  return False


@dataclass
class RunContext:
  """Mutable state owned by a single run and discarded when it ends."""

  run_id: str
  is_cancelled: CancelCheck = _never_cancelled
  sleep: SleepFn = asyncio.sleep
  logs: list[str] = field(default_factory=list)
  chunk_outcomes: list[ChunkOutcome] = field(default_factory=list)
  diagnostics: RunDiagnostics = field(init=False)

  def __post_init__(self) -> None:
    self.diagnostics = RunDiagnostics(run_id=self.run_id)

  @classmethod
  def start(cls, *, is_cancelled: CancelCheck | None = None, sleep: SleepFn | None = None) -> RunContext:
    return cls(run_id=f"run_{uuid.uuid4().hex[:12]}", is_cancelled=is_cancelled or _never_cancelled, sleep=sleep or asyncio.sleep)

  def log(self, message: str, *, level: int = logging.INFO) -> None:
    """Record a message in the run log and the process logger."""
    self.logs.append(message)
    logger.log(level, "[%s] %s", self.run_id, message)

  def warn(self, message: str) -> None:
    self.diagnostics.warnings.append(message)
    self.log(message, level=logging.WARNING)

  def counted(self, generate: GenerateFn) -> GenerateFn:
    """Wrap a generate callable so every issued call is counted."""

    async def _generate(request: GenerationRequest) -> GenerationOutcome:
      self.diagnostics.generation_calls += 1
      return await generate(request)

    return _generate

  async def ensure_not_cancelled(self, before: str) -> None:
    if await self.is_cancelled():
      self.log(f"Run cancelled by caller before {before}.", level=logging.WARNING)
      raise PipelineCancelledError("The request was cancelled before processing finished.", logs=self.logs)

  @contextmanager
  def stage(self, name: str) -> Iterator[None]:
    """Time a stage; the duration is recorded even when the stage fails."""
    started = time.perf_counter()
    try:
      yield
    finally:
      self.diagnostics.stage_durations_ms[name] = round((time.perf_counter() - started) * 1000, 2)
