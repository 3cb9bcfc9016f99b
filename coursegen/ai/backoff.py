"""Retry policy with escalating backoff per error class."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from coursegen.ai.contracts import GenerationErrorClass, GenerationOutcome, GenerationRequest, GenerationStatus

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
CancelCheck = Callable[[], Awaitable[bool]]
RetryHook = Callable[[int, GenerationErrorClass, float], None]


@dataclass(frozen=True)
class RetryPolicy:
  """
  Bounded retry policy for generation calls.

  Delays are indexed by the number of failed attempts so far; the last entry
  repeats when a schedule is shorter than ``max_attempts - 1``. Rate-limit
  failures use their own, longer schedule.
  """

  max_attempts: int = 3
  transient_delays: tuple[float, ...] = (2.0, 5.0)
  rate_limit_delays: tuple[float, ...] = (10.0, 30.0)

  def __post_init__(self) -> None:
    if self.max_attempts < 1:
      raise ValueError("max_attempts must be at least 1.")
    if not self.transient_delays or not self.rate_limit_delays:
      raise ValueError("Backoff schedules must not be empty.")

  @classmethod
  def single_attempt(cls) -> RetryPolicy:
    return cls(max_attempts=1)

  def delay_for(self, error_class: GenerationErrorClass, failed_attempts: int) -> float:
    """Return the wait before the next attempt after ``failed_attempts`` failures."""
    schedule = self.rate_limit_delays if error_class is GenerationErrorClass.RATE_LIMITED else self.transient_delays
    index = min(max(failed_attempts, 1), len(schedule)) - 1
    return schedule[index]

  def should_retry(self, outcome: GenerationOutcome, attempts_used: int) -> bool:
    return outcome.status is GenerationStatus.RETRYABLE_FAILURE and attempts_used < self.max_attempts


@dataclass(frozen=True)
class RetryResult:
  """Final outcome of a retried call and how many attempts it took."""

  outcome: GenerationOutcome
  attempts_used: int
  cancelled: bool = False


async def generate_with_retry(
  generate: Callable[[GenerationRequest], Awaitable[GenerationOutcome]],
  request: GenerationRequest,
  policy: RetryPolicy,
  *,
  sleep: SleepFn = asyncio.sleep,
  is_cancelled: CancelCheck | None = None,
  label: str = "generation",
  accept: Callable[[GenerationOutcome], GenerationOutcome] | None = None,
  on_retry: RetryHook | None = None,
) -> RetryResult:
  """
  Issue a generation request under a retry policy.

  Fatal outcomes return immediately. ``accept`` may downgrade a successful
  outcome (for example an empty answer) into a retryable failure. ``on_retry``
  is told the failed attempt number, its error class and the wait before the
  next attempt.
  """
  attempts = 0
  while True:
    attempts += 1
    outcome = await generate(request)
    if accept is not None and outcome.succeeded:
      outcome = accept(outcome)

    if outcome.succeeded or not policy.should_retry(outcome, attempts):
      return RetryResult(outcome=outcome, attempts_used=attempts)

    error_class = outcome.error_class or GenerationErrorClass.UNKNOWN
    delay = policy.delay_for(error_class, attempts)
    logger.warning("%s attempt %s/%s failed (%s). Retrying in %.1fs...", label, attempts, policy.max_attempts, error_class.value, delay)
    if on_retry is not None:
      on_retry(attempts, error_class, delay)
    await sleep(delay)

    # Stop before issuing another paid call once the caller has gone away.
    if is_cancelled is not None and await is_cancelled():
      return RetryResult(outcome=outcome, attempts_used=attempts, cancelled=True)
