"""Classification of generation service failures.

Every failure raised by a provider is mapped here, once, onto a
``GenerationErrorClass``. Pipeline stages switch on that class and never look at
exception messages themselves.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import httpx
from google.genai import errors as genai_errors

from coursegen.ai.contracts import GenerationErrorClass

_TIMEOUT_CODES: frozenset[int] = frozenset({408, 504})
_TIMEOUT_STATUSES: frozenset[str] = frozenset({"DEADLINE_EXCEEDED"})
_RATE_LIMIT_CODES: frozenset[int] = frozenset({429})
_RATE_LIMIT_STATUSES: frozenset[str] = frozenset({"RESOURCE_EXHAUSTED"})

_QUOTA_FAILURE_TYPE = "type.googleapis.com/google.rpc.QuotaFailure"
_RETRY_INFO_TYPE = "type.googleapis.com/google.rpc.RetryInfo"

# Only consulted when a 429 carries no structured details. Gemini sends
# "exceeded your current quota ... billing" for per-minute limits too, so those
# phrases are not hints.
_QUOTA_HINTS: tuple[str, ...] = (
  "per day",
  "perday",
  "daily limit",
  "insufficient quota",
  "quota exhausted",
)


def _match_hint(message: str, hints: Iterable[str]) -> bool:
  """Return True when any hint appears in the message."""
  for hint in hints:
    if hint in message:
      return True
  return False


def _error_details(exc: genai_errors.APIError) -> list[dict[str, Any]]:
  """Return the ``google.rpc`` detail entries of an API error body."""
  body = exc.details
  if isinstance(body, list) and body:
    body = body[0]
  if not isinstance(body, dict):
    return []
  error = body.get("error", body)
  details = error.get("details") if isinstance(error, dict) else None
  if not isinstance(details, list):
    return []
  return [entry for entry in details if isinstance(entry, dict)]


def _classify_rate_limit(details: list[dict[str, Any]]) -> GenerationErrorClass | None:
  """Classify a 429 from its QuotaFailure and RetryInfo entries; None when it has neither."""
  quota_ids: list[str] = []
  has_retry_info = False
  for entry in details:
    kind = entry.get("@type")
    if kind == _QUOTA_FAILURE_TYPE:
      quota_ids.extend(str(violation.get("quotaId", "")) for violation in entry.get("violations") or [] if isinstance(violation, dict))
    elif kind == _RETRY_INFO_TYPE:
      has_retry_info = True

  if any("perday" in quota_id.lower() for quota_id in quota_ids):
    return GenerationErrorClass.QUOTA_EXCEEDED
  if quota_ids or has_retry_info:
    return GenerationErrorClass.RATE_LIMITED
  return None


def _is_timeout(exc: BaseException) -> bool:
  # asyncio.TimeoutError is an alias of TimeoutError on current interpreters.
  return isinstance(exc, TimeoutError | asyncio.TimeoutError | httpx.TimeoutException)


def classify_generation_error(exc: BaseException) -> GenerationErrorClass:
  """Map a provider exception onto a generation error class.

  A 429 is a daily quota only when a QuotaFailure violation names a per-day
  quota. Per-minute violations and RetryInfo entries mark a retryable rate limit.
  """
  if _is_timeout(exc):
    return GenerationErrorClass.TIMEOUT

  if isinstance(exc, genai_errors.APIError):
    code = exc.code
    status = (exc.status or "").upper()
    if code in _TIMEOUT_CODES or status in _TIMEOUT_STATUSES:
      return GenerationErrorClass.TIMEOUT
    if code in _RATE_LIMIT_CODES or status in _RATE_LIMIT_STATUSES:
      structured = _classify_rate_limit(_error_details(exc))
      if structured is not None:
        return structured
      message = (exc.message or str(exc)).lower()
      if _match_hint(message, _QUOTA_HINTS):
        return GenerationErrorClass.QUOTA_EXCEEDED
      return GenerationErrorClass.RATE_LIMITED
    return GenerationErrorClass.UNKNOWN

  # Network hiccups and anything unrecognised are treated as transient.
  return GenerationErrorClass.UNKNOWN
