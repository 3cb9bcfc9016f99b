"""Unit tests for classifying generation service failures."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from coursegen.ai.contracts import GenerationErrorClass, GenerationOutcome, GenerationStatus
from coursegen.ai.errors import classify_generation_error


@pytest.mark.parametrize(
  ("code", "message", "status", "expected"),
  [
    (429, "Resource has been exhausted (e.g. check quota).", "RESOURCE_EXHAUSTED", GenerationErrorClass.RATE_LIMITED),
    (429, "You exceeded your current quota, please check your plan and billing details.", "RESOURCE_EXHAUSTED", GenerationErrorClass.RATE_LIMITED),
    (429, "Quota exceeded for metric: generate_content_requests per day", None, GenerationErrorClass.QUOTA_EXCEEDED),
    (504, "Deadline expired before operation could complete.", "DEADLINE_EXCEEDED", GenerationErrorClass.TIMEOUT),
    (500, "An internal error has occurred.", "INTERNAL", GenerationErrorClass.UNKNOWN),
    (503, "The model is overloaded.", "UNAVAILABLE", GenerationErrorClass.UNKNOWN),
  ],
)
def test_api_errors_are_classified_by_code_and_status(api_error, code, message, status, expected) -> None:
  assert classify_generation_error(api_error(code, message, status)) is expected


def test_per_minute_quota_violation_is_a_rate_limit(per_minute_limit_error) -> None:
  # Gemini sends the "exceeded your current quota" message for per-minute limits too.
  assert classify_generation_error(per_minute_limit_error()) is GenerationErrorClass.RATE_LIMITED


def test_per_day_quota_violation_is_quota_exceeded(daily_quota_error) -> None:
  assert classify_generation_error(daily_quota_error()) is GenerationErrorClass.QUOTA_EXCEEDED


def test_retry_info_alone_marks_a_rate_limit(api_error) -> None:
  details = [{"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "12s"}]
  error = api_error(429, "Quota exceeded for metric: generate_content_requests per day", "RESOURCE_EXHAUSTED", details)
  assert classify_generation_error(error) is GenerationErrorClass.RATE_LIMITED


def test_daily_violation_wins_over_retry_info(api_error) -> None:
  details = [
    {"@type": "type.googleapis.com/google.rpc.QuotaFailure", "violations": [{"quotaId": "GenerateRequestsPerMinutePerProjectPerModel"}, {"quotaId": "GenerateRequestsPerDayPerProjectPerModel"}]},
    {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "40s"},
  ]
  assert classify_generation_error(api_error(429, "Quota exceeded.", "RESOURCE_EXHAUSTED", details)) is GenerationErrorClass.QUOTA_EXCEEDED


def test_unrelated_details_fall_back_to_message_hints(api_error) -> None:
  details = [{"@type": "type.googleapis.com/google.rpc.Help", "links": []}]
  assert classify_generation_error(api_error(429, "Daily limit reached.", "RESOURCE_EXHAUSTED", details)) is GenerationErrorClass.QUOTA_EXCEEDED
  assert classify_generation_error(api_error(429, "Too many requests.", "RESOURCE_EXHAUSTED", details)) is GenerationErrorClass.RATE_LIMITED


def test_local_timeouts_are_timeout_class() -> None:
  assert classify_generation_error(TimeoutError()) is GenerationErrorClass.TIMEOUT
  assert classify_generation_error(asyncio.TimeoutError()) is GenerationErrorClass.TIMEOUT
  assert classify_generation_error(httpx.ReadTimeout("read timed out")) is GenerationErrorClass.TIMEOUT


def test_unrecognised_errors_are_unknown() -> None:
  assert classify_generation_error(httpx.ConnectError("connection reset")) is GenerationErrorClass.UNKNOWN
  # Message text outside an API error never changes the class.
  assert classify_generation_error(RuntimeError("exceeded your current quota")) is GenerationErrorClass.UNKNOWN


def test_failure_status_follows_error_class() -> None:
  assert GenerationOutcome.failure(GenerationErrorClass.RATE_LIMITED).status is GenerationStatus.RETRYABLE_FAILURE
  assert GenerationOutcome.failure(GenerationErrorClass.UNKNOWN).status is GenerationStatus.RETRYABLE_FAILURE
  assert GenerationOutcome.failure(GenerationErrorClass.QUOTA_EXCEEDED).status is GenerationStatus.FATAL_FAILURE
  assert GenerationOutcome.failure(GenerationErrorClass.TIMEOUT).status is GenerationStatus.FATAL_FAILURE
