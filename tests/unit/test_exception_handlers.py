"""Unit tests for API error payloads."""

from __future__ import annotations

import json

from starlette.requests import Request

from coursegen.core.exceptions import _error_payload, _sanitize_validation_errors, pipeline_failure_response
from coursegen.pipeline.contracts import PipelineResult, PipelineStatus, RunDiagnostics
from coursegen.pipeline.errors import PipelineErrorCode, QuotaExceededError, http_status_for


def _request() -> Request:
  return Request({"type": "http", "method": "POST", "path": "/v1/courses/generate", "headers": [], "query_string": b"", "state": {"request_id": "req-123"}})


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Ensure validation errors stay JSON-serializable and redact raw request payloads."""
  errors = [{"type": "value_error", "loc": ("body", "files", 0, "data"), "msg": "Value error, File data must be valid base64.", "input": {"data": "%%%"}, "ctx": {"error": ValueError("File data must be valid base64."), "input": "%%%"}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["ctx"]["error"] == "ValueError: File data must be valid base64."
  assert "input" not in sanitized[0]["ctx"]


def test_error_payload_includes_code_and_request_id() -> None:
  assert _error_payload("Boom", code="SYNTHESIS_FAILED", request_id="req-1") == {"error": "Boom", "code": "SYNTHESIS_FAILED", "requestId": "req-1"}
  assert _error_payload("Boom") == {"error": "Boom"}


def test_failed_result_maps_to_status_class() -> None:
  result = PipelineResult(status=PipelineStatus.FAILED, error_code="GENERATION_TIMEOUT", error_message="The AI service timed out.", diagnostics=RunDiagnostics(run_id="run_1"))
  response = pipeline_failure_response(_request(), result)

  assert response.status_code == 408
  assert json.loads(response.body) == {"error": "The AI service timed out.", "code": "GENERATION_TIMEOUT", "requestId": "req-123"}


def test_status_classes_per_error_code() -> None:
  assert http_status_for(PipelineErrorCode.VALIDATION_FAILED) == 400
  assert http_status_for(PipelineErrorCode.BUDGET_EXCEEDED) == 400
  assert http_status_for(PipelineErrorCode.QUOTA_EXCEEDED) == 429
  assert http_status_for(PipelineErrorCode.CHUNK_PROCESSING_FAILED) == 500
  assert http_status_for("NOT_A_CODE") == 500
  assert QuotaExceededError("quota").status_code == 429
