"""Shared test doubles and fixtures for the course generation service."""

from __future__ import annotations

import os

# Settings are read at import time; configure before the app is imported.
os.environ.setdefault("COURSEGEN_ALLOWED_ORIGINS", "http://localhost:3000")

from collections.abc import Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from google.genai import errors as genai_errors  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from coursegen.ai.backoff import RetryPolicy  # noqa: E402
from coursegen.ai.client import GenerationClient  # noqa: E402
from coursegen.ai.providers.base import AIModel, ModelResponse, SimpleModelResponse  # noqa: E402
from coursegen.api.deps import get_generation_client, get_pipeline_policy  # noqa: E402
from coursegen.main import app  # noqa: E402
from coursegen.pipeline.contracts import SourceFile  # noqa: E402
from coursegen.pipeline.policy import PipelinePolicy  # noqa: E402

COURSE_MARKDOWN = """# Workplace Safety Essentials

A practical course on reporting hazards and responding to incidents at work.

---

## Module 1: Reporting Hazards

Report every hazard to your supervisor before the end of the shift.

---

## Module 2: Incident Response

1. Stop work.
2. Secure the area.
3. Notify the safety officer.

---

## Summary

You can now report hazards and respond to incidents.
"""

METADATA_JSON = """{
  "title": "Workplace Safety Essentials",
  "description": "Learn to report hazards and respond to incidents.",
  "category": "Other",
  "difficulty": "beginner",
  "duration": "< 1 hour",
  "objectives": ["Report hazards", "Respond to incidents", ""],
  "complianceMapping": "OSHA"
}"""

Reply = str | BaseException | None
Script = Callable[[str], Reply]


def default_reply(prompt: str) -> str:
  """Answer summary, analysis and synthesis prompts with plausible text."""
  if "Condense the following document section" in prompt:
    part = prompt.split("(part ", 1)[1].split(")", 1)[0]
    return f"Summary of part {part}: procedures, definitions and steps."
  if "suggest metadata" in prompt:
    return METADATA_JSON
  return COURSE_MARKDOWN


def part_of(prompt: str) -> int | None:
  """Return the 1-based chunk number a summary prompt asks for."""
  if "(part " not in prompt:
    return None
  return int(prompt.split("(part ", 1)[1].split(" of ", 1)[0])


class ScriptedModel(AIModel):
  """Model double that records prompts and answers through a script.

  A script returning None falls back to ``default_reply``; a returned exception is raised.
  """

  def __init__(self, script: Script | None = None, *, name: str = "scripted-model") -> None:
    self.name = name
    self.prompts: list[str] = []
    self._script = script or default_reply

  async def generate(self, prompt: str) -> ModelResponse:
    self.prompts.append(prompt)
    reply = self._script(prompt)
    if reply is None:
      reply = default_reply(prompt)
    if isinstance(reply, BaseException):
      raise reply
    return SimpleModelResponse(content=reply, usage={"prompt_tokens": len(prompt) // 4, "completion_tokens": len(reply) // 4, "total_tokens": (len(prompt) + len(reply)) // 4})

  @property
  def summary_prompts(self) -> list[str]:
    return [prompt for prompt in self.prompts if part_of(prompt) is not None]

  @property
  def synthesis_prompts(self) -> list[str]:
    return [prompt for prompt in self.prompts if prompt.startswith("You are an expert instructional designer and master educator")]


class RecordingSleep:
  """Sleep double that records requested delays without waiting."""

  def __init__(self) -> None:
    self.delays: list[float] = []

  async def __call__(self, seconds: float) -> None:
    self.delays.append(seconds)


GEMINI_QUOTA_MESSAGE = "You exceeded your current quota, please check your plan and billing details."


def make_api_error(code: int, message: str, status: str | None = None, details: list[dict[str, Any]] | None = None) -> genai_errors.APIError:
  error: dict[str, Any] = {"code": code, "message": message, "status": status}
  if details is not None:
    error["details"] = details
  return genai_errors.APIError(code, {"error": error})


def make_quota_429(quota_id: str, *, retry_delay: str | None = None) -> genai_errors.APIError:
  """Build a Gemini 429 body with a QuotaFailure violation and optional RetryInfo."""
  details: list[dict[str, Any]] = [
    {
      "@type": "type.googleapis.com/google.rpc.QuotaFailure",
      "violations": [{"quotaMetric": "generativelanguage.googleapis.com/generate_content_free_tier_requests", "quotaId": quota_id, "quotaValue": "15"}],
    },
    {"@type": "type.googleapis.com/google.rpc.Help", "links": [{"description": "Learn more about Gemini API quotas", "url": "https://ai.google.dev/gemini-api/docs/rate-limits"}]},
  ]
  if retry_delay is not None:
    details.append({"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": retry_delay})
  return make_api_error(429, GEMINI_QUOTA_MESSAGE, "RESOURCE_EXHAUSTED", details)


def make_text_source(name: str, text: str, mime_type: str = "text/plain") -> SourceFile:
  data = text.encode("utf-8")
  return SourceFile(name=name, mime_type=mime_type, byte_size=len(data), data=data)


def make_paragraph_text(paragraphs: int, *, width: int = 1000) -> str:
  """Build text of fixed-width paragraphs separated by blank lines."""
  body = "w" * (width - 1) + "."
  return "\n\n".join(body for _ in range(paragraphs))


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def scripted_model() -> type[ScriptedModel]:
  return ScriptedModel


@pytest.fixture
def recording_sleep() -> RecordingSleep:
  return RecordingSleep()


@pytest.fixture
def api_error() -> Callable[..., genai_errors.APIError]:
  return make_api_error


@pytest.fixture
def text_source() -> Callable[..., SourceFile]:
  return make_text_source


@pytest.fixture
def paragraph_text() -> Callable[..., str]:
  return make_paragraph_text


@pytest.fixture
def course_markdown() -> str:
  return COURSE_MARKDOWN


@pytest.fixture
def fast_policy() -> PipelinePolicy:
  """Default budgets with every backoff and pacing delay set to zero."""
  no_wait = RetryPolicy(transient_delays=(0.0,), rate_limit_delays=(0.0,))
  return PipelinePolicy(inter_chunk_delay_seconds=0.0, map_retry=no_wait, synthesis_retry=RetryPolicy.single_attempt())


@pytest.fixture
def api_model() -> ScriptedModel:
  return ScriptedModel()


@pytest.fixture
async def async_client(api_model: ScriptedModel, fast_policy: PipelinePolicy):
  app.dependency_overrides[get_generation_client] = lambda: GenerationClient(api_model)
  app.dependency_overrides[get_pipeline_policy] = lambda: fast_policy
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()


@pytest.fixture
def per_minute_limit_error() -> Callable[[], genai_errors.APIError]:
  return lambda: make_quota_429("GenerateRequestsPerMinutePerProjectPerModel-FreeTier", retry_delay="38s")


@pytest.fixture
def daily_quota_error() -> Callable[[], genai_errors.APIError]:
  return lambda: make_quota_429("GenerateRequestsPerDayPerProjectPerModel-FreeTier")
