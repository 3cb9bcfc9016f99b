import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("coursegen.core.middleware")

REQUEST_ID_HEADER = "x-request-id"
_STRIPPED_RESPONSE_HEADERS = ("server", "x-powered-by")


@dataclass
class _RequestTrace:
  request_id: str
  method: str
  target: str
  started: float = field(default_factory=time.perf_counter)
  status: int = 0

  @classmethod
  def from_scope(cls, scope: Scope) -> "_RequestTrace":
    target = scope.get("path", "")
    raw_query = scope.get("query_string", b"")
    if raw_query:
      target = f"{target}?{raw_query.decode('latin-1')}"
    return cls(request_id=uuid.uuid4().hex, method=scope.get("method", "UNKNOWN"), target=target)

  def elapsed_ms(self) -> float:
    return (time.perf_counter() - self.started) * 1000


def _on_response_start(send: Send, edit: Callable[[Message, MutableHeaders], None]) -> Send:
  """Wrap ``send`` so ``edit`` can rewrite headers of the response start message."""

  async def wrapped(message: Message) -> None:
    if message["type"] == "http.response.start":
      edit(message, MutableHeaders(scope=message))
    await send(message)

  return wrapped


class RequestLoggingMiddleware:
  """Log one line per request and response, and tag both with a request id.

  Uploaded documents travel in request bodies, so bodies are never read here;
  only the declared content type and length are logged at DEBUG.
  """

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    trace = _RequestTrace.from_scope(scope)
    scope.setdefault("state", {})["request_id"] = trace.request_id
    logger.info("Incoming request request_id=%s %s %s", trace.request_id, trace.method, trace.target)

    request_headers = Headers(scope=scope)
    if "content-length" in request_headers:
      logger.debug("Request body request_id=%s content-type=%s content-length=%s", trace.request_id, request_headers.get("content-type"), request_headers["content-length"])

    def record(message: dict[str, Any], headers: MutableHeaders) -> None:
      trace.status = message.get("status", 0)
      headers.setdefault(REQUEST_ID_HEADER, trace.request_id)

    await self.app(scope, receive, _on_response_start(send, record))
    logger.info("Response request_id=%s status=%s (took %.2fms)", trace.request_id, trace.status, trace.elapsed_ms())


class SecurityHeadersMiddleware:
  """Drop headers that advertise the server implementation."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    def strip(_message: dict[str, Any], headers: MutableHeaders) -> None:
      for name in _STRIPPED_RESPONSE_HEADERS:
        if name in headers:
          del headers[name]

    await self.app(scope, receive, _on_response_start(send, strip))
