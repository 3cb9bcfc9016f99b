import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from coursegen.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Server loggers that otherwise install their own handlers.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")
# Third-party loggers that flood DEBUG output with transport details.
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "pypdf")

_active_log_path: Path | None = None


class TracebackTrimFormatter(logging.Formatter):
  """Console formatter that keeps the exception header and only the innermost frames."""

  def __init__(self, fmt: str, datefmt: str, *, keep_frames: int = 5) -> None:
    super().__init__(fmt, datefmt=datefmt)
    self._keep_frames = keep_frames

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    lines = traceback.format_exception(*ei)
    if len(lines) <= self._keep_frames + 1:
      return "".join(lines)
    return "".join([lines[0], "    ...\n", *lines[-self._keep_frames :]])


def _backup_name(default_name: str) -> str:
  """Rename rotated files from ``run.log.2`` to ``run.log-2``."""
  stem, _, suffix = default_name.rpartition(".")
  if stem and suffix.isdigit():
    return f"{stem}-{suffix}"
  return default_name


def resolve_log_dir(settings: Settings) -> Path:
  """Relative log directories are anchored at the repository root."""
  log_dir = Path(settings.log_dir)
  if log_dir.is_absolute():
    return log_dir
  return Path(__file__).resolve().parents[2] / log_dir


def _open_log_file(settings: Settings) -> Path:
  log_dir = resolve_log_dir(settings)
  log_path = log_dir / f"coursegen_{time.strftime('%Y%m%d_%H%M%S')}.log"
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path.touch(exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Cannot write logs to {log_path}: {exc}") from exc
  return log_path


def _console_handler() -> logging.Handler:
  handler = logging.StreamHandler(sys.stdout)
  handler.setFormatter(TracebackTrimFormatter(LOG_LINE_FORMAT, LOG_DATE_FORMAT))
  return handler


def _file_handler(settings: Settings, log_path: Path) -> logging.Handler:
  handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  handler.namer = _backup_name
  # Files keep full tracebacks.
  handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return handler


def setup_logging(settings: Settings) -> Path:
  """Send every logger to stdout and a rotating file; return the file path."""
  log_path = _open_log_file(settings)
  handlers = [_console_handler(), _file_handler(settings, log_path)]

  for name in _SERVER_LOGGERS:
    server_logger = logging.getLogger(name)
    server_logger.handlers = list(handlers)
    server_logger.propagate = False

  logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO, handlers=handlers, force=True)
  for name in _QUIET_LOGGERS:
    logging.getLogger(name).setLevel(logging.WARNING)
  return log_path


def _initialize_logging(settings: Settings) -> None:
  """Configure logging once per process and report the active pipeline budgets."""
  global _active_log_path
  if _active_log_path is not None:
    return

  _active_log_path = setup_logging(settings)
  logger = logging.getLogger("coursegen.core.logging")
  logger.info("Logging to %s (debug=%s)", _active_log_path, settings.debug)
  logger.info(
    "Pipeline budgets: max_files=%s max_total_chars=%s chunk_trigger=%s chunk_target=%s max_chunks=%s map_attempts=%s model=%s",
    settings.max_files,
    settings.max_total_chars,
    settings.chunk_trigger_threshold,
    settings.chunk_target_size,
    settings.max_chunks,
    settings.map_max_attempts,
    settings.gemini_model,
  )
