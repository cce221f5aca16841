"""Structured logging configuration for smart-approve.

Uses structlog for structured, context-rich logging. Output always goes
to stderr because stdout carries the hook decision. When debug logging
is enabled, every event is also appended as one line to the debug log
in the state directory.
"""

import logging
import sys
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from smart_approve.config import SmartApproveSettings


class _TeeLogger:
    """Writes each rendered event to stderr and, optionally, a debug file."""

    def __init__(self, stream: IO[str], debug_file: IO[str] | None = None):
        self._stream = stream
        self._debug_file = debug_file

    def msg(self, message: str) -> None:
        self._stream.write(message + "\n")
        self._stream.flush()
        if self._debug_file is not None:
            self._debug_file.write(message + "\n")
            self._debug_file.flush()

    log = debug = info = warning = warn = error = critical = exception = msg


class _TeeLoggerFactory:
    def __init__(self, stream: IO[str], debug_file: IO[str] | None = None):
        self._logger = _TeeLogger(stream, debug_file)

    def __call__(self, *args: Any) -> _TeeLogger:
        return self._logger


# Debug log handle shared across configure_logging calls
_debug_file: IO[str] | None = None
_debug_path: Path | None = None


def _debug_file_for(path: Path | None) -> IO[str] | None:
    """Return an append handle on path, reusing the open one when it matches."""
    global _debug_file, _debug_path
    if path == _debug_path:
        return _debug_file
    if _debug_file is not None:
        _debug_file.close()
    _debug_file, _debug_path = None, None
    if path is None:
        return None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _debug_file = open(path, "a", encoding="utf-8")
    except OSError:
        return None
    _debug_path = path
    return _debug_file


def configure_logging(settings: "SmartApproveSettings | None" = None) -> None:
    """Configure structured logging based on settings.

    Args:
        settings: Application settings. If None, uses defaults.
    """
    log_level = logging.WARNING
    log_format = "console"
    debug_path: Path | None = None

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)
        log_format = settings.log_format
        if settings.debug:
            log_level = logging.DEBUG
            debug_path = settings.debug_log_path
    debug_file = _debug_file_for(debug_path)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        # Plain console output; the debug file must stay free of ANSI codes
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_TeeLoggerFactory(sys.stderr, debug_file),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in the current context.

    Example:
        bind_context(session_id="abc123")
        logger.info("deciding")  # Will include session_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class Loggers:
    """Pre-configured logger instances for smart-approve components."""

    @staticmethod
    def hook() -> structlog.stdlib.BoundLogger:
        """Logger for the hook entry point."""
        return get_logger("smart_approve.hook")

    @staticmethod
    def engine() -> structlog.stdlib.BoundLogger:
        """Logger for the decision pipeline."""
        return get_logger("smart_approve.engine")

    @staticmethod
    def shell() -> structlog.stdlib.BoundLogger:
        """Logger for tokenizer, classifier and script analysis."""
        return get_logger("smart_approve.shell")

    @staticmethod
    def persistence() -> structlog.stdlib.BoundLogger:
        """Logger for cache, lock and batch stores."""
        return get_logger("smart_approve.persistence")

    @staticmethod
    def oracle() -> structlog.stdlib.BoundLogger:
        """Logger for the external oracle."""
        return get_logger("smart_approve.oracle")

    @staticmethod
    def hitl() -> structlog.stdlib.BoundLogger:
        """Logger for batch approval."""
        return get_logger("smart_approve.hitl")
