"""Structured logging setup for packsync.

Levels, from quiet to loud:
- INFO (20): command outcomes, fetch batches and store mutations (default)
- DEBUG (10): individual fetches, renames, removals and document loads

VERBOSE (15) and TRACE (5) are registered as level names so that
`--log-level` accepts them as thresholds. packsync itself never logs at them;
TRACE lets through anything third-party libraries emit below DEBUG.
"""

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import structlog

# Bound fields (modpack_id, session_id, ...) merged into every event
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")


class LogContext:
    """
    Scope extra fields to a block of work.

    Usage:
        with LogContext(modpack_id="survival-a1b2", session_id=sid):
            await reconciler.sync(...)
    """

    def __init__(self, **kwargs: Any) -> None:
        self.new_context = kwargs
        self.token = None

    def __enter__(self) -> "LogContext":
        merged = {**_log_context.get(), **self.new_context}
        self.token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.token:
            _log_context.reset(self.token)


def add_context(**kwargs: Any) -> None:
    """Bind fields for the rest of the current execution context."""
    _log_context.set({**_log_context.get(), **kwargs})


def clear_context(key: str) -> None:
    """
    Remove a single bound field.

    Args:
        key: Field name to drop
    """
    current = _log_context.get()
    if key in current:
        _log_context.set({k: v for k, v in current.items() if k != key})


def clear_all_context() -> None:
    """Drop every bound field."""
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Return a copy of the currently bound fields."""
    return dict(_log_context.get())


def _context_processor(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor that injects the bound fields."""
    context = _log_context.get()
    if context:
        for key, value in context.items():
            event_dict.setdefault(key, value)
    return event_dict


LOG_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level: str) -> int:
    """
    Map a level name to its numeric value.

    Unknown names fall back to INFO.
    """
    return LOG_LEVELS.get(level.upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
    log_filter: str | None = None,
) -> None:
    """
    Configure stdlib logging and structlog together.

    Args:
        level: Level name (TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render events as JSON lines instead of coloured console output
        log_file: Optional file that receives a copy of every event
        log_filter: Comma-separated logger name fragments to keep
            (e.g. "reconcile,imports"); everything else is raised to WARNING
    """
    log_level = get_log_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(file_path))

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=handlers,
        force=True,
    )
    logging.getLogger().setLevel(log_level)

    if log_filter:
        components = [c.strip() for c in log_filter.split(",") if c.strip()]
        for name in list(logging.root.manager.loggerDict):
            if not any(comp in name for comp in components):
                logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _context_processor,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
