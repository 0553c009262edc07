"""Logging and metrics."""

from .logger import LogContext, add_context, clear_context, configure_logging
from .metrics import MetricsCollector, get_global_collector

__all__ = [
    "LogContext",
    "add_context",
    "clear_context",
    "configure_logging",
    "MetricsCollector",
    "get_global_collector",
]
