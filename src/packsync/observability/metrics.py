"""In-process metrics for reconciliation and import runs."""

from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class MetricsBackend(ABC):
    """Sink for counters, gauges and timings."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass


class LoggerBackend(MetricsBackend):
    """
    Keeps every metric in memory so the CLI can print a summary
    at the end of a run.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.gauges: dict[str, float] = {}
        self.timings: dict[str, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.counters[self._format_key(name, tags)] += value

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        # Last write wins
        self.gauges[self._format_key(name, tags)] = value

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.timings[self._format_key(name, tags)].append(value)

    def _format_key(self, name: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    def get_summary(self) -> dict[str, Any]:
        """Counters and gauges as-is, timings reduced to count/avg/min/max."""
        summary: dict[str, Any] = {
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
            "timings": {},
        }
        for name, values in self.timings.items():
            if values:
                summary["timings"][name] = {
                    "count": len(values),
                    "avg": sum(values) / len(values),
                    "min": min(values),
                    "max": max(values),
                }
        return summary


class MetricsCollector:
    """Typed helpers over a metrics backend."""

    def __init__(self, backend: str = "logger") -> None:
        """
        Args:
            backend: Backend name. Only "logger" exists today.
        """
        self.backend: MetricsBackend
        if backend != "logger":
            logger.warning("Unknown metrics backend, using logger", backend=backend)
        self.backend = LoggerBackend()

    def count_action(self, action: str, status: str, bucket: str) -> None:
        """Record one reconciliation action outcome."""
        self.backend.increment(
            "sync_item_total",
            tags={"action": action, "status": status, "bucket": bucket},
        )

    def count_import(self, status: str) -> None:
        """Record an import outcome (clean, conflicted, resolved, discarded)."""
        self.backend.increment("import_total", tags={"status": status})

    def record_fetch_latency(self, source_kind: str, duration_ms: float) -> None:
        self.backend.timing("fetch_duration_ms", duration_ms, tags={"source": source_kind})

    def update_concurrency(self, in_flight: int) -> None:
        self.backend.gauge("fetch_concurrency_current", float(in_flight))

    def get_summary(self) -> dict[str, Any]:
        if isinstance(self.backend, LoggerBackend):
            return self.backend.get_summary()
        return {}


_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector() -> MetricsCollector:
    """Get or create the process-wide collector."""
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector()
    return _GLOBAL_COLLECTOR


def reset_global_collector() -> None:
    """Forget the process-wide collector (used between CLI runs and in tests)."""
    global _GLOBAL_COLLECTOR
    _GLOBAL_COLLECTOR = None
