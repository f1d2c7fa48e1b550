"""
SDD MCP Metrics Store.

In-process metrics collection for observability without external dependencies.
Tracks:
- Tool latencies (per tool, percentiles)
- Error counts by category (ErrorCategory value)
- Global call/success/failure counters

Thread-safe via locks. Singleton accessor for the adapters; the router
accepts an explicit store so tests stay isolated.
"""

from __future__ import annotations

import statistics
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any


@dataclass
class ToolMetrics:
    """Metrics for a single tool."""

    latencies_ms: list[float] = field(default_factory=list)
    error_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    call_count: int = 0
    success_count: int = 0
    last_called: datetime | None = None

    # Keep last N latencies to avoid unbounded memory
    MAX_LATENCIES = 1000

    def record_latency(self, ms: float, success: bool = True) -> None:
        self.latencies_ms.append(ms)
        if len(self.latencies_ms) > self.MAX_LATENCIES:
            self.latencies_ms = self.latencies_ms[-self.MAX_LATENCIES :]
        self.call_count += 1
        if success:
            self.success_count += 1
        self.last_called = datetime.now(timezone.utc)

    def record_error(self, category: str) -> None:
        self.error_counts[category] += 1

    def get_percentiles(self) -> dict[str, float]:
        if not self.latencies_ms:
            return {}
        sorted_latencies = sorted(self.latencies_ms)
        n = len(sorted_latencies)
        return {
            "p50_ms": sorted_latencies[int(n * 0.5)],
            "p90_ms": sorted_latencies[int(n * 0.9)],
            "p99_ms": sorted_latencies[int(n * 0.99)] if n > 1 else sorted_latencies[-1],
            "mean_ms": statistics.mean(sorted_latencies),
            "max_ms": max(sorted_latencies),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_count": self.call_count,
            "success_count": self.success_count,
            "last_called": self.last_called.isoformat() if self.last_called else None,
            **self.get_percentiles(),
            "errors": dict(self.error_counts),
        }


class MetricsStore:
    """
    Central metrics store for the server.

    Thread-safe: handlers may run in worker threads while the router records.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tools: dict[str, ToolMetrics] = defaultdict(ToolMetrics)
        self._global_errors: dict[str, int] = defaultdict(int)
        self._total_calls = 0
        self._total_failures = 0
        self._started_at = datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Tool Metrics
    # -------------------------------------------------------------------------

    def record_tool_call(self, tool: str, ms: float, success: bool) -> None:
        """Record one routed call and its latency."""
        with self._lock:
            self._tools[tool].record_latency(ms, success=success)
            self._total_calls += 1
            if not success:
                self._total_failures += 1

    def record_tool_error(self, tool: str, category: str) -> None:
        """Record an error category for a specific tool."""
        with self._lock:
            self._tools[tool].record_error(category)
            self._global_errors[category] += 1

    # -------------------------------------------------------------------------
    # Global Errors
    # -------------------------------------------------------------------------

    def record_error(self, category: str) -> None:
        """Record a global error (not tied to a registered tool)."""
        with self._lock:
            self._global_errors[category] += 1

    def get_error_count(self, category: str) -> int:
        with self._lock:
            return self._global_errors.get(category, 0)

    def get_tool_metrics(self, tool: str) -> dict[str, Any] | None:
        with self._lock:
            metrics = self._tools.get(tool)
            return metrics.to_dict() if metrics else None

    # -------------------------------------------------------------------------
    # Summary / Export
    # -------------------------------------------------------------------------

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of all metrics.

        Returns a dict suitable for JSON serialization and /metrics endpoint.
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            uptime_seconds = (now - self._started_at).total_seconds()

            return {
                "uptime_seconds": round(uptime_seconds, 1),
                "collected_at": now.isoformat(),
                "calls": {
                    "total": self._total_calls,
                    "failed": self._total_failures,
                    "succeeded": self._total_calls - self._total_failures,
                },
                "tools": {name: metrics.to_dict() for name, metrics in self._tools.items()},
                "global_errors": dict(self._global_errors),
            }

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        with self._lock:
            self._tools.clear()
            self._global_errors.clear()
            self._total_calls = 0
            self._total_failures = 0
            self._started_at = datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Singleton accessor
# -----------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_metrics_store() -> MetricsStore:
    """Get the global MetricsStore singleton."""
    return MetricsStore()
