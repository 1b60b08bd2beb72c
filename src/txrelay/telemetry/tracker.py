"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Performance tracker recording start/end timestamps for named operations.
"""

from __future__ import annotations

import itertools
import logging
import math
import threading
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, Generic, TypeVar

from ..types import JSONValue
from .contracts import TelemetrySink
from .sinks import NullTelemetrySink

logger = logging.getLogger("txrelay.telemetry.tracker")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationHandle:
    """Opaque token returned by :meth:`PerformanceTracker.start`."""

    token: int
    name: str


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """One completed operation."""

    name: str
    started_at_s: float
    duration_ms: float
    success: bool = True
    metadata: dict[str, JSONValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PerformanceStats:
    total_operations: int = 0
    average_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    success_rate: float = 0.0


@dataclass(frozen=True, slots=True)
class BenchmarkResult(Generic[T]):
    """Aggregated timings for repeated runs of one operation."""

    results: list[T]
    average_ms: float
    min_ms: float
    max_ms: float
    total_ms: float


class PerformanceTracker:
    """
    Track durations of named operations and forward them to a telemetry sink.

    Concurrent operations with the same name are kept apart by their handle,
    so racing channel attempts can be tracked independently.
    """

    def __init__(self, sink: TelemetrySink | None = None) -> None:
        self._sink = sink or NullTelemetrySink()
        self._open: dict[int, tuple[str, float, dict[str, JSONValue]]] = {}
        self._completed: list[OperationRecord] = []
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()
        self._session_started = time.monotonic()

    def start(self, name: str, **metadata: JSONValue) -> OperationHandle:
        handle = OperationHandle(token=next(self._tokens), name=name)
        with self._lock:
            self._open[handle.token] = (name, time.monotonic(), dict(metadata))
        logger.debug("Started tracking %s", name)
        return handle

    def end(
        self, handle: OperationHandle, *, success: bool = True, **metadata: JSONValue
    ) -> float:
        """Close one operation and return its duration in milliseconds."""
        with self._lock:
            row = self._open.pop(handle.token, None)
        if row is None:
            logger.warning("Attempted to end tracking for unknown operation: %s", handle.name)
            return 0.0
        name, started, opened_with = row
        duration_ms = (time.monotonic() - started) * 1000.0
        merged = {**opened_with, **metadata}
        record = OperationRecord(
            name=name,
            started_at_s=started,
            duration_ms=duration_ms,
            success=success,
            metadata=merged,
        )
        with self._lock:
            self._completed.append(record)
        self._sink.record_histogram(
            f"txrelay.{name}.duration_ms",
            duration_ms,
            attributes={**merged, "success": success},
        )
        logger.debug("Completed tracking %s (%.1fms)", name, duration_ms)
        return duration_ms

    @asynccontextmanager
    async def track(self, name: str, **metadata: JSONValue) -> AsyncIterator[OperationHandle]:
        handle = self.start(name, **metadata)
        success = False
        try:
            yield handle
            success = True
        finally:
            self.end(handle, success=success)

    def records(self, prefix: str | None = None) -> list[OperationRecord]:
        with self._lock:
            rows = list(self._completed)
        if prefix is None:
            return rows
        return [row for row in rows if row.name.startswith(prefix)]

    def durations(self) -> dict[str, float]:
        """Latest duration per operation name."""
        return {row.name: row.duration_ms for row in self.records()}

    def stats(self, prefix: str | None = None) -> PerformanceStats:
        rows = self.records(prefix)
        if not rows:
            return PerformanceStats()
        values = sorted(row.duration_ms for row in rows)
        return PerformanceStats(
            total_operations=len(rows),
            average_ms=sum(values) / len(values),
            min_ms=values[0],
            max_ms=values[-1],
            p95_ms=_percentile(values, 0.95),
            p99_ms=_percentile(values, 0.99),
            success_rate=sum(1 for row in rows if row.success) / len(rows),
        )

    async def benchmark(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        iterations: int = 1,
    ) -> BenchmarkResult[T]:
        """
        Await ``operation`` ``iterations`` times, tracking each run under ``name``.

        A failing iteration is recorded as unsuccessful and its exception is
        re-raised; iterations already completed stay in the records.
        """
        if iterations < 1:
            raise ValueError("iterations must be >= 1")
        logger.info("Benchmarking %s (%d iterations)", name, iterations)
        results: list[T] = []
        times: list[float] = []
        started = time.monotonic()
        for index in range(iterations):
            handle = self.start(name, iteration=index + 1)
            try:
                value = await operation()
            except Exception:
                self.end(handle, success=False)
                logger.error("Benchmark iteration %d of %s failed", index + 1, name)
                raise
            results.append(value)
            times.append(self.end(handle))
        return BenchmarkResult(
            results=results,
            average_ms=sum(times) / len(times),
            min_ms=min(times),
            max_ms=max(times),
            total_ms=(time.monotonic() - started) * 1000.0,
        )

    def check_thresholds(
        self,
        *,
        max_average_ms: float | None = None,
        max_p95_ms: float | None = None,
        min_success_rate: float | None = None,
        prefix: str | None = None,
    ) -> list[str]:
        """Return one message per exceeded threshold; empty when all pass."""
        stats = self.stats(prefix)
        issues: list[str] = []
        if max_average_ms is not None and stats.average_ms > max_average_ms:
            issues.append(
                f"Average time {stats.average_ms:.2f}ms exceeds threshold {max_average_ms}ms"
            )
        if max_p95_ms is not None and stats.p95_ms > max_p95_ms:
            issues.append(f"P95 time {stats.p95_ms:.2f}ms exceeds threshold {max_p95_ms}ms")
        if (
            min_success_rate is not None
            and stats.total_operations
            and stats.success_rate < min_success_rate
        ):
            issues.append(
                f"Success rate {stats.success_rate:.2%} below threshold {min_success_rate:.2%}"
            )
        return issues

    def export(self) -> dict[str, Any]:
        """Snapshot of summary stats, completed records and in-flight operations."""
        with self._lock:
            in_flight = [
                {"name": name, "metadata": dict(metadata)}
                for name, _, metadata in self._open.values()
            ]
        return {
            "summary": asdict(self.stats()),
            "operations": [asdict(row) for row in self.records()],
            "in_flight": in_flight,
            "session_duration_ms": (time.monotonic() - self._session_started) * 1000.0,
        }

    def reset(self) -> None:
        with self._lock:
            self._open.clear()
            self._completed.clear()
            self._session_started = time.monotonic()


def _percentile(sorted_values: list[float], fraction: float) -> float:
    index = max(0, math.ceil(fraction * len(sorted_values)) - 1)
    return sorted_values[index]
