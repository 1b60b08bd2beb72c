"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Telemetry sinks, backend registry and performance tracking.
"""

from .contracts import TelemetryBackend, TelemetryEvent, TelemetrySink, TelemetrySpan, now_ms
from .otel import OpenTelemetryBackend, OpenTelemetrySink
from .registry import (
    TelemetryBackendError,
    create_telemetry_sink,
    get_telemetry_backend,
    list_telemetry_backends,
    register_telemetry_backend,
)
from .sinks import (
    InMemoryTelemetryBackend,
    InMemoryTelemetrySink,
    NullTelemetryBackend,
    NullTelemetrySink,
)
from .tracker import (
    BenchmarkResult,
    OperationHandle,
    OperationRecord,
    PerformanceStats,
    PerformanceTracker,
)

# Register built-ins at import time.
register_telemetry_backend(NullTelemetryBackend())
register_telemetry_backend(InMemoryTelemetryBackend())
register_telemetry_backend(OpenTelemetryBackend())

__all__ = [
    "TelemetryEvent",
    "TelemetrySpan",
    "TelemetrySink",
    "TelemetryBackend",
    "TelemetryBackendError",
    "now_ms",
    "register_telemetry_backend",
    "get_telemetry_backend",
    "list_telemetry_backends",
    "create_telemetry_sink",
    "NullTelemetryBackend",
    "InMemoryTelemetryBackend",
    "OpenTelemetryBackend",
    "NullTelemetrySink",
    "InMemoryTelemetrySink",
    "OpenTelemetrySink",
    "BenchmarkResult",
    "OperationHandle",
    "OperationRecord",
    "PerformanceStats",
    "PerformanceTracker",
]
