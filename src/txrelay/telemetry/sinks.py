"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

No-op and in-memory telemetry sinks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..types import JSONValue
from .contracts import TelemetryEvent, TelemetrySink, TelemetrySpan, now_ms


class NullTelemetrySink:
    """No-op telemetry sink used as safe runtime default."""

    def record_event(self, event: TelemetryEvent) -> None:
        _ = event

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        _ = name, attributes
        return None

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = span, status, error, attributes

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = name, value, attributes

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = name, value, attributes


@dataclass(slots=True)
class InMemoryTelemetrySink:
    """Telemetry sink that keeps every record in process memory."""

    _events: list[TelemetryEvent] = field(default_factory=list)
    _spans_closed: list[dict[str, Any]] = field(default_factory=list)
    _counters: list[dict[str, Any]] = field(default_factory=list)
    _histograms: list[dict[str, Any]] = field(default_factory=list)

    def record_event(self, event: TelemetryEvent) -> None:
        self._events.append(event)

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan:
        return TelemetrySpan(
            name=name,
            started_at_ms=now_ms(),
            attributes=dict(attributes or {}),
        )

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None:
            return
        ended_at = now_ms()
        self._spans_closed.append(
            {
                "name": span.name,
                "duration_ms": ended_at - span.started_at_ms,
                "status": status,
                "error": error,
                "attributes": {**span.attributes, **dict(attributes or {})},
            }
        )

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self._counters.append(
            {"name": name, "value": int(value), "attributes": dict(attributes or {})}
        )

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self._histograms.append(
            {"name": name, "value": float(value), "attributes": dict(attributes or {})}
        )

    def events(self) -> list[TelemetryEvent]:
        return list(self._events)

    def spans(self, name: str | None = None) -> list[dict[str, Any]]:
        return [row for row in self._spans_closed if name is None or row["name"] == name]

    def counter_total(self, name: str, **match: JSONValue) -> int:
        """Sum a counter, optionally restricted to matching attributes."""
        total = 0
        for row in self._counters:
            if row["name"] != name:
                continue
            if any(row["attributes"].get(key) != value for key, value in match.items()):
                continue
            total += row["value"]
        return total

    def histogram_values(self, name: str) -> list[float]:
        return [row["value"] for row in self._histograms if row["name"] == name]


class NullTelemetryBackend:
    """Backend provider for no-op sink."""

    backend_id = "null"

    def create_sink(
        self,
        *,
        config: Mapping[str, JSONValue] | None = None,
    ) -> TelemetrySink:
        _ = config
        return NullTelemetrySink()


class InMemoryTelemetryBackend:
    """Backend provider for in-memory sink."""

    backend_id = "inmemory"

    def create_sink(
        self,
        *,
        config: Mapping[str, JSONValue] | None = None,
    ) -> TelemetrySink:
        _ = config
        return InMemoryTelemetrySink()
