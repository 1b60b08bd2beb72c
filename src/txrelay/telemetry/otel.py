"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

OpenTelemetry sink for execution spans and channel metrics.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..types import JSONValue
from .contracts import TelemetryEvent, TelemetrySink, TelemetrySpan, now_ms


@dataclass(slots=True)
class OpenTelemetrySink:
    """OpenTelemetry sink with lazy tracer and meter initialization."""

    service_name: str = "txrelay"
    instrumentation_name: str = "txrelay.runtime"

    _tracer: Any = field(default=None, init=False, repr=False)
    _meter: Any = field(default=None, init=False, repr=False)
    _instruments: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def _ensure_clients(self) -> None:
        if self._tracer is not None and self._meter is not None:
            return
        try:
            from opentelemetry import metrics, trace
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(
                "OpenTelemetrySink requires 'opentelemetry-api'; install txrelay[otel]"
            ) from exc
        self._tracer = trace.get_tracer(self.instrumentation_name)
        self._meter = metrics.get_meter(self.instrumentation_name)

    def _instrument(self, name: str, factory: str) -> Any:
        key = f"{factory}:{name}"
        instrument = self._instruments.get(key)
        if instrument is None:
            instrument = getattr(self._meter, factory)(name)
            self._instruments[key] = instrument
        return instrument

    def record_event(self, event: TelemetryEvent) -> None:
        self.increment_counter(
            "txrelay.events",
            attributes={"event_name": event.name, **event.attributes},
        )

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        try:
            self._ensure_clients()
            native = self._tracer.start_span(name=name)
            attrs = _attributes(attributes)
            if attrs:
                native.set_attributes(attrs)
        except Exception:  # pragma: no cover
            return None
        return TelemetrySpan(
            name=name,
            started_at_ms=now_ms(),
            attributes=dict(attributes or {}),
            native_span=native,
        )

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None or span.native_span is None:
            return
        try:  # pragma: no cover
            from opentelemetry.trace import Status, StatusCode

            native = span.native_span
            attrs = _attributes(attributes)
            if attrs:
                native.set_attributes(attrs)
            if status == "ok":
                native.set_status(Status(StatusCode.OK))
            else:
                native.set_status(Status(StatusCode.ERROR, error or status))
            native.end()
        except Exception:
            return

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            self._instrument(name, "create_counter").add(
                int(value), attributes=_attributes(attributes)
            )
        except Exception:  # pragma: no cover
            return

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            self._instrument(name, "create_histogram").record(
                float(value), attributes=_attributes(attributes)
            )
        except Exception:  # pragma: no cover
            return


class OpenTelemetryBackend:
    """Backend provider for OpenTelemetry sink."""

    backend_id = "otel"

    def create_sink(
        self,
        *,
        config: Mapping[str, JSONValue] | None = None,
    ) -> TelemetrySink:
        conf = dict(config or {})
        return OpenTelemetrySink(
            service_name=str(conf.get("service_name", "txrelay")),
            instrumentation_name=str(conf.get("instrumentation_name", "txrelay.runtime")),
        )


def _attributes(value: Mapping[str, JSONValue] | None) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, item in (value or {}).items():
        if item is None:
            continue
        if isinstance(item, (str, int, float, bool)):
            out[str(key)] = item
        elif isinstance(item, list):
            out[str(key)] = tuple(str(part) for part in item)
        else:
            out[str(key)] = str(item)
    return out
