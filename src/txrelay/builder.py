"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Builder-first construction of execution engines from settings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .channels import ChannelDescriptor, build_channel_descriptors
from .network import JsonRpcLedgerNetwork, LedgerNetwork
from .runtime import ExecutionEngine, RetryPolicy, TimeoutPolicy
from .runtime.fallback import SleepFn
from .settings import ExecutorSettings
from .telemetry import PerformanceTracker, TelemetrySink
from .transport import JsonRpcTransport

logger = logging.getLogger("txrelay.builder")


class ExecutorBuilder:
    """Builder-first DX for creating configured execution engines."""

    def __init__(self) -> None:
        self._settings = ExecutorSettings.from_env()
        self._network: LedgerNetwork | None = None
        self._without_fallback = False
        self._transport: JsonRpcTransport | None = None
        self._channels: list[ChannelDescriptor] | None = None
        self._extra_channels: list[ChannelDescriptor] = []
        self._telemetry: str | TelemetrySink | None = None
        self._tracker: PerformanceTracker | None = None
        self._retry_policy: RetryPolicy | None = None
        self._timeout_policy: TimeoutPolicy | None = None
        self._sleep: SleepFn | None = None

    def settings(self, settings: ExecutorSettings) -> "ExecutorBuilder":
        """Replace builder settings with an explicit `ExecutorSettings` instance."""
        self._settings = settings
        return self

    def network(self, network: LedgerNetwork) -> "ExecutorBuilder":
        """Use an explicit ledger network client instead of the JSON-RPC default."""
        self._network = network
        self._without_fallback = False
        return self

    def without_fallback(self) -> "ExecutorBuilder":
        """Build an engine with no direct fallback path."""
        self._network = None
        self._without_fallback = True
        return self

    def transport(self, transport: JsonRpcTransport) -> "ExecutorBuilder":
        """Share one HTTP transport between all channel adapters."""
        self._transport = transport
        return self

    def channels(self, descriptors: Sequence[ChannelDescriptor]) -> "ExecutorBuilder":
        """Use exactly these descriptors instead of the settings-derived ones."""
        self._channels = list(descriptors)
        return self

    def with_channel(self, descriptor: ChannelDescriptor) -> "ExecutorBuilder":
        """Add one descriptor next to the settings-derived channels."""
        self._extra_channels.append(descriptor)
        return self

    def with_telemetry(self, telemetry: str | TelemetrySink) -> "ExecutorBuilder":
        """Select one telemetry sink instance or registered backend id."""
        self._telemetry = telemetry
        return self

    def with_tracker(self, tracker: PerformanceTracker) -> "ExecutorBuilder":
        self._tracker = tracker
        return self

    def retry_policy(self, policy: RetryPolicy) -> "ExecutorBuilder":
        self._retry_policy = policy
        return self

    def timeout_policy(self, policy: TimeoutPolicy) -> "ExecutorBuilder":
        self._timeout_policy = policy
        return self

    def with_sleep(self, sleep: SleepFn) -> "ExecutorBuilder":
        """Replace the backoff sleep, mainly for tests."""
        self._sleep = sleep
        return self

    def build(self) -> ExecutionEngine:
        """Materialize one configured `ExecutionEngine` instance."""
        settings = self._settings
        network = self._network
        if network is None and not self._without_fallback:
            network = JsonRpcLedgerNetwork(
                settings.resolved_rpc_endpoint(),
                commitment=settings.commitment,
                request_timeout_s=settings.channel_timeout_s or settings.overall_timeout_s,
                confirm_timeout_s=settings.overall_timeout_s,
                poll_interval_s=settings.confirm_poll_interval_s,
            )

        if self._channels is not None:
            channels = list(self._channels)
        elif network is not None:
            channels = build_channel_descriptors(
                settings, network=network, transport=self._transport
            )
        else:
            channels = []
        channels.extend(self._extra_channels)

        retry_policy = self._retry_policy or RetryPolicy(
            max_retries=settings.max_retries,
            base_delay_s=settings.base_delay_s,
        )
        timeout_policy = self._timeout_policy or TimeoutPolicy(
            overall_timeout_s=settings.overall_timeout_s,
            channel_timeout_s=settings.channel_timeout_s,
            health_timeout_s=settings.health_timeout_s,
        )

        logger.info("Execution engine configuration: %s", settings.summary())
        logger.info(
            "Enabled channels: %s",
            ", ".join(row.name for row in channels if row.enabled) or "none",
        )
        return ExecutionEngine(
            channels=channels,
            network=network,
            retry_policy=retry_policy,
            timeout_policy=timeout_policy,
            telemetry=self._telemetry,
            tracker=self._tracker,
            sleep=self._sleep,
        )
