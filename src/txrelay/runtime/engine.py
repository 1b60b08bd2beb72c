"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Execution engine: strategy selection, channel racing, direct fallback and
result aggregation behind a single entry point that never raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from functools import partial
from typing import Any

from ..channels.contracts import ChannelDescriptor
from ..errors import (
    AllChannelsFailedError,
    ConfigurationError,
    ExecutionTimeoutError,
    FallbackExhaustedError,
)
from ..network import LedgerNetwork
from ..payload import BASE_NETWORK_FEE_LAMPORTS, LedgerTransaction
from ..telemetry import PerformanceTracker, TelemetrySink, create_telemetry_sink
from ..types import (
    FALLBACK_CHANNEL,
    ExecutionResult,
    Signer,
    Strategy,
    SubmissionOutcome,
)
from .contracts import RetryPolicy, TimeoutPolicy
from .fallback import DirectFallback, SleepFn
from .race import race_first_success
from .strategy import select_strategy

logger = logging.getLogger("txrelay.runtime.engine")

ChannelSource = Iterable[ChannelDescriptor] | Callable[[], Iterable[ChannelDescriptor]]


class ExecutionEngine:
    """
    Submit one signed payload through the best available path.

    Channel descriptors are re-read on every call, so a callable source can
    reflect enablement changes without rebuilding the engine. Nothing else is
    carried between calls apart from detached race losers still finishing in
    the background.
    """

    def __init__(
        self,
        *,
        channels: ChannelSource = (),
        network: LedgerNetwork | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_policy: TimeoutPolicy | None = None,
        telemetry: str | TelemetrySink | None = None,
        tracker: PerformanceTracker | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        if callable(channels):
            self._channel_source: Callable[[], Iterable[ChannelDescriptor]] = channels
        else:
            snapshot = tuple(channels)
            self._channel_source = lambda: snapshot
        self._network = network
        self._retry_policy = retry_policy or RetryPolicy()
        self._timeouts = timeout_policy or TimeoutPolicy()
        self._telemetry = create_telemetry_sink(telemetry)
        self._tracker = tracker or PerformanceTracker(self._telemetry)
        self._fallback = (
            DirectFallback(
                network,
                policy=self._retry_policy,
                tracker=self._tracker,
                telemetry=self._telemetry,
                confirm_timeout_s=self._timeouts.channel_timeout_s,
                sleep=sleep,
            )
            if network is not None
            else None
        )
        self._background: set[asyncio.Task[SubmissionOutcome]] = set()

    @property
    def network(self) -> LedgerNetwork | None:
        return self._network

    @property
    def tracker(self) -> PerformanceTracker:
        return self._tracker

    @property
    def telemetry(self) -> TelemetrySink:
        return self._telemetry

    def channels(self) -> list[ChannelDescriptor]:
        return list(self._channel_source())

    def enabled_channels(self) -> list[ChannelDescriptor]:
        return [row for row in self.channels() if row.enabled]

    def select_strategy(self) -> Strategy:
        return select_strategy(self.enabled_channels())

    async def execute_transaction(
        self, payload: LedgerTransaction, signers: Sequence[Signer]
    ) -> ExecutionResult:
        """Execute ``payload`` and return exactly one result; never raises."""
        started = time.monotonic()
        channels = self.enabled_channels()
        strategy = select_strategy(channels)
        signer_snapshot = tuple(signers)
        overall = self._timeouts.overall_timeout_s

        logger.info("Executing transaction with strategy: %s", strategy)
        span = self._telemetry.start_span(
            "txrelay.execute_transaction",
            attributes={"strategy": strategy.kind, "channels": list(strategy.channels)},
        )
        handle = self._tracker.start("execute_transaction", strategy=strategy.kind)

        try:
            if not signer_snapshot:
                raise ConfigurationError("At least one signer is required")
            async with asyncio.timeout(overall):
                result = await self._dispatch(strategy, channels, payload, signer_snapshot)
        except ConfigurationError as exc:
            result = ExecutionResult.from_error(exc, strategy=strategy)
        except TimeoutError:
            message = "Execution exceeded overall timeout"
            if overall is not None:
                message = f"{message} of {overall:.2f}s"
            result = ExecutionResult.from_error(
                ExecutionTimeoutError(message), strategy=strategy
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure executing with strategy %s", strategy)
            result = ExecutionResult(
                success=False,
                strategy=strategy,
                error=str(exc) or type(exc).__name__,
                error_kind="internal",
            )

        elapsed_ms = (time.monotonic() - started) * 1000.0
        result = replace(result, elapsed_ms=elapsed_ms)
        self._tracker.end(handle, success=result.success)
        self._telemetry.end_span(
            span,
            status="ok" if result.success else "error",
            error=result.error,
            attributes={
                "channel": result.channel_name,
                "retry_count": result.retry_count,
                "error_kind": result.error_kind,
            },
        )
        if result.success:
            logger.info(
                "Transaction executed successfully in %.0fms (strategy=%s, channel=%s, id=%s)",
                elapsed_ms,
                strategy,
                result.channel_name,
                result.identifier,
            )
        else:
            logger.error(
                "Transaction execution failed after %.0fms (strategy=%s, kind=%s): %s",
                elapsed_ms,
                strategy,
                result.error_kind,
                result.error,
            )
        return result

    async def execute_optimal(
        self, payload: LedgerTransaction, signers: Sequence[Signer]
    ) -> ExecutionResult:
        return await self.execute_transaction(payload, signers)

    async def _dispatch(
        self,
        strategy: Strategy,
        channels: list[ChannelDescriptor],
        payload: LedgerTransaction,
        signers: tuple[Signer, ...],
    ) -> ExecutionResult:
        by_name = {row.name: row for row in channels}
        match strategy.kind:
            case "single_channel":
                return await self._execute_single(
                    by_name[strategy.channels[0]], payload, signers, strategy
                )
            case "hybrid":
                return await self._execute_hybrid(
                    [by_name[name] for name in strategy.channels], payload, signers, strategy
                )
            case _:
                return await self._execute_fallback(payload, signers, strategy)

    async def _execute_single(
        self,
        descriptor: ChannelDescriptor,
        payload: LedgerTransaction,
        signers: tuple[Signer, ...],
        strategy: Strategy,
    ) -> ExecutionResult:
        outcome = await self._submit(descriptor, payload, signers)
        if outcome.success:
            return ExecutionResult(
                success=True,
                strategy=strategy,
                identifier=outcome.identifier,
                channel_name=outcome.channel_name,
            )
        error = outcome.error or f"{descriptor.name} submission failed"
        return ExecutionResult(
            success=False,
            strategy=strategy,
            error=error,
            error_kind="channel_submission",
            channel_name=outcome.channel_name,
            channel_errors={outcome.channel_name: error},
        )

    async def _execute_hybrid(
        self,
        channels: list[ChannelDescriptor],
        payload: LedgerTransaction,
        signers: tuple[Signer, ...],
        strategy: Strategy,
    ) -> ExecutionResult:
        logger.info("Executing hybrid strategy across %d channels", len(channels))
        race = await race_first_success(
            {row.name: partial(self._submit, row, payload, signers) for row in channels},
            detach=self._detach,
        )
        if race.winner is not None:
            logger.info("Hybrid execution succeeded with channel: %s", race.winner.channel_name)
            return ExecutionResult(
                success=True,
                strategy=strategy,
                identifier=race.winner.identifier,
                channel_name=race.winner.channel_name,
                channel_errors=race.failures,
            )

        logger.warning("All channels failed in hybrid mode, trying direct fallback")
        if self._fallback is None:
            return ExecutionResult.from_error(
                AllChannelsFailedError(
                    channel_errors=race.failures,
                    fallback_error="direct fallback is not configured",
                ),
                strategy=strategy,
                channel_errors=race.failures,
            )

        fallback = await self._fallback.run(payload, signers)
        if fallback.success:
            return ExecutionResult(
                success=True,
                strategy=strategy,
                identifier=fallback.identifier,
                retry_count=fallback.retry_count,
                channel_name=FALLBACK_CHANNEL,
                channel_errors=race.failures,
            )
        return ExecutionResult.from_error(
            AllChannelsFailedError(channel_errors=race.failures, fallback_error=fallback.error),
            strategy=strategy,
            retry_count=fallback.retry_count,
            channel_name=FALLBACK_CHANNEL,
            channel_errors=race.failures,
        )

    async def _execute_fallback(
        self,
        payload: LedgerTransaction,
        signers: tuple[Signer, ...],
        strategy: Strategy,
    ) -> ExecutionResult:
        if self._fallback is None:
            raise ConfigurationError(
                "No channels are enabled and no network endpoint is configured for direct fallback"
            )
        fallback = await self._fallback.run(payload, signers)
        if fallback.success:
            return ExecutionResult(
                success=True,
                strategy=strategy,
                identifier=fallback.identifier,
                retry_count=fallback.retry_count,
                channel_name=FALLBACK_CHANNEL,
            )
        return ExecutionResult.from_error(
            FallbackExhaustedError(fallback.error, retry_count=fallback.retry_count),
            strategy=strategy,
            retry_count=fallback.retry_count,
            channel_name=FALLBACK_CHANNEL,
        )

    async def _submit(
        self,
        descriptor: ChannelDescriptor,
        payload: LedgerTransaction,
        signers: tuple[Signer, ...],
    ) -> SubmissionOutcome:
        """Run one adapter on a private clone; any fault becomes a failed outcome."""
        name = descriptor.name
        clone = payload.clone()
        timeout_s = self._timeouts.channel_timeout_s
        started = time.monotonic()
        handle = self._tracker.start("channel.submit", channel=name)
        outcome: SubmissionOutcome | None = None
        try:
            async with asyncio.timeout(timeout_s):
                outcome = await descriptor.adapter.submit(clone, signers, timeout_s=timeout_s)
        except TimeoutError:
            error = f"{name} timed out"
            if timeout_s is not None:
                error = f"{error} after {timeout_s:.2f}s"
            outcome = SubmissionOutcome.failed(
                name, error, elapsed_ms=(time.monotonic() - started) * 1000.0
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Channel %s raised past its boundary: %s", name, exc)
            outcome = SubmissionOutcome.failed(
                name,
                f"{name} execution failed: {exc or type(exc).__name__}",
                elapsed_ms=(time.monotonic() - started) * 1000.0,
            )
        finally:
            self._tracker.end(handle, success=outcome is not None and outcome.success)
        if outcome.channel_name != name:
            outcome = replace(outcome, channel_name=name)
        self._telemetry.increment_counter(
            "txrelay.channel.outcomes",
            attributes={"channel": name, "success": outcome.success},
        )
        if not outcome.success:
            logger.warning("Channel %s failed: %s", name, outcome.error)
        return outcome

    def _detach(self, name: str, task: asyncio.Task[SubmissionOutcome]) -> None:
        self._background.add(task)
        task.add_done_callback(partial(self._discard_late_outcome, name))

    def _discard_late_outcome(self, name: str, task: asyncio.Task[SubmissionOutcome]) -> None:
        self._background.discard(task)
        if task.cancelled():
            status = "cancelled"
        elif task.exception() is not None:
            status = "error"
        else:
            status = "success" if task.result().success else "failure"
        logger.debug("Ignored late %s outcome from channel %s", status, name)
        self._telemetry.increment_counter(
            "txrelay.race.discarded", attributes={"channel": name, "status": status}
        )

    async def drain(self) -> None:
        """Wait for detached race losers to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def get_health(self) -> dict[str, bool]:
        """Probe each enabled channel (and the fallback network) independently."""
        timeout_s = self._timeouts.health_timeout_s
        probes: dict[str, Callable[[], Any]] = {
            row.name: partial(row.adapter.health_check, timeout_s=timeout_s)
            for row in self.enabled_channels()
        }
        if self._network is not None:
            probes[FALLBACK_CHANNEL] = self._network.health

        async def _probe(name: str, probe: Callable[[], Any]) -> bool:
            try:
                async with asyncio.timeout(timeout_s):
                    return bool(await probe())
            except TimeoutError:
                logger.warning("%s health check timed out after %.2fs", name, timeout_s)
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s health check failed: %s", name, exc)
            return False

        names = list(probes)
        results = await asyncio.gather(*(_probe(name, probes[name]) for name in names))
        return dict(zip(names, results))

    def estimate_cost(self, payload: LedgerTransaction) -> dict[str, int]:
        """Advisory per-path cost in lamports; never raises, performs no I/O."""
        costs: dict[str, int] = {}
        for row in self.enabled_channels():
            try:
                costs[row.name] = int(row.adapter.estimate_cost(payload))
            except Exception as exc:  # noqa: BLE001
                logger.warning("Cost estimate for %s failed, using configured fee: %s", row.name, exc)
                costs[row.name] = BASE_NETWORK_FEE_LAMPORTS + row.fee_lamports
        costs[FALLBACK_CHANNEL] = BASE_NETWORK_FEE_LAMPORTS
        return costs

    def get_execution_stats(self, payload: LedgerTransaction | None = None) -> dict[str, Any]:
        channels = self.enabled_channels()
        return {
            "enabled_channels": [row.name for row in channels],
            "strategy": str(select_strategy(channels)),
            "estimated_cost": self.estimate_cost(payload or LedgerTransaction()),
        }
