"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Direct fallback: provider-agnostic submission with bounded linear backoff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from ..errors import ChannelSubmissionError, FallbackExhaustedError
from ..network import LedgerNetwork
from ..payload import LedgerTransaction
from ..telemetry import NullTelemetrySink, PerformanceTracker, TelemetrySink
from ..types import FALLBACK_CHANNEL, Signer
from .contracts import RetryPolicy

logger = logging.getLogger("txrelay.runtime.fallback")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class FallbackOutcome:
    """Terminal state of one fallback run."""

    success: bool
    retry_count: int
    identifier: str | None = None
    error: str | None = None
    attempt_errors: tuple[str, ...] = ()


class DirectFallback:
    """
    Resubmit through the generic network endpoint until accepted or exhausted.

    One initial attempt is followed by up to ``max_retries`` retries. Retry
    ``n`` waits ``base_delay_s * n`` first, and every attempt fetches a fresh
    anchor and signs a new clone of the payload.
    """

    def __init__(
        self,
        network: LedgerNetwork,
        *,
        policy: RetryPolicy | None = None,
        tracker: PerformanceTracker | None = None,
        telemetry: TelemetrySink | None = None,
        confirm_timeout_s: float | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._network = network
        self._policy = policy or RetryPolicy()
        self._tracker = tracker or PerformanceTracker()
        self._telemetry = telemetry or NullTelemetrySink()
        self._confirm_timeout_s = confirm_timeout_s
        self._sleep = sleep or asyncio.sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(
        self, payload: LedgerTransaction, signers: Sequence[Signer]
    ) -> FallbackOutcome:
        retries = max(0, self._policy.max_retries)
        errors: list[str] = []

        for retry in range(retries + 1):
            if retry > 0:
                delay = self._policy.delay_for(retry)
                logger.warning(
                    "Fallback attempt %d failed, retrying in %.2fs. Error: %s",
                    retry,
                    delay,
                    errors[-1],
                )
                await self._sleep(delay)

            handle = self._tracker.start("fallback.attempt", attempt=retry + 1)
            identifier: str | None = None
            try:
                identifier = await self._attempt(payload, signers)
            except Exception as exc:  # noqa: BLE001
                errors.append(str(exc) or type(exc).__name__)
            finally:
                self._tracker.end(handle, success=identifier is not None)
            self._telemetry.increment_counter(
                "txrelay.fallback.attempts", attributes={"success": identifier is not None}
            )
            if identifier is None:
                continue

            logger.info("Fallback execution successful after %d retries: %s", retry, identifier)
            return FallbackOutcome(
                success=True,
                retry_count=retry,
                identifier=identifier,
                attempt_errors=tuple(errors),
            )

        exhausted = FallbackExhaustedError(retry_count=retries, last_error=errors[-1])
        logger.error("%s", exhausted)
        return FallbackOutcome(
            success=False,
            retry_count=retries,
            error=str(exhausted),
            attempt_errors=tuple(errors),
        )

    async def _attempt(
        self, payload: LedgerTransaction, signers: Sequence[Signer]
    ) -> str:
        if not signers:
            raise ChannelSubmissionError("No signers supplied", channel=FALLBACK_CHANNEL)
        anchor = await self._network.latest_anchor()
        tx = payload.clone()
        tx.prepare(anchor=anchor, fee_payer=signers[0].public_key)
        tx.sign(*signers)
        identifier = await self._network.send_raw(tx.encode("base64"), skip_preflight=True)
        error = await self._network.confirm(
            identifier, anchor, timeout_s=self._confirm_timeout_s
        )
        if error:
            raise ChannelSubmissionError(error, channel=FALLBACK_CHANNEL)
        return identifier
