from __future__ import annotations

import asyncio
import hashlib

from txrelay.errors import ChannelTransportError
from txrelay.payload import Anchor, build_transaction, transfer_instruction
from txrelay.runtime import DirectFallback, RetryPolicy
from txrelay.telemetry import InMemoryTelemetrySink, PerformanceTracker


def run_async(coro):
    return asyncio.run(coro)


class _Signer:
    def __init__(self, key: str) -> None:
        self._key = key

    @property
    def public_key(self) -> str:
        return self._key

    def sign(self, message: bytes) -> bytes:
        return hashlib.sha256(self._key.encode("utf-8") + message).digest()


class _Network:
    def __init__(self, *, send_results=None, confirm_errors=None) -> None:
        self.send_results = list(send_results or [])
        self.confirm_errors = list(confirm_errors or [])
        self.anchors_served = 0
        self.sent: list[str] = []

    async def latest_anchor(self) -> Anchor:
        self.anchors_served += 1
        return Anchor(value=f"anchor-{self.anchors_served}", last_valid_height=100)

    async def send_raw(self, encoded: str, *, skip_preflight: bool = True) -> str:
        assert skip_preflight is True
        self.sent.append(encoded)
        row = self.send_results.pop(0) if self.send_results else f"sig-{len(self.sent)}"
        if isinstance(row, Exception):
            raise row
        return row

    async def confirm(self, identifier, anchor, *, timeout_s=None):
        _ = identifier, anchor, timeout_s
        return self.confirm_errors.pop(0) if self.confirm_errors else None

    async def health(self) -> bool:
        return True


class _SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _payload():
    return build_transaction([transfer_instruction("payer", "dest", 10)])


def test_first_attempt_success_reports_zero_retries():
    network = _Network()
    sleep = _SleepRecorder()
    fallback = DirectFallback(network, sleep=sleep)

    outcome = run_async(fallback.run(_payload(), [_Signer("payer")]))

    assert outcome.success is True
    assert outcome.retry_count == 0
    assert outcome.identifier == "sig-1"
    assert sleep.delays == []


def test_exhaustion_uses_linear_backoff_and_reports_retry_budget():
    error = ChannelTransportError("node unavailable", channel="network")
    network = _Network(send_results=[error, error, error, error])
    sleep = _SleepRecorder()
    fallback = DirectFallback(
        network, policy=RetryPolicy(max_retries=3, base_delay_s=1.0), sleep=sleep
    )

    outcome = run_async(fallback.run(_payload(), [_Signer("payer")]))

    assert outcome.success is False
    assert outcome.retry_count == 3
    assert sleep.delays == [1.0, 2.0, 3.0]
    assert sum(sleep.delays) == 6.0
    assert len(network.sent) == 4
    assert outcome.error is not None
    assert outcome.error.startswith("Fallback execution failed after 3 retries")
    assert "node unavailable" in outcome.error


def test_recovers_on_later_attempt_with_fresh_anchor_each_time():
    network = _Network(
        send_results=[ChannelTransportError("busy"), "sig-late"],
    )
    sleep = _SleepRecorder()
    fallback = DirectFallback(network, policy=RetryPolicy(max_retries=3, base_delay_s=0.5), sleep=sleep)
    payload = _payload()

    outcome = run_async(fallback.run(payload, [_Signer("payer")]))

    assert outcome.success is True
    assert outcome.retry_count == 1
    assert outcome.identifier == "sig-late"
    assert sleep.delays == [0.5]
    assert network.anchors_served == 2
    assert network.sent[0] != network.sent[1]
    assert payload.signatures == {}
    assert payload.anchor is None


def test_confirmation_error_counts_as_failed_attempt():
    network = _Network(confirm_errors=["Transaction failed: InstructionError"])
    sleep = _SleepRecorder()
    sink = InMemoryTelemetrySink()
    tracker = PerformanceTracker(sink)
    fallback = DirectFallback(
        network,
        policy=RetryPolicy(max_retries=2, base_delay_s=1.0),
        tracker=tracker,
        telemetry=sink,
        sleep=sleep,
    )

    outcome = run_async(fallback.run(_payload(), [_Signer("payer")]))

    assert outcome.success is True
    assert outcome.retry_count == 1
    assert outcome.attempt_errors == ("Transaction failed: InstructionError",)
    assert sink.counter_total("txrelay.fallback.attempts", success=False) == 1
    assert sink.counter_total("txrelay.fallback.attempts", success=True) == 1
    assert tracker.stats("fallback.attempt").total_operations == 2


def test_zero_retry_budget_makes_exactly_one_attempt():
    network = _Network(send_results=[ChannelTransportError("down")])
    sleep = _SleepRecorder()
    fallback = DirectFallback(network, policy=RetryPolicy(max_retries=0), sleep=sleep)

    outcome = run_async(fallback.run(_payload(), [_Signer("payer")]))

    assert outcome.success is False
    assert outcome.retry_count == 0
    assert sleep.delays == []
    assert len(network.sent) == 1
