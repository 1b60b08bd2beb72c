"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Channel adapter contracts consumed by the execution engine.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..payload import LedgerTransaction
from ..types import Signer, SubmissionOutcome


class ChannelKind(str, Enum):
    """Closed set of supported acceptance channels."""

    BUNDLE = "bundle"
    RELAY = "relay"
    PRIORITY_RPC = "priority_rpc"


class ChannelAdapter(Protocol):
    """Uniform contract implemented by every acceptance channel."""

    kind: ChannelKind

    @property
    def name(self) -> str:
        """Stable channel name used in results and telemetry."""
        ...

    async def submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float | None = None,
    ) -> SubmissionOutcome:
        """Submit a private payload clone; must not raise."""
        ...

    async def health_check(self, *, timeout_s: float) -> bool:
        """Probe channel reachability."""
        ...

    def estimate_cost(self, payload: LedgerTransaction) -> int:
        """Advisory cost in lamports; no network I/O."""
        ...


@dataclass(frozen=True, slots=True)
class ChannelDescriptor:
    """Configured channel as seen by the engine for one execution."""

    name: str
    adapter: ChannelAdapter
    enabled: bool = True
    fee_lamports: int = 0
