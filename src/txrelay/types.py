"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines the value types exchanged between the execution engine,
channel adapters and callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol, TypeAlias

if TYPE_CHECKING:
    from .errors import TxRelayError


JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]

StrategyKind = Literal["single_channel", "hybrid", "direct_fallback"]

ErrorKind = Literal[
    "channel_submission",
    "all_channels_failed",
    "fallback_exhausted",
    "configuration",
    "timeout",
    "internal",
]

FALLBACK_CHANNEL = "direct_fallback"


class Signer(Protocol):
    """Key holder able to sign payload message bytes."""

    @property
    def public_key(self) -> str:
        """Return the signer's public key in its textual form."""
        ...

    def sign(self, message: bytes) -> bytes:
        """Return the raw signature for ``message``."""
        ...


@dataclass(frozen=True, slots=True)
class Strategy:
    """Submission strategy chosen for one call."""

    kind: StrategyKind
    channels: tuple[str, ...] = ()

    @classmethod
    def single_channel(cls, name: str) -> "Strategy":
        return cls(kind="single_channel", channels=(name,))

    @classmethod
    def hybrid(cls, names: tuple[str, ...] | list[str]) -> "Strategy":
        return cls(kind="hybrid", channels=tuple(names))

    @classmethod
    def direct_fallback(cls) -> "Strategy":
        return cls(kind="direct_fallback")

    def __str__(self) -> str:
        if not self.channels:
            return self.kind
        return f"{self.kind}({', '.join(self.channels)})"


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """Result of exactly one channel attempt."""

    channel_name: str
    success: bool
    identifier: str | None = None
    error: str | None = None
    elapsed_ms: float = 0.0

    @classmethod
    def failed(
        cls, channel_name: str, error: str, *, elapsed_ms: float = 0.0
    ) -> "SubmissionOutcome":
        return cls(
            channel_name=channel_name,
            success=False,
            error=error,
            elapsed_ms=elapsed_ms,
        )


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """
    Terminal, caller-visible result of one ``execute_transaction`` call.

    Attributes:
        success: Whether any path got the payload accepted.
        strategy: Strategy selected for the call.
        identifier: Payload identifier reported by the accepting path.
        error: Human readable failure reason.
        error_kind: Classification of the failure, ``None`` on success.
        elapsed_ms: Wall-clock time for the whole call.
        retry_count: Retries spent by the direct fallback, when it ran.
        channel_name: Channel that produced the result, or ``direct_fallback``.
        channel_errors: Per-channel failure strings collected on the way.
    """

    success: bool
    strategy: Strategy
    identifier: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    elapsed_ms: float = 0.0
    retry_count: int | None = None
    channel_name: str | None = None
    channel_errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_error(
        cls,
        error: "TxRelayError",
        *,
        strategy: Strategy,
        elapsed_ms: float = 0.0,
        retry_count: int | None = None,
        channel_name: str | None = None,
        channel_errors: dict[str, str] | None = None,
    ) -> "ExecutionResult":
        """Build a failure result classified by a taxonomy error."""
        return cls(
            success=False,
            strategy=strategy,
            error=str(error),
            error_kind=error.kind,
            elapsed_ms=elapsed_ms,
            retry_count=retry_count,
            channel_name=channel_name,
            channel_errors=dict(channel_errors or {}),
        )

    def raise_for_status(self) -> None:
        """Raise the classified error when this result is a failure."""
        if self.success:
            return
        from .errors import error_for_kind

        raise error_for_kind(self.error_kind or "internal", self.error or "unknown")
