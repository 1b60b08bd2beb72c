"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for transaction execution.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar

from .types import ErrorKind


class TxRelayError(RuntimeError):
    """Base error for txrelay failures."""

    kind: ClassVar[ErrorKind] = "internal"


class ChannelSubmissionError(TxRelayError):
    """Raised inside a channel adapter when one channel rejects or fails."""

    kind: ClassVar[ErrorKind] = "channel_submission"

    def __init__(self, message: str, *, channel: str | None = None) -> None:
        super().__init__(message)
        self.channel = channel


class ChannelTransportError(ChannelSubmissionError):
    """Raised when an HTTP or JSON-RPC exchange fails or is malformed."""


class AllChannelsFailedError(TxRelayError):
    """Every hybrid attempt failed and the fallback did not recover."""

    kind: ClassVar[ErrorKind] = "all_channels_failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        channel_errors: Mapping[str, str] | None = None,
        fallback_error: str | None = None,
    ) -> None:
        self.channel_errors = dict(channel_errors or {})
        self.fallback_error = fallback_error
        super().__init__(message or self._describe())

    def _describe(self) -> str:
        parts = [f"{name}: {error}" for name, error in sorted(self.channel_errors.items())]
        if self.fallback_error:
            parts.append(f"direct_fallback: {self.fallback_error}")
        if not parts:
            return "All channels failed"
        return "All channels failed; " + "; ".join(parts)


class FallbackExhaustedError(TxRelayError):
    """Direct fallback used up its retry budget."""

    kind: ClassVar[ErrorKind] = "fallback_exhausted"

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_count: int = 0,
        last_error: str | None = None,
    ) -> None:
        self.retry_count = retry_count
        self.last_error = last_error
        super().__init__(
            message
            or f"Fallback execution failed after {retry_count} retries: {last_error or 'unknown error'}"
        )


class ConfigurationError(TxRelayError):
    """Raised for invalid settings or a path that cannot be constructed."""

    kind: ClassVar[ErrorKind] = "configuration"


class ExecutionTimeoutError(TxRelayError):
    """The whole call exceeded its overall timeout."""

    kind: ClassVar[ErrorKind] = "timeout"


_BY_KIND: dict[ErrorKind, type[TxRelayError]] = {
    "channel_submission": ChannelSubmissionError,
    "all_channels_failed": AllChannelsFailedError,
    "fallback_exhausted": FallbackExhaustedError,
    "configuration": ConfigurationError,
    "timeout": ExecutionTimeoutError,
    "internal": TxRelayError,
}


def error_for_kind(kind: ErrorKind, message: str) -> TxRelayError:
    """Materialize the taxonomy error for one failure classification."""
    error_type = _BY_KIND.get(kind, TxRelayError)
    return error_type(message)
