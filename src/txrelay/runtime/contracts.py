"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for transaction execution.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Direct fallback retry budget with linear backoff."""

    max_retries: int = 3
    base_delay_s: float = 1.0

    def delay_for(self, retry: int) -> float:
        """Delay before retry number ``retry`` (1-indexed)."""
        return max(0.0, self.base_delay_s) * max(0, retry)


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Timeout semantics for one execution call."""

    overall_timeout_s: float | None = 10.0
    channel_timeout_s: float | None = None
    health_timeout_s: float = 5.0
