"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Execution runtime: policies, strategy selection, racing and direct fallback.
"""

from .contracts import RetryPolicy, TimeoutPolicy
from .engine import ExecutionEngine
from .fallback import DirectFallback, FallbackOutcome
from .race import RaceResult, race_first_success
from .strategy import select_strategy

__all__ = [
    "ExecutionEngine",
    "RetryPolicy",
    "TimeoutPolicy",
    "DirectFallback",
    "FallbackOutcome",
    "RaceResult",
    "race_first_success",
    "select_strategy",
]
