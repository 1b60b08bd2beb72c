"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

txrelay: submit signed ledger transactions through competing acceptance
channels with a direct network fallback.
"""

from .builder import ExecutorBuilder
from .channels import (
    BundleChannel,
    ChannelAdapter,
    ChannelDescriptor,
    ChannelKind,
    PriorityRpcChannel,
    RelayChannel,
)
from .errors import (
    AllChannelsFailedError,
    ChannelSubmissionError,
    ChannelTransportError,
    ConfigurationError,
    ExecutionTimeoutError,
    FallbackExhaustedError,
    TxRelayError,
)
from .network import JsonRpcLedgerNetwork, LedgerNetwork
from .payload import Anchor, Instruction, LedgerTransaction, build_transaction, transfer_instruction
from .runtime import ExecutionEngine, RetryPolicy, TimeoutPolicy
from .settings import ChannelSettings, ExecutorSettings
from .telemetry import InMemoryTelemetrySink, PerformanceTracker
from .types import FALLBACK_CHANNEL, ExecutionResult, Signer, Strategy, SubmissionOutcome

__all__ = [
    "ExecutorBuilder",
    "ExecutionEngine",
    "ExecutorSettings",
    "ChannelSettings",
    "RetryPolicy",
    "TimeoutPolicy",
    "ChannelKind",
    "ChannelAdapter",
    "ChannelDescriptor",
    "BundleChannel",
    "RelayChannel",
    "PriorityRpcChannel",
    "LedgerNetwork",
    "JsonRpcLedgerNetwork",
    "Instruction",
    "Anchor",
    "LedgerTransaction",
    "build_transaction",
    "transfer_instruction",
    "Signer",
    "Strategy",
    "SubmissionOutcome",
    "ExecutionResult",
    "FALLBACK_CHANNEL",
    "TxRelayError",
    "ChannelSubmissionError",
    "ChannelTransportError",
    "AllChannelsFailedError",
    "FallbackExhaustedError",
    "ConfigurationError",
    "ExecutionTimeoutError",
    "PerformanceTracker",
    "InMemoryTelemetrySink",
]
