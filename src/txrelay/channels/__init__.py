"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Acceptance channel adapters.
"""

from .base import BaseChannel
from .bundle import BundleChannel
from .contracts import ChannelAdapter, ChannelDescriptor, ChannelKind
from .factory import build_channel_descriptors, create_channel_adapter, is_channel_enabled
from .priority_rpc import PriorityRpcChannel
from .relay import RelayChannel

__all__ = [
    "ChannelKind",
    "ChannelAdapter",
    "ChannelDescriptor",
    "BaseChannel",
    "BundleChannel",
    "RelayChannel",
    "PriorityRpcChannel",
    "create_channel_adapter",
    "build_channel_descriptors",
    "is_channel_enabled",
]
