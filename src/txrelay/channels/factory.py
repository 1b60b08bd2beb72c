"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Map executor settings onto channel adapters and descriptors.
"""

from __future__ import annotations

from ..network import LedgerNetwork
from ..settings import (
    BUNDLE_TIP_ACCOUNTS,
    PRIORITY_TIP_ACCOUNTS,
    RELAY_TIP_ACCOUNTS,
    ExecutorSettings,
)
from ..transport import JsonRpcTransport
from .bundle import BundleChannel
from .contracts import ChannelAdapter, ChannelDescriptor, ChannelKind
from .priority_rpc import PriorityRpcChannel
from .relay import RelayChannel


def create_channel_adapter(
    kind: ChannelKind,
    *,
    settings: ExecutorSettings,
    network: LedgerNetwork,
    transport: JsonRpcTransport | None = None,
) -> ChannelAdapter:
    """Create the adapter for one channel kind."""
    request_timeout_s = settings.channel_timeout_s or settings.overall_timeout_s
    match kind:
        case ChannelKind.BUNDLE:
            return BundleChannel(
                endpoints=settings.bundle_endpoints(),
                network=network,
                fee_lamports=settings.bundle.fee_lamports,
                tip_accounts=settings.bundle.tip_accounts or BUNDLE_TIP_ACCOUNTS,
                transport=transport,
                request_timeout_s=request_timeout_s,
            )
        case ChannelKind.RELAY:
            return RelayChannel(
                endpoint=settings.relay_endpoint(),
                auth_token=settings.relay.auth_token,
                network=network,
                fee_lamports=settings.relay.fee_lamports,
                tip_accounts=settings.relay.tip_accounts or RELAY_TIP_ACCOUNTS,
                transport=transport,
                request_timeout_s=request_timeout_s,
            )
        case ChannelKind.PRIORITY_RPC:
            return PriorityRpcChannel(
                endpoint=settings.priority_endpoint(),
                api_key=settings.priority_rpc.auth_token,
                network=network,
                fee_lamports=settings.priority_rpc.fee_lamports,
                tip_accounts=settings.priority_rpc.tip_accounts or PRIORITY_TIP_ACCOUNTS,
                transport=transport,
                request_timeout_s=request_timeout_s,
            )
    raise ValueError(f"Unsupported channel kind '{kind}'")


def is_channel_enabled(kind: ChannelKind, settings: ExecutorSettings) -> bool:
    match kind:
        case ChannelKind.BUNDLE:
            return settings.is_bundle_enabled()
        case ChannelKind.RELAY:
            return settings.is_relay_enabled()
        case ChannelKind.PRIORITY_RPC:
            return settings.is_priority_rpc_enabled()
    return False


def build_channel_descriptors(
    settings: ExecutorSettings,
    *,
    network: LedgerNetwork,
    transport: JsonRpcTransport | None = None,
) -> list[ChannelDescriptor]:
    """Build one descriptor per known channel kind, in declaration order."""
    descriptors: list[ChannelDescriptor] = []
    for kind in ChannelKind:
        adapter = create_channel_adapter(
            kind, settings=settings, network=network, transport=transport
        )
        descriptors.append(
            ChannelDescriptor(
                name=kind.value,
                adapter=adapter,
                enabled=is_channel_enabled(kind, settings),
                fee_lamports=getattr(adapter, "fee_lamports", 0),
            )
        )
    return descriptors
