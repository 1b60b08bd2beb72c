"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Strategy selection from the enabled channel set.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..channels.contracts import ChannelDescriptor
from ..types import Strategy


def select_strategy(enabled_channels: Iterable[ChannelDescriptor]) -> Strategy:
    """
    Pick a strategy from the enabled channels only.

    No enabled channel selects the direct fallback, one selects that channel
    alone, two or more race all of them. Disabled descriptors are ignored and
    names are sorted so the result depends on membership, not iteration order.
    """
    names = sorted({row.name for row in enabled_channels if row.enabled})
    if not names:
        return Strategy.direct_fallback()
    if len(names) == 1:
        return Strategy.single_channel(names[0])
    return Strategy.hybrid(names)
