from __future__ import annotations

from txrelay.channels import ChannelDescriptor
from txrelay.runtime import select_strategy
from txrelay.types import Strategy


class _Adapter:
    pass


def _row(name: str, *, enabled: bool = True) -> ChannelDescriptor:
    return ChannelDescriptor(name=name, adapter=_Adapter(), enabled=enabled)


def test_no_enabled_channels_selects_direct_fallback():
    assert select_strategy([]) == Strategy.direct_fallback()
    assert select_strategy([_row("bundle", enabled=False)]).kind == "direct_fallback"


def test_single_enabled_channel_selects_that_channel():
    strategy = select_strategy([_row("relay"), _row("bundle", enabled=False)])

    assert strategy.kind == "single_channel"
    assert strategy.channels == ("relay",)
    assert str(strategy) == "single_channel(relay)"


def test_two_or_more_channels_select_hybrid_over_all_of_them():
    strategy = select_strategy([_row("relay"), _row("bundle"), _row("priority_rpc")])

    assert strategy.kind == "hybrid"
    assert strategy.channels == ("bundle", "priority_rpc", "relay")


def test_selection_depends_on_membership_not_order():
    forward = select_strategy([_row("a"), _row("b")])
    backward = select_strategy([_row("b"), _row("a")])

    assert forward == backward
