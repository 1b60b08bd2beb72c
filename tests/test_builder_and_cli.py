from __future__ import annotations

import asyncio

import pytest

from txrelay import ExecutorBuilder, ExecutorSettings
from txrelay.cli import main
from txrelay.network import JsonRpcLedgerNetwork
from txrelay.payload import Anchor, LedgerTransaction
from txrelay.runtime import RetryPolicy
from txrelay.settings import ChannelSettings
from txrelay.types import FALLBACK_CHANNEL


def run_async(coro):
    return asyncio.run(coro)


class _Network:
    async def latest_anchor(self) -> Anchor:
        return Anchor(value="anchor-1")

    async def send_raw(self, encoded: str, *, skip_preflight: bool = True) -> str:
        return "fallback-sig"

    async def confirm(self, identifier, anchor, *, timeout_s=None):
        return None

    async def health(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "TXRELAY_USE_BUNDLE",
        "TXRELAY_USE_RELAY",
        "TXRELAY_USE_PRIORITY_RPC",
        "TXRELAY_NETWORK",
        "TXRELAY_RPC_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_builder_derives_channels_and_policies_from_settings():
    settings = ExecutorSettings(
        bundle=ChannelSettings(enabled=True, fee_sol=0.0001),
        priority_rpc=ChannelSettings(enabled=True, fee_sol=0.0001, auth_token="key"),
        max_retries=1,
    )

    engine = ExecutorBuilder().settings(settings).network(_Network()).build()

    assert [row.name for row in engine.enabled_channels()] == ["bundle", "priority_rpc"]
    assert engine.select_strategy().kind == "hybrid"
    costs = engine.estimate_cost(LedgerTransaction())
    assert costs == {"bundle": 110_000, "priority_rpc": 105_000, FALLBACK_CHANNEL: 5000}


def test_builder_without_fallback_has_no_direct_path():
    engine = ExecutorBuilder().settings(ExecutorSettings()).without_fallback().build()

    assert engine.enabled_channels() == []
    assert run_async(engine.get_health()) == {}


def test_builder_explicit_policy_and_default_network():
    engine = (
        ExecutorBuilder()
        .settings(ExecutorSettings(network="testnet"))
        .retry_policy(RetryPolicy(max_retries=0))
        .build()
    )

    assert engine.select_strategy().kind == "direct_fallback"
    assert isinstance(engine.network, JsonRpcLedgerNetwork)
    assert engine.network.endpoint == "https://api.testnet.solana.com"


def test_cli_estimate_prints_per_path_costs(capsys):
    assert main(["estimate", "--instructions", "2"]) == 0

    out = capsys.readouterr().out
    assert "direct_fallback_lamports=5000" in out


def test_cli_stats_reflects_environment(monkeypatch, capsys):
    monkeypatch.setenv("TXRELAY_USE_BUNDLE", "1")

    assert main(["--network", "mainnet", "stats"]) == 0

    out = capsys.readouterr().out
    assert "strategy=single_channel(bundle)" in out
    assert "estimated_bundle_lamports=110000" in out


def test_cli_rejects_invalid_configuration(monkeypatch, capsys):
    monkeypatch.setenv("TXRELAY_MAX_RETRIES", "-4")

    assert main(["stats"]) == 2
    assert "Invalid executor settings" in capsys.readouterr().err
