from __future__ import annotations

import asyncio
import json

import pytest

from txrelay.errors import ChannelTransportError
from txrelay.network import JsonRpcLedgerNetwork
from txrelay.payload import Anchor


def run_async(coro):
    return asyncio.run(coro)


def _rpc_post(results: dict):
    calls: list[dict] = []

    def post(url, payload, headers, timeout_s):
        _ = url, headers, timeout_s
        body = json.loads(payload)
        calls.append(body)
        value = results[body["method"]]
        if isinstance(value, dict) and "error" in value:
            envelope = {"jsonrpc": "2.0", "id": body["id"], "error": value["error"]}
        else:
            envelope = {"jsonrpc": "2.0", "id": body["id"], "result": value}
        return json.dumps(envelope).encode("utf-8")

    return post, calls


def test_latest_anchor_parses_blockhash_and_height():
    post, calls = _rpc_post(
        {"getLatestBlockhash": {"context": {"slot": 1}, "value": {"blockhash": "abc", "lastValidBlockHeight": 42}}}
    )
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post)

    anchor = run_async(network.latest_anchor())

    assert anchor == Anchor(value="abc", last_valid_height=42)
    assert calls[0]["params"] == [{"commitment": "confirmed"}]


def test_send_raw_skips_preflight_and_returns_identifier():
    post, calls = _rpc_post({"sendTransaction": "sig-1"})
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post)

    identifier = run_async(network.send_raw("ZW5jb2RlZA=="))

    assert identifier == "sig-1"
    options = calls[0]["params"][1]
    assert options["skipPreflight"] is True
    assert options["encoding"] == "base64"


def test_send_raw_surfaces_rpc_errors():
    post, _ = _rpc_post({"sendTransaction": {"error": {"code": -32002, "message": "Blockhash not found"}}})
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post)

    with pytest.raises(ChannelTransportError, match="Blockhash not found"):
        run_async(network.send_raw("ZW5jb2RlZA=="))


def test_confirm_succeeds_once_commitment_is_reached():
    post, _ = _rpc_post(
        {"getSignatureStatuses": {"value": [{"err": None, "confirmationStatus": "finalized"}]}}
    )
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post)

    assert run_async(network.confirm("sig-1", None)) is None


def test_confirm_reports_on_chain_error():
    post, _ = _rpc_post(
        {"getSignatureStatuses": {"value": [{"err": {"InstructionError": [0, "Custom"]}}]}}
    )
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post)

    error = run_async(network.confirm("sig-1", None))

    assert error is not None
    assert error.startswith("Transaction failed:")


def test_confirm_stops_when_anchor_expires():
    post, _ = _rpc_post({"getSignatureStatuses": {"value": [None]}, "getBlockHeight": 150})
    network = JsonRpcLedgerNetwork("https://rpc.example", post=post, poll_interval_s=0.01)

    error = run_async(network.confirm("sig-1", Anchor(value="abc", last_valid_height=100)))

    assert error == "Anchor expired before confirmation"


def test_health_maps_rpc_answer_to_bool():
    healthy, _ = _rpc_post({"getHealth": "ok"})
    unhealthy, _ = _rpc_post({"getHealth": {"error": {"code": -32005, "message": "behind"}}})

    assert run_async(JsonRpcLedgerNetwork("https://rpc.example", post=healthy).health()) is True
    assert run_async(JsonRpcLedgerNetwork("https://rpc.example", post=unhealthy).health()) is False


def test_empty_endpoint_is_rejected():
    with pytest.raises(ValueError):
        JsonRpcLedgerNetwork("")
