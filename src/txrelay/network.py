"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Generic ledger network client used by the direct fallback path and by
channels that confirm through the public network.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Protocol

from .errors import ChannelTransportError
from .payload import Anchor
from .transport import JsonRpcTransport, PostFn

logger = logging.getLogger("txrelay.network")

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class LedgerNetwork(Protocol):
    """Provider-agnostic network operations consumed by the engine."""

    async def latest_anchor(self) -> Anchor:
        """Fetch a fresh sequencing anchor."""
        ...

    async def send_raw(self, encoded: str, *, skip_preflight: bool = True) -> str:
        """Submit an encoded, signed payload and return its identifier."""
        ...

    async def confirm(
        self, identifier: str, anchor: Anchor | None, *, timeout_s: float | None = None
    ) -> str | None:
        """Wait for confirmation; return an error string or ``None`` on success."""
        ...

    async def health(self) -> bool:
        """Return whether the endpoint currently answers."""
        ...


class JsonRpcLedgerNetwork:
    """JSON-RPC implementation of :class:`LedgerNetwork`."""

    def __init__(
        self,
        endpoint: str,
        *,
        commitment: str = "confirmed",
        request_timeout_s: float = 10.0,
        confirm_timeout_s: float = 30.0,
        poll_interval_s: float = 0.4,
        post: PostFn | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("endpoint must be non-empty")
        self.endpoint = endpoint
        self._commitment = commitment
        self._request_timeout_s = request_timeout_s
        self._confirm_timeout_s = confirm_timeout_s
        self._poll_interval_s = poll_interval_s
        self._rpc = JsonRpcTransport(post=post, label="network")

    async def _call(self, method: str, params: list[Any] | None = None) -> Any:
        return await self._rpc.call(
            self.endpoint,
            method=method,
            params=params,
            timeout_s=self._request_timeout_s,
        )

    async def latest_anchor(self) -> Anchor:
        result = await self._call("getLatestBlockhash", [{"commitment": self._commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, dict) or not isinstance(value.get("blockhash"), str):
            raise ChannelTransportError("Malformed getLatestBlockhash response", channel="network")
        height = value.get("lastValidBlockHeight")
        return Anchor(
            value=value["blockhash"],
            last_valid_height=height if isinstance(height, int) else None,
        )

    async def send_raw(self, encoded: str, *, skip_preflight: bool = True) -> str:
        result = await self._call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "preflightCommitment": self._commitment,
                    "maxRetries": 0,
                },
            ],
        )
        if not isinstance(result, str) or not result:
            raise ChannelTransportError("sendTransaction returned no identifier", channel="network")
        return result

    async def confirm(
        self, identifier: str, anchor: Anchor | None, *, timeout_s: float | None = None
    ) -> str | None:
        deadline = time.monotonic() + (timeout_s or self._confirm_timeout_s)
        wanted = _COMMITMENT_RANK.get(self._commitment, 1)
        while True:
            result = await self._call(
                "getSignatureStatuses",
                [[identifier], {"searchTransactionHistory": False}],
            )
            rows = result.get("value") if isinstance(result, dict) else None
            status = rows[0] if isinstance(rows, list) and rows else None
            if isinstance(status, dict):
                if status.get("err") is not None:
                    return f"Transaction failed: {status['err']}"
                reached = _COMMITMENT_RANK.get(str(status.get("confirmationStatus")), -1)
                if reached >= wanted:
                    return None
            if anchor is not None and anchor.last_valid_height is not None:
                height = await self._call("getBlockHeight", [{"commitment": self._commitment}])
                if isinstance(height, int) and height > anchor.last_valid_height:
                    return "Anchor expired before confirmation"
            if time.monotonic() >= deadline:
                return f"Confirmation timed out for {identifier}"
            await asyncio.sleep(self._poll_interval_s)

    async def health(self) -> bool:
        try:
            result = await self._call("getHealth")
        except ChannelTransportError as exc:
            logger.warning("Network health probe failed: %s", exc)
            return False
        return result == "ok"
