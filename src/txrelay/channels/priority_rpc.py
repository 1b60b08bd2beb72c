"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Priority RPC channel: keyed ``sendTransaction`` endpoint paid by a tip
transfer appended to the transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..errors import ChannelSubmissionError
from ..payload import (
    BASE_NETWORK_FEE_LAMPORTS,
    INSTRUCTION_COST_LAMPORTS,
    LedgerTransaction,
)
from ..types import Signer
from .base import BaseChannel
from .contracts import ChannelKind

logger = logging.getLogger("txrelay.channels.priority_rpc")


class PriorityRpcChannel(BaseChannel):
    kind = ChannelKind.PRIORITY_RPC
    label = "Priority RPC"

    def __init__(self, *, endpoint: str, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._endpoint = endpoint
        self._api_key = api_key

    @property
    def _url(self) -> str:
        return f"{self._endpoint}{self._api_key}"

    async def _submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float,
    ) -> str:
        if not self._api_key:
            raise ChannelSubmissionError("Priority RPC API key not configured", channel=self.name)
        payer = signers[0].public_key

        if self.fee_lamports > 0:
            payload.add(self._tip_instruction(payer))
        anchor = await self._network.latest_anchor()
        payload.prepare(anchor=anchor, fee_payer=payer)
        payload.sign(*signers)

        result = await self._transport.call(
            self._url,
            method="sendTransaction",
            params=[
                payload.encode("base64"),
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": "confirmed",
                },
            ],
            timeout_s=timeout_s,
        )
        if not isinstance(result, str) or not result:
            raise ChannelSubmissionError("Priority RPC submission failed", channel=self.name)
        return result

    async def health_check(self, *, timeout_s: float) -> bool:
        if not self._api_key:
            logger.warning("Priority RPC API key not configured")
            return False
        try:
            await self._transport.call(self._url, method="getHealth", timeout_s=timeout_s)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Priority RPC health check failed: %s", exc)
            return False
        return True

    def estimate_cost(self, payload: LedgerTransaction) -> int:
        return (
            BASE_NETWORK_FEE_LAMPORTS
            + INSTRUCTION_COST_LAMPORTS * payload.instruction_count
            + self.fee_lamports
        )
