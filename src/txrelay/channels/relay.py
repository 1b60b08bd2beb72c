"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Authenticated relay channel with an in-transaction fee transfer.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from ..errors import ChannelSubmissionError
from ..payload import BASE_NETWORK_FEE_LAMPORTS, LedgerTransaction
from ..types import Signer
from .base import BaseChannel
from .contracts import ChannelKind

logger = logging.getLogger("txrelay.channels.relay")


class RelayChannel(BaseChannel):
    kind = ChannelKind.RELAY
    label = "Relay"

    def __init__(self, *, endpoint: str, auth_token: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._endpoint = endpoint.rstrip("/")
        self._auth_token = auth_token

    async def _submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float,
    ) -> str:
        if not self._auth_token:
            raise ChannelSubmissionError("Relay auth header not configured", channel=self.name)
        payer = signers[0].public_key
        anchor = await self._network.latest_anchor()

        if self.fee_lamports > 0:
            payload.add(self._tip_instruction(payer))
        payload.prepare(anchor=anchor, fee_payer=payer)
        payload.sign(*signers)

        response = await self._transport.post_json(
            f"{self._endpoint}/api/v2/submit",
            {
                "transaction": {"content": payload.encode("base64")},
                "skipPreFlight": False,
            },
            headers={"Authorization": self._auth_token},
            timeout_s=timeout_s,
        )
        identifier = response.get("signature") if isinstance(response, dict) else None
        if not isinstance(identifier, str) or not identifier:
            reason = response.get("message") if isinstance(response, dict) else None
            raise ChannelSubmissionError(
                f"Relay rejected submission: {reason or 'no signature returned'}",
                channel=self.name,
            )
        if identifier != payload.identifier:
            logger.warning(
                "Relay reported identifier %s differs from signed payload %s",
                identifier,
                payload.identifier,
            )
        error = await self._network.confirm(identifier, anchor, timeout_s=timeout_s)
        if error:
            raise ChannelSubmissionError(error, channel=self.name)
        return identifier

    async def health_check(self, *, timeout_s: float) -> bool:
        started = time.monotonic()
        try:
            await self._network.latest_anchor()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Relay health check failed: %s", exc)
            return False
        healthy = (time.monotonic() - started) < timeout_s
        logger.info("Relay health check: %s", "HEALTHY" if healthy else "UNHEALTHY")
        return healthy

    def estimate_cost(self, payload: LedgerTransaction) -> int:
        return BASE_NETWORK_FEE_LAMPORTS + self.fee_lamports
