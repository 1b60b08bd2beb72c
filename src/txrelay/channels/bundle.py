"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Block-engine bundle channel: a tip transaction and the main transaction are
submitted together to every configured block-engine endpoint.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ..errors import ChannelSubmissionError
from ..payload import BASE_NETWORK_FEE_LAMPORTS, LedgerTransaction
from ..types import Signer
from .base import BaseChannel
from .contracts import ChannelKind

logger = logging.getLogger("txrelay.channels.bundle")


class BundleChannel(BaseChannel):
    kind = ChannelKind.BUNDLE
    label = "Bundle"

    def __init__(self, *, endpoints: Sequence[str], **kwargs) -> None:
        super().__init__(**kwargs)
        if not endpoints:
            raise ValueError("BundleChannel requires at least one endpoint")
        self._endpoints = tuple(endpoints)

    async def _submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float,
    ) -> str:
        payer = signers[0].public_key
        anchor = await self._network.latest_anchor()

        tip = LedgerTransaction(instructions=[self._tip_instruction(payer)])
        tip.prepare(anchor=anchor, fee_payer=payer)
        tip.sign(signers[0])

        payload.prepare(anchor=anchor, fee_payer=payer)
        payload.sign(*signers)

        bundle = [tip.encode("base64"), payload.encode("base64")]
        accepted, errors = await self._send_bundle(bundle, timeout_s=timeout_s)
        if not accepted:
            raise ChannelSubmissionError(
                f"All bundle endpoints failed. Errors: {', '.join(errors)}",
                channel=self.name,
            )
        logger.info("Bundle accepted by %d/%d endpoints", accepted, len(self._endpoints))
        return await self._confirm(payload, timeout_s=timeout_s)

    async def _send_bundle(
        self, bundle: list[str], *, timeout_s: float
    ) -> tuple[int, list[str]]:
        rows = await asyncio.gather(
            *(
                self._transport.call(
                    endpoint,
                    method="sendBundle",
                    params=[bundle, {"encoding": "base64"}],
                    timeout_s=timeout_s,
                )
                for endpoint in self._endpoints
            ),
            return_exceptions=True,
        )
        accepted = 0
        errors: list[str] = []
        for endpoint, row in zip(self._endpoints, rows):
            if isinstance(row, BaseException):
                logger.warning("Bundle endpoint %s failed: %s", endpoint, row)
                errors.append(str(row))
            else:
                accepted += 1
        return accepted, errors

    async def health_check(self, *, timeout_s: float) -> bool:
        rows = await asyncio.gather(
            *(
                self._transport.call(
                    endpoint,
                    method="getInflightBundleStatuses",
                    params=[[]],
                    timeout_s=timeout_s,
                )
                for endpoint in self._endpoints
            ),
            return_exceptions=True,
        )
        healthy = sum(1 for row in rows if not isinstance(row, BaseException))
        logger.info("Bundle health check: %d/%d endpoints healthy", healthy, len(self._endpoints))
        return healthy > 0

    def estimate_cost(self, payload: LedgerTransaction) -> int:
        # The tip travels in its own transaction, which pays its own base fee.
        return 2 * BASE_NETWORK_FEE_LAMPORTS + self.fee_lamports
