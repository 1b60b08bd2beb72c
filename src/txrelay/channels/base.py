"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared submit boundary for channel adapters.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence

from ..errors import ChannelSubmissionError
from ..network import LedgerNetwork
from ..payload import Instruction, LedgerTransaction, transfer_instruction
from ..transport import JsonRpcTransport
from ..types import Signer, SubmissionOutcome
from .contracts import ChannelKind

logger = logging.getLogger("txrelay.channels")


class BaseChannel:
    """
    Base adapter that turns internal failures into submission outcomes.

    Subclasses implement ``_submit`` and raise :class:`ChannelSubmissionError`
    (or anything else) on failure; ``submit`` never lets a fault escape.
    """

    kind: ChannelKind
    label: str = "channel"

    def __init__(
        self,
        *,
        network: LedgerNetwork,
        fee_lamports: int,
        tip_accounts: Sequence[str] = (),
        transport: JsonRpcTransport | None = None,
        request_timeout_s: float = 10.0,
        rng: random.Random | None = None,
    ) -> None:
        self._network = network
        self.fee_lamports = fee_lamports
        self._tip_accounts = tuple(tip_accounts)
        self._transport = transport or JsonRpcTransport(label=self.kind.value)
        self._request_timeout_s = request_timeout_s
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return self.kind.value

    async def submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float | None = None,
    ) -> SubmissionOutcome:
        started = time.monotonic()
        try:
            if not signers:
                raise ChannelSubmissionError("No signers supplied", channel=self.name)
            identifier = await self._submit(
                payload, signers, timeout_s=timeout_s or self._request_timeout_s
            )
        except ChannelSubmissionError as exc:
            logger.warning("%s submission failed: %s", self.label, exc)
            return SubmissionOutcome.failed(
                self.name,
                f"{self.label} execution failed: {exc}",
                elapsed_ms=_elapsed_ms(started),
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s submission raised %s: %s", self.label, type(exc).__name__, exc)
            return SubmissionOutcome.failed(
                self.name,
                f"{self.label} execution failed: {exc or type(exc).__name__}",
                elapsed_ms=_elapsed_ms(started),
            )
        logger.info("%s accepted transaction %s", self.label, identifier)
        return SubmissionOutcome(
            channel_name=self.name,
            success=True,
            identifier=identifier,
            elapsed_ms=_elapsed_ms(started),
        )

    async def _submit(
        self,
        payload: LedgerTransaction,
        signers: Sequence[Signer],
        *,
        timeout_s: float,
    ) -> str:
        raise NotImplementedError

    def _pick_tip_account(self) -> str:
        if not self._tip_accounts:
            raise ChannelSubmissionError("No tip accounts configured", channel=self.name)
        return self._rng.choice(self._tip_accounts)

    def _tip_instruction(self, payer: str) -> Instruction:
        return transfer_instruction(payer, self._pick_tip_account(), self.fee_lamports)

    async def _confirm(self, payload: LedgerTransaction, *, timeout_s: float) -> str:
        identifier = payload.identifier
        if identifier is None:
            raise ChannelSubmissionError("Payload was not signed by its fee payer", channel=self.name)
        error = await self._network.confirm(identifier, payload.anchor, timeout_s=timeout_s)
        if error:
            raise ChannelSubmissionError(error, channel=self.name)
        return identifier


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000.0
