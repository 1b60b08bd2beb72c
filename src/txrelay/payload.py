"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Ledger transaction payload model.

Payload construction (account creation, mint instructions, metadata) lives
with the caller. This module only carries what the execution engine needs:
cloning, anchor refresh, fee instructions, signing and wire encoding.
"""

from __future__ import annotations

import base64
import json
import struct
from collections.abc import Iterable
from dataclasses import dataclass, field

from .types import Signer

LAMPORTS_PER_SOL = 1_000_000_000
BASE_NETWORK_FEE_LAMPORTS = 5000
INSTRUCTION_COST_LAMPORTS = 1000
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

_SYSTEM_TRANSFER_INDEX = 2


@dataclass(frozen=True, slots=True)
class Instruction:
    """One program invocation inside a transaction."""

    program_id: str
    accounts: tuple[str, ...] = ()
    data: bytes = b""


@dataclass(frozen=True, slots=True)
class Anchor:
    """Recent sequencing reference the network requires for acceptance."""

    value: str
    last_valid_height: int | None = None


@dataclass(slots=True)
class LedgerTransaction:
    """
    Signable unit of work submitted to the ledger.

    Any change to the message (new instructions, anchor, fee payer) drops
    existing signatures, so a signed transaction always matches its bytes.
    """

    instructions: list[Instruction] = field(default_factory=list)
    fee_payer: str | None = None
    anchor: Anchor | None = None
    signatures: dict[str, str] = field(default_factory=dict)

    def clone(self) -> "LedgerTransaction":
        """Return an independent copy safe to mutate."""
        return LedgerTransaction(
            instructions=list(self.instructions),
            fee_payer=self.fee_payer,
            anchor=self.anchor,
            signatures=dict(self.signatures),
        )

    @property
    def identifier(self) -> str | None:
        """Fee payer signature, assigned when the transaction is signed."""
        if self.fee_payer is None:
            return None
        return self.signatures.get(self.fee_payer)

    @property
    def instruction_count(self) -> int:
        return len(self.instructions)

    def add(self, *instructions: Instruction) -> None:
        self.instructions.extend(instructions)
        self.signatures.clear()

    def prepare(self, *, anchor: Anchor, fee_payer: str) -> None:
        """Bind a fresh anchor and fee payer ahead of signing."""
        self.anchor = anchor
        self.fee_payer = fee_payer
        self.signatures.clear()

    def message_bytes(self) -> bytes:
        """Canonical message bytes covered by signatures."""
        body = {
            "anchor": self.anchor.value if self.anchor else None,
            "fee_payer": self.fee_payer,
            "instructions": [
                {
                    "program_id": ix.program_id,
                    "accounts": list(ix.accounts),
                    "data": base64.b64encode(ix.data).decode("ascii"),
                }
                for ix in self.instructions
            ],
        }
        return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def sign(self, *signers: Signer) -> None:
        if not signers:
            raise ValueError("At least one signer is required")
        if self.fee_payer is None:
            self.fee_payer = signers[0].public_key
        message = self.message_bytes()
        for signer in signers:
            self.signatures[signer.public_key] = signer.sign(message).hex()

    def serialize(self) -> bytes:
        if self.identifier is None:
            raise ValueError("Transaction must be signed by its fee payer before serialization")
        envelope = {
            "message": base64.b64encode(self.message_bytes()).decode("ascii"),
            "signatures": self.signatures,
        }
        return json.dumps(envelope, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def encode(self, encoding: str = "base64") -> str:
        raw = self.serialize()
        if encoding == "base64":
            return base64.b64encode(raw).decode("ascii")
        if encoding == "hex":
            return raw.hex()
        raise ValueError(f"Unsupported encoding '{encoding}'")


def transfer_instruction(source: str, destination: str, lamports: int) -> Instruction:
    """Build a system transfer, the instruction used for channel tips."""
    if lamports < 0:
        raise ValueError("lamports must be >= 0")
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(source, destination),
        data=struct.pack("<IQ", _SYSTEM_TRANSFER_INDEX, lamports),
    )


def sol_to_lamports(amount_sol: float) -> int:
    return int(round(amount_sol * LAMPORTS_PER_SOL))


def build_transaction(
    instructions: Iterable[Instruction], *, fee_payer: str | None = None
) -> LedgerTransaction:
    return LedgerTransaction(instructions=list(instructions), fee_payer=fee_payer)
