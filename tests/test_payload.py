from __future__ import annotations

import base64
import hashlib
import json
import struct

import pytest

from txrelay.payload import (
    SYSTEM_PROGRAM_ID,
    Anchor,
    LedgerTransaction,
    build_transaction,
    sol_to_lamports,
    transfer_instruction,
)


class _Signer:
    def __init__(self, key: str) -> None:
        self._key = key

    @property
    def public_key(self) -> str:
        return self._key

    def sign(self, message: bytes) -> bytes:
        return hashlib.sha256(self._key.encode("utf-8") + message).digest()


def test_transfer_instruction_packs_system_transfer():
    ix = transfer_instruction("from", "to", 1_500)

    assert ix.program_id == SYSTEM_PROGRAM_ID
    assert ix.accounts == ("from", "to")
    assert ix.data == struct.pack("<IQ", 2, 1_500)


def test_sol_to_lamports_rounds():
    assert sol_to_lamports(0.0001) == 100_000
    assert sol_to_lamports(0.001) == 1_000_000


def test_clone_is_independent_of_the_original():
    original = build_transaction([transfer_instruction("a", "b", 1)])
    original.sign(_Signer("a"))

    copy = original.clone()
    copy.add(transfer_instruction("a", "c", 2))

    assert original.instruction_count == 1
    assert original.identifier is not None
    assert copy.instruction_count == 2
    assert copy.signatures == {}


def test_signing_sets_identifier_from_fee_payer():
    tx = build_transaction([transfer_instruction("payer", "b", 1)])
    tx.prepare(anchor=Anchor("anchor-1"), fee_payer="payer")
    tx.sign(_Signer("payer"), _Signer("cosigner"))

    assert tx.identifier == tx.signatures["payer"]
    assert set(tx.signatures) == {"payer", "cosigner"}


def test_message_changes_invalidate_signatures():
    tx = build_transaction([transfer_instruction("payer", "b", 1)])
    tx.sign(_Signer("payer"))
    first = tx.identifier

    tx.prepare(anchor=Anchor("anchor-2"), fee_payer="payer")
    assert tx.identifier is None

    tx.sign(_Signer("payer"))
    assert tx.identifier != first


def test_serialize_requires_fee_payer_signature():
    with pytest.raises(ValueError):
        LedgerTransaction().serialize()


def test_encode_wraps_message_and_signatures():
    tx = build_transaction([transfer_instruction("payer", "b", 1)])
    tx.sign(_Signer("payer"))

    envelope = json.loads(base64.b64decode(tx.encode("base64")))

    assert envelope["signatures"] == tx.signatures
    assert base64.b64decode(envelope["message"]) == tx.message_bytes()
    assert bytes.fromhex(tx.encode("hex")) == tx.serialize()
    with pytest.raises(ValueError):
        tx.encode("base58")
