# ballot_ledger/ballot_runtime/attestation.py
from __future__ import annotations

"""
Ciphertext validity verification.

The ledger asks one question of a vote: does the accompanying proof attest
that the ciphertext encodes a legal option? It never learns which one.

Proofs here are Ed25519 attestations issued by a trusted input attester
(the party that saw the plaintext when the voter encrypted it). The signed
message binds:

    domain tag | proposal id | voter identity | sha256(ciphertext)

so a proof cannot be replayed for a different voter, proposal or
ciphertext.

Public surface
--------------
- ProofVerifier        : protocol consumed by BallotLedger.cast_vote
- AttestationVerifier  : Ed25519 verifier for a configured attester key
- RejectAllVerifier    : used when no attester key is configured
- InputAttester        : client-side issuer; refuses out-of-range choices
"""

import logging
from typing import Protocol

from .. import crypto_utils
from .handles import EncryptedValue

log = logging.getLogger(__name__)

ATTESTATION_DOMAIN = b"ballot-ledger/input-attestation/v1"
DEFAULT_OPTION_COUNT = 4


def attestation_message(value: EncryptedValue, *, proposal_id: int, voter: str) -> bytes:
    return b"|".join(
        [
            ATTESTATION_DOMAIN,
            str(int(proposal_id)).encode("ascii"),
            str(voter).encode("utf-8"),
            value.digest(),
        ]
    )


class ProofVerifier(Protocol):
    def verify(self, value: EncryptedValue, proof: bytes, *, proposal_id: int, voter: str) -> bool:
        ...


class AttestationVerifier:
    def __init__(self, attester_public_key_hex: str) -> None:
        # Fail fast on a malformed key instead of rejecting every vote later.
        pk = crypto_utils.hex_to_bytes(attester_public_key_hex)
        if len(pk) != 32:
            raise ValueError("attester public key must be 32 bytes")
        self.public_key_hex = crypto_utils.bytes_to_hex(pk)

    def verify(self, value: EncryptedValue, proof: bytes, *, proposal_id: int, voter: str) -> bool:
        if not isinstance(value, EncryptedValue) or not isinstance(proof, (bytes, bytearray)):
            return False
        message = attestation_message(value, proposal_id=proposal_id, voter=voter)
        return crypto_utils.ed25519_verify(self.public_key_hex, message, bytes(proof))


class RejectAllVerifier:
    def verify(self, value: EncryptedValue, proof: bytes, *, proposal_id: int, voter: str) -> bool:
        log.debug("no attester configured; rejecting vote on proposal %s", proposal_id)
        return False


class InputAttester:
    """
    Issues validity proofs for sealed ballots.

    Lives with the voter-side tooling, never inside the ledger. It sees the
    plaintext choice, checks the legal range, and signs the binding message.
    """

    def __init__(self, secret_key_hex: str, option_count: int = DEFAULT_OPTION_COUNT) -> None:
        self._secret_key_hex = secret_key_hex
        self.public_key_hex = crypto_utils.ed25519_public_key(secret_key_hex)
        self.option_count = int(option_count)

    @classmethod
    def generate(cls, option_count: int = DEFAULT_OPTION_COUNT) -> "InputAttester":
        sk_hex, _ = crypto_utils.ed25519_generate_keypair()
        return cls(sk_hex, option_count=option_count)

    def verifier(self) -> AttestationVerifier:
        return AttestationVerifier(self.public_key_hex)

    def attest(self, value: EncryptedValue, choice: int, *, proposal_id: int, voter: str) -> bytes:
        if isinstance(choice, bool) or not isinstance(choice, int):
            raise ValueError("choice must be an integer option index")
        if not 0 <= choice < self.option_count:
            raise ValueError(f"choice must be in [0, {self.option_count})")
        message = attestation_message(value, proposal_id=proposal_id, voter=voter)
        return crypto_utils.ed25519_sign(self._secret_key_hex, message)
