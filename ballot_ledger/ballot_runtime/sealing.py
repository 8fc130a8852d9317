# ballot_ledger/ballot_runtime/sealing.py
from __future__ import annotations

"""
Creator-side decryption / aggregation oracle.

Ballots are sealed with AES-GCM under a per-proposal tally key held by the
creator's tooling. The ledger only ever sees the resulting EncryptedValue
handles; after the deadline the creator fetches them with
`BallotLedger.get_encrypted_votes`, opens them here, and submits the counts
to `BallotLedger.finalize_results`.

Token layout: nonce(12) || AES-GCM(choice as 1 byte) || tag(16), with the
proposal id as associated data so a ballot sealed for one proposal cannot
be opened as another's.
"""

from typing import Iterable, List, Optional

from .. import crypto_utils
from .handles import EncryptedValue

DEFAULT_OPTION_COUNT = 4


class BallotSealer:
    def __init__(self, key: bytes, proposal_id: int, option_count: int = DEFAULT_OPTION_COUNT) -> None:
        if len(key) not in (16, 24, 32):
            raise ValueError("tally key must be 16, 24, or 32 bytes")
        self._key = bytes(key)
        self.proposal_id = int(proposal_id)
        self.option_count = int(option_count)

    @classmethod
    def generate(cls, proposal_id: int, option_count: int = DEFAULT_OPTION_COUNT) -> "BallotSealer":
        return cls(crypto_utils.generate_symmetric_key(32), proposal_id, option_count)

    @property
    def key(self) -> bytes:
        return self._key

    def _aad(self) -> bytes:
        return b"ballot-ledger/sealed-ballot/v1|" + str(self.proposal_id).encode("ascii")

    def seal(self, choice: int) -> EncryptedValue:
        if isinstance(choice, bool) or not isinstance(choice, int):
            raise ValueError("choice must be an integer option index")
        if not 0 <= choice < self.option_count:
            raise ValueError(f"choice must be in [0, {self.option_count})")
        token = crypto_utils.aesgcm_encrypt(self._key, bytes([choice]), self._aad())
        return EncryptedValue(token)

    def open(self, value: EncryptedValue) -> int:
        plaintext = crypto_utils.aesgcm_decrypt(self._key, value.to_bytes(), self._aad())
        if len(plaintext) != 1 or plaintext[0] >= self.option_count:
            raise ValueError("sealed ballot does not encode a legal option")
        return plaintext[0]

    def tally(self, values: Iterable[EncryptedValue], option_count: Optional[int] = None) -> List[int]:
        """Open every handle and count choices per option."""
        n = int(option_count or self.option_count)
        counts = [0] * n
        for value in values:
            choice = self.open(value)
            if choice >= n:
                raise ValueError("sealed ballot does not encode a legal option")
            counts[choice] += 1
        return counts
