# ballot_ledger/ballot_runtime/handles.py
from __future__ import annotations

"""
Opaque encrypted-vote handles.

The ledger stores and counts EncryptedValue objects but never interprets
them. The wrapper deliberately offers no content affordances (no str(),
no iteration, no indexing, no len()); the only ways out are `to_bytes()`
for the decryption tooling and `digest()` for proof binding.
"""

from ballot_ledger import crypto_utils


class EncryptedValue:
    __slots__ = ("_blob",)

    def __init__(self, blob: bytes) -> None:
        if not isinstance(blob, (bytes, bytearray)):
            raise TypeError("EncryptedValue requires bytes")
        if not blob:
            raise ValueError("EncryptedValue requires a non-empty ciphertext")
        object.__setattr__(self, "_blob", bytes(blob))

    def __setattr__(self, name, value):
        raise AttributeError("EncryptedValue is immutable")

    def to_bytes(self) -> bytes:
        return self._blob

    def digest(self) -> bytes:
        """SHA-256 of the ciphertext; what proofs and logs refer to."""
        return crypto_utils.sha256(self._blob)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncryptedValue):
            return NotImplemented
        return self._blob == other._blob

    def __hash__(self) -> int:
        return hash(self._blob)

    def __repr__(self) -> str:
        return f"EncryptedValue(<{len(self._blob)} bytes>)"

    def __str__(self):
        raise TypeError("EncryptedValue does not support str(); use to_bytes()")

    def __iter__(self):
        raise TypeError("EncryptedValue does not support iteration")

    def __getitem__(self, key):
        raise TypeError("EncryptedValue does not support indexing")
