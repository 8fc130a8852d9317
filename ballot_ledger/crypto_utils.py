# ballot_ledger/crypto_utils.py
from __future__ import annotations

"""
Core cryptographic helpers for the ballot ledger tooling.

This module provides:

- Ed25519 helpers (via PyNaCl) used by input attestation
- AES-GCM helpers (via cryptography) used by ballot sealing
- Small hex / base64 codecs shared by the HTTP layer

Notes
-----
* The ledger core never imports this module directly. Only the external
  capabilities (attestation, sealing) and the service surface do.
"""

import base64
import binascii
import hashlib
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

AESGCM_NONCE_BYTES = 12


# ---------------------------------------------------------------------------
# Codecs
# ---------------------------------------------------------------------------


def hex_to_bytes(h: str) -> bytes:
    """Decode hex string to raw bytes, accepting optional 0x prefix."""
    h = h.strip().lower()
    if h.startswith("0x"):
        h = h[2:]
    return binascii.unhexlify(h.encode("ascii"))


def bytes_to_hex(b: bytes) -> str:
    """Encode raw bytes to lowercase hex string."""
    return binascii.hexlify(b).decode("ascii")


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


# ---------------------------------------------------------------------------
# Ed25519 via PyNaCl
# ---------------------------------------------------------------------------


def ed25519_generate_keypair() -> Tuple[str, str]:
    """
    Generate a new Ed25519 signing keypair.

    Returns
    -------
    (sk_hex, pk_hex) : Tuple[str, str]
        Hex-encoded secret key (seed) and public key.
    """
    sk = SigningKey.generate()
    sk_hex = sk.encode(encoder=HexEncoder).decode("ascii")
    pk_hex = sk.verify_key.encode(encoder=HexEncoder).decode("ascii")
    return sk_hex, pk_hex


def ed25519_public_key(secret_key_hex: str) -> str:
    sk = SigningKey(secret_key_hex.encode("ascii"), encoder=HexEncoder)
    return sk.verify_key.encode(encoder=HexEncoder).decode("ascii")


def ed25519_sign(secret_key_hex: str, message: bytes) -> bytes:
    """Sign a message with a hex-encoded Ed25519 secret key; returns raw signature."""
    sk = SigningKey(secret_key_hex.encode("ascii"), encoder=HexEncoder)
    return sk.sign(message).signature


def ed25519_verify(public_key_hex: str, message: bytes, signature: bytes) -> bool:
    """
    Verify an Ed25519 signature.

    Returns True if the signature is valid, False otherwise (including
    malformed keys or signatures).
    """
    try:
        vk = VerifyKey(public_key_hex.encode("ascii"), encoder=HexEncoder)
        vk.verify(message, signature)
        return True
    except BadSignatureError:
        return False
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# AES-GCM
# ---------------------------------------------------------------------------


def generate_symmetric_key(length: int = 32) -> bytes:
    if length not in (16, 24, 32):
        raise ValueError("AES-GCM key length must be 16, 24, or 32 bytes")
    return os.urandom(length)


def aesgcm_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> bytes:
    """Encrypt and return nonce || ciphertext || tag."""
    nonce = os.urandom(AESGCM_NONCE_BYTES)
    return nonce + AESGCM(key).encrypt(nonce, plaintext, aad)


def aesgcm_decrypt(key: bytes, token: bytes, aad: Optional[bytes] = None) -> bytes:
    """
    Decrypt a token produced by aesgcm_encrypt.

    Raises ValueError when the token is truncated or fails authentication.
    """
    if len(token) <= AESGCM_NONCE_BYTES:
        raise ValueError("ciphertext too short")
    nonce, ct = token[:AESGCM_NONCE_BYTES], token[AESGCM_NONCE_BYTES:]
    try:
        return AESGCM(key).decrypt(nonce, ct, aad)
    except InvalidTag as e:
        raise ValueError("ciphertext failed authentication") from e
