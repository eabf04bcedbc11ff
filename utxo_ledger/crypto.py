"""
crypto.py - Signature primitives for spending outputs.

Addresses are raw secp256k1 public keys (the 64-byte uncompressed point without
the 0x04 prefix, as produced by VerifyingKey.to_string()). Signatures are the
raw 64-byte (r, s) encoding over a SHA-256 digest of the message.

verify_signature() never raises: a malformed key or signature is simply an
invalid signature.
"""

from __future__ import annotations
import hashlib
from typing import Optional, Tuple

from ecdsa import (
    SECP256k1, SigningKey, VerifyingKey, BadSignatureError, MalformedPointError
)


# Curve used for every address in the ledger.
DEFAULT_CURVE = SECP256k1


def generate_keypair() -> Tuple[SigningKey, bytes]:
    """
    Create a new signing key and its address.

    Returns:
        (signing_key, address) where address is the raw public key bytes
    """
    signing_key = SigningKey.generate(curve=DEFAULT_CURVE, hashfunc=hashlib.sha256)
    return signing_key, address_of(signing_key)


def address_of(signing_key: SigningKey) -> bytes:
    """Return the address (raw public key bytes) for a signing key."""
    return signing_key.get_verifying_key().to_string()


def sign(signing_key: SigningKey, message: bytes) -> bytes:
    """Sign `message` deterministically (RFC 6979) and return the raw signature."""
    return signing_key.sign_deterministic(message, hashfunc=hashlib.sha256)


def verify_signature(address: bytes, message: bytes, signature: Optional[bytes]) -> bool:
    """
    Check that `signature` over `message` was made by the owner of `address`.

    Args:
        address: Raw public key bytes of the expected signer
        message: Signed payload
        signature: Raw signature bytes (None or empty is never valid)

    Returns:
        True only if the signature verifies
    """
    if not isinstance(signature, (bytes, bytearray)) or not isinstance(address, (bytes, bytearray)):
        return False
    if not signature or not address:
        return False
    try:
        verifying_key = VerifyingKey.from_string(address, curve=DEFAULT_CURVE,
                                                 hashfunc=hashlib.sha256)
    except (MalformedPointError, ValueError):
        return False
    try:
        return verifying_key.verify(signature, message, hashfunc=hashlib.sha256)
    except (BadSignatureError, ValueError):
        return False
