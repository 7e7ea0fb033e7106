"""
Fingerprint functions and key material for the ledger.

Fingerprints give transactions and blocks a stable identity and chain blocks
together. The default scheme is a non-cryptographic 32-bit rolling hash and
must never be relied on for authentication; the keccak scheme can be swapped
in through configuration without touching the chain algorithm.
"""
from typing import Any, Callable

import msgpack
import nacl.encoding
import nacl.signing
from Crypto.Hash import keccak

SIMPLE_SCHEME = "simple"
KECCAK_SCHEME = "keccak"

Hasher = Callable[[Any], str]


def canonical_bytes(data: Any) -> bytes:
    """Returns the canonical byte representation of a payload."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode('utf-8')
    return msgpack.packb(data, use_bin_type=True)


def simple_hash(data: bytes) -> str:
    """
    32-bit rolling hash (h * 31 + byte) with signed wrap-around.
    Returns the absolute value as lowercase hex.
    """
    h = 0
    for byte in data:
        h = (h * 31 + byte) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), 'x')


def keccak_hash(data: bytes) -> str:
    """Keccak-256 hex digest."""
    return keccak.new(digest_bits=256, data=data).hexdigest()


_SCHEMES = {
    SIMPLE_SCHEME: simple_hash,
    KECCAK_SCHEME: keccak_hash,
}


def fingerprint(data: Any, scheme: str = SIMPLE_SCHEME) -> str:
    """Deterministic fingerprint of a string, bytes or structured payload."""
    return get_hasher(scheme)(data)


def get_hasher(scheme: str = SIMPLE_SCHEME) -> Hasher:
    """Returns a single-argument fingerprint function for the given scheme."""
    try:
        digest = _SCHEMES[scheme]
    except KeyError:
        raise ValueError(f"Unknown fingerprint scheme: {scheme}") from None

    def hasher(data: Any) -> str:
        return digest(canonical_bytes(data))

    hasher.scheme = scheme
    return hasher


def generate_secret() -> str:
    """Generates a fresh Ed25519 seed and returns it hex encoded."""
    signing_key = nacl.signing.SigningKey.generate()
    return signing_key.encode(encoder=nacl.encoding.HexEncoder).decode('ascii')


default_hasher = get_hasher(SIMPLE_SCHEME)
