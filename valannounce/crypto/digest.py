"""
Announcement digest construction.

The digest a validator signs binds its storage location to one messaging
domain and one mailbox deployment:

    domain_hash = keccak(local_domain || mailbox_address || DOMAIN_TAG)
    digest      = keccak(domain_hash || word_0 || word_1 || ...)

Integer operands use the minimal big-endian encoding of `word_bytes`. The
domain hash is a full 256-bit value and is always laid out as 32 bytes.

Security/Determinism Notes:
- All functions are pure; equal inputs always produce equal digests.
- Digests are presented big-endian (the conventional keccak presentation that
  off-chain Ethereum tooling signs over).
"""

from __future__ import annotations

from typing import Sequence

from Crypto.Hash import keccak

# Domain separation tag for the announcement protocol (22 bytes).
DOMAIN_TAG = b"HYPERLANE_ANNOUNCEMENT"

WORD_BYTES = 32


def keccak256(data: bytes) -> bytes:
    """
    Keccak-256 (original padding, as used by Ethereum; not NIST SHA3-256).

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak.new(digest_bits=256, data=data).digest()


def word_bytes(value: int) -> bytes:
    """
    Minimal big-endian encoding of an unsigned word.

    Uses the fewest bytes (1-32) that hold the value without a leading zero
    byte; zero encodes as a single zero byte.

    Raises:
        ValueError: if the value is negative or does not fit in 256 bits
    """
    if value < 0 or value >= 2 ** (8 * WORD_BYTES):
        raise ValueError(f"value does not fit in an unsigned 256-bit word: {value}")
    if value == 0:
        return b"\x00"
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def digest_bytes(value: int) -> bytes:
    """Lay a 256-bit value out as exactly 32 big-endian bytes."""
    return value.to_bytes(WORD_BYTES, "big")


def domain_hash(local_domain: int, mailbox_address: int) -> int:
    data = word_bytes(local_domain) + word_bytes(mailbox_address) + DOMAIN_TAG
    return int.from_bytes(keccak256(data), "big")


def to_eth_signature(hash_value: int) -> int:
    """
    Wrap a raw 256-bit hash into the value handed to signature verification.

    The hash is signed directly: no `\\x19Ethereum Signed Message` prefix is
    applied on top of the domain/location hashing.
    """
    return int.from_bytes(digest_bytes(hash_value), "big")


def announcement_digest(
    local_domain: int,
    mailbox_address: int,
    storage_location: Sequence[int],
) -> int:
    """Digest a validator signs to announce `storage_location`."""
    data = bytearray(digest_bytes(domain_hash(local_domain, mailbox_address)))
    for word in storage_location:
        data += word_bytes(word)
    return to_eth_signature(int.from_bytes(keccak256(bytes(data)), "big"))
