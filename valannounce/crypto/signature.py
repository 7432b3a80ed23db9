"""
Ethereum-style secp256k1 signatures over 256-bit digests.

Wire layout is the usual 65 bytes: r (32, big-endian) || s (32) || v (1).
Validity means the key recovered from (digest, r, s, v) hashes to the claimed
validator address (last 20 bytes of keccak over the uncompressed X || Y).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Union

from ecdsa import SECP256k1, SigningKey
from ecdsa import ellipticcurve, numbertheory
from ecdsa.util import sigencode_strings_canonize

from valannounce.crypto.digest import digest_bytes, keccak256

SIGNATURE_LENGTH = 65

_CURVE = SECP256k1
_CURVE_ORDER = SECP256k1.order


@dataclass(frozen=True)
class EthSignature:
    r: int
    s: int
    v: int

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])


def parse_signature(raw: bytes) -> EthSignature:
    if len(raw) != SIGNATURE_LENGTH:
        raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return EthSignature(
        r=int.from_bytes(raw[0:32], "big"),
        s=int.from_bytes(raw[32:64], "big"),
        v=raw[64],
    )


def recovery_id(v: int) -> int:
    """Map v (27/28, or raw 0/1) to the parity of R's y coordinate."""
    if v in (27, 28):
        return v - 27
    if v in (0, 1):
        return v
    raise ValueError(f"invalid recovery byte v={v}")


def address_from_point(x: int, y: int) -> int:
    return int.from_bytes(keccak256(x.to_bytes(32, "big") + y.to_bytes(32, "big"))[-20:], "big")


def recover_address(digest: int, signature: EthSignature) -> int:
    """
    Recover the signer address.

    Q = r^-1 * (s*R - digest*G), where R is the curve point with x = r and
    the y parity selected by v.

    Raises:
        ValueError: on out-of-range r/s, an invalid v, or a recovered key at
            infinity
        numbertheory.Error: when r is not the x coordinate of a curve point
    """
    n = _CURVE_ORDER
    r, s = signature.r, signature.s
    if not (1 <= r < n and 1 <= s < n):
        raise ValueError("signature r/s out of range")
    rec_id = recovery_id(signature.v)

    curve = _CURVE.curve
    p = curve.p()
    alpha = (pow(r, 3, p) + curve.a() * r + curve.b()) % p
    beta = numbertheory.square_root_mod_prime(alpha, p)
    y = beta if beta % 2 == rec_id else p - beta
    point_r = ellipticcurve.PointJacobi(curve, r, y, 1, n)

    q = numbertheory.inverse_mod(r, n) * (s * point_r + (-digest % n) * _CURVE.generator)
    if q == ellipticcurve.INFINITY:
        raise ValueError("recovered public key is the point at infinity")
    return address_from_point(q.x(), q.y())


def is_eth_signature_valid(digest: int, signature: bytes, validator: int) -> bool:
    """True iff `signature` over `digest` was produced by `validator`'s key.

    Never raises: a malformed layout and a different signer are the same
    outcome for callers.
    """
    try:
        parsed = parse_signature(signature)
        return recover_address(digest, parsed) == validator
    except (ValueError, numbertheory.Error):
        return False


PrivateKey = Union[bytes, int, SigningKey]


def _signing_key(private_key: PrivateKey) -> SigningKey:
    if isinstance(private_key, SigningKey):
        return private_key
    if isinstance(private_key, int):
        private_key = private_key.to_bytes(32, "big")
    return SigningKey.from_string(private_key, curve=SECP256k1)


def private_key_from_hex(hex_key: str) -> SigningKey:
    raw = hex_key.strip()
    if raw.lower().startswith("0x"):
        raw = raw[2:]
    key = bytes.fromhex(raw)
    if len(key) != 32:
        raise ValueError(f"private key must be 32 bytes, got {len(key)}")
    return _signing_key(key)


def address_from_private_key(private_key: PrivateKey) -> int:
    vk = _signing_key(private_key).get_verifying_key()
    # to_string() is the raw 64-byte X || Y encoding.
    return int.from_bytes(keccak256(vk.to_string())[-20:], "big")


def sign_digest(private_key: PrivateKey, digest: int) -> bytes:
    """
    Sign a 256-bit digest directly (RFC 6979 nonce, low-s), returning the
    65-byte r || s || v layout with v in {27, 28}.
    """
    sk = _signing_key(private_key)
    r_raw, s_raw = sk.sign_digest_deterministic(
        digest_bytes(digest),
        hashfunc=hashlib.sha256,
        sigencode=sigencode_strings_canonize,
    )
    r = int.from_bytes(r_raw, "big")
    s = int.from_bytes(s_raw, "big")
    signer = address_from_private_key(sk)
    for v in (27, 28):
        sig = EthSignature(r=r, s=s, v=v)
        if recover_address(digest, sig) == signer:
            return sig.to_bytes()
    raise RuntimeError("unable to determine recovery id for signature")
