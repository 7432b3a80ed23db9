"""
Shared value types for validator announcements.

Validators are Ethereum-style 160-bit account ids carried as plain ints.
Storage locations are sequences of unsigned 256-bit words; a URI is packed
into them as 31-byte short-string chunks (the usual felt encoding), so relayers
can turn the words back into text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

# Reserved identity: registry head and "no next" marker. Never a validator.
SENTINEL_VALIDATOR = 0

MAX_VALIDATOR = 2**160
MAX_WORD = 2**256

# Bytes packed per storage-location word by `encode_storage_location`.
SHORT_STRING_BYTES = 31

StorageLocation = List[int]


@dataclass(frozen=True)
class Announcement:
    """Emitted on every accepted announcement."""

    validator: int
    storage_location: Tuple[int, ...]


def _parse_int(value: Union[int, str], *, what: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{what} must be an int or hex string, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if raw.lower().startswith("0x"):
                return int(raw, 16)
            return int(raw, 10)
        except ValueError as e:
            raise ValueError(f"Invalid {what}: {value!r}") from e
    raise ValueError(f"{what} must be an int or hex string, got {type(value).__name__}")


def parse_validator(value: Union[int, str]) -> int:
    """Parse a validator id from an int or `0x` hex string.

    The sentinel is accepted here (it is a valid 160-bit value); the registry
    refuses to store it.
    """
    v = _parse_int(value, what="validator")
    if not 0 <= v < MAX_VALIDATOR:
        raise ValueError(f"validator out of 160-bit range: {value!r}")
    return v


def format_validator(validator: int) -> str:
    return "0x" + format(validator, "040x")


def parse_word(value: Union[int, str]) -> int:
    w = _parse_int(value, what="storage location word")
    if not 0 <= w < MAX_WORD:
        raise ValueError(f"storage location word out of 256-bit range: {value!r}")
    return w


def format_word(word: int) -> str:
    return hex(word)


def parse_storage_location(words: Iterable[Union[int, str]]) -> StorageLocation:
    return [parse_word(w) for w in words]


def encode_storage_location(uri: str) -> StorageLocation:
    """Pack a URI into big-endian 31-byte words."""
    data = uri.encode("utf-8")
    return [
        int.from_bytes(data[i : i + SHORT_STRING_BYTES], "big")
        for i in range(0, len(data), SHORT_STRING_BYTES)
    ]


def decode_storage_location(words: Sequence[int]) -> Optional[str]:
    """Inverse of `encode_storage_location`; None when the words are not text.

    Every word but the last is a full 31-byte chunk. The last one carries no
    length, so leading NUL bytes in the final chunk do not survive.
    """
    chunks = []
    last = len(words) - 1
    for i, w in enumerate(words):
        if not 0 <= w < 2 ** (8 * SHORT_STRING_BYTES):
            return None
        size = SHORT_STRING_BYTES if i < last else max(1, (w.bit_length() + 7) // 8)
        chunks.append(w.to_bytes(size, "big"))
    try:
        return b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError:
        return None
