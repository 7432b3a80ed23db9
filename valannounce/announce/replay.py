from __future__ import annotations

import hashlib
from typing import Sequence

from valannounce.announce.errors import ReplayError
from valannounce.storage.base import AnnounceStore


def replay_id(validator: int, storage_location: Sequence[int]) -> bytes:
    """SHA-256 over the validator and every location word, each as 32 bytes BE.

    Fixed-width fields keep distinct (validator, location) pairs from colliding
    on concatenation.
    """
    h = hashlib.sha256(validator.to_bytes(32, "big"))
    for word in storage_location:
        h.update(word.to_bytes(32, "big"))
    return h.digest()


class ReplayGuard:
    def __init__(self, store: AnnounceStore) -> None:
        self._store = store

    def check(self, rid: bytes) -> None:
        if self._store.is_replay_seen(rid):
            raise ReplayError()

    def mark(self, rid: bytes) -> None:
        self._store.mark_replay_seen(rid)

    def seen(self, rid: bytes) -> bool:
        return self._store.is_replay_seen(rid)
