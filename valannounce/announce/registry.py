"""
Insertion-ordered unique set of validators.

Stored as singly linked `validator -> next validator` entries. The sentinel key
is the head; the last validator links back to the sentinel. Every registered
validator owns a link, so membership is a single key lookup, while append and
enumeration walk the chain (validator sets are small).
"""

from __future__ import annotations

from typing import Iterator, List

from valannounce.core.types import SENTINEL_VALIDATOR
from valannounce.storage.base import AnnounceStore


class ValidatorRegistry:
    def __init__(self, store: AnnounceStore) -> None:
        self._store = store

    def contains(self, validator: int) -> bool:
        if validator == SENTINEL_VALIDATOR:
            return False
        return self._store.get_next_validator(validator) is not None

    def append(self, validator: int) -> None:
        if validator == SENTINEL_VALIDATOR:
            raise ValueError("sentinel validator cannot be registered")
        if self.contains(validator):
            raise ValueError(f"validator already registered: {validator:#x}")

        tail = SENTINEL_VALIDATOR
        nxt = self._store.get_next_validator(tail)
        while nxt is not None and nxt != SENTINEL_VALIDATOR:
            tail = nxt
            nxt = self._store.get_next_validator(tail)

        self._store.set_next_validator(tail, validator)
        self._store.set_next_validator(validator, SENTINEL_VALIDATOR)

    def validators(self) -> List[int]:
        return list(self)

    def __iter__(self) -> Iterator[int]:
        cur = self._store.get_next_validator(SENTINEL_VALIDATOR)
        while cur is not None and cur != SENTINEL_VALIDATOR:
            yield cur
            cur = self._store.get_next_validator(cur)

    def __contains__(self, validator: object) -> bool:
        return isinstance(validator, int) and self.contains(validator)

    def __len__(self) -> int:
        return sum(1 for _ in self)
