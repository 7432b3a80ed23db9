"""
Persistent state behind the announcement service.

Layout:
- validator -> storage location words
- replay id -> seen
- validator -> next validator (linked registry, sentinel key is the head)
- append-only announcement log

All mutations of one `announce` call happen inside `transaction()`; an
exception raised inside the block discards every change made in it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional, Sequence

from valannounce.core.types import Announcement


class AnnounceStore(ABC):
    @abstractmethod
    def get_storage_location(self, validator: int) -> Optional[List[int]]:
        ...

    @abstractmethod
    def set_storage_location(self, validator: int, storage_location: Sequence[int]) -> None:
        ...

    @abstractmethod
    def is_replay_seen(self, replay_id: bytes) -> bool:
        ...

    @abstractmethod
    def mark_replay_seen(self, replay_id: bytes) -> None:
        ...

    @abstractmethod
    def get_next_validator(self, validator: int) -> Optional[int]:
        """Linked successor, or None when `validator` has no entry."""

    @abstractmethod
    def set_next_validator(self, validator: int, next_validator: int) -> None:
        ...

    @abstractmethod
    def append_event(self, event: Announcement) -> None:
        ...

    @abstractmethod
    def list_events(self) -> List[Announcement]:
        ...

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        ...
