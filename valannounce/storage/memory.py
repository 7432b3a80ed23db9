from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Set

from valannounce.core.types import Announcement
from valannounce.storage.base import AnnounceStore


class InMemoryAnnounceStore(AnnounceStore):
    def __init__(self) -> None:
        self._locations: Dict[int, List[int]] = {}
        self._replays: Set[bytes] = set()
        self._links: Dict[int, int] = {}
        self._events: List[Announcement] = []
        self._depth = 0

    def get_storage_location(self, validator: int) -> Optional[List[int]]:
        loc = self._locations.get(validator)
        return list(loc) if loc is not None else None

    def set_storage_location(self, validator: int, storage_location: Sequence[int]) -> None:
        self._locations[validator] = list(storage_location)

    def is_replay_seen(self, replay_id: bytes) -> bool:
        return replay_id in self._replays

    def mark_replay_seen(self, replay_id: bytes) -> None:
        self._replays.add(replay_id)

    def get_next_validator(self, validator: int) -> Optional[int]:
        return self._links.get(validator)

    def set_next_validator(self, validator: int, next_validator: int) -> None:
        self._links[validator] = next_validator

    def append_event(self, event: Announcement) -> None:
        self._events.append(event)

    def list_events(self) -> List[Announcement]:
        return list(self._events)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Nested blocks join the outermost one.
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = (
            {k: list(v) for k, v in self._locations.items()},
            set(self._replays),
            dict(self._links),
            len(self._events),
        )
        self._depth = 1
        try:
            yield
        except BaseException:
            self._locations, self._replays, self._links = snapshot[0], snapshot[1], snapshot[2]
            del self._events[snapshot[3]:]
            raise
        finally:
            self._depth = 0
