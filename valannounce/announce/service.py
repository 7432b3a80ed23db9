"""
Validator announcement service.

`announce` accepts a (validator, storage location) pair at most once and only
when the validator's key signed the announcement digest for the current
messaging domain. Check order is fixed:

1. replay id of (validator, location) must be unseen      -> ReplayError
2. signature must recover to the validator                -> WrongSignerError
3. register validator if new, overwrite its location, mark the replay id,
   record the Announcement event

Both failure exits happen before any state is touched.

Note: because the replay check runs first, a caller without a valid signature
can learn whether a given (validator, location) pair was already announced
(REPLAY vs WRONG_SIGNER). Storage locations are public anyway, but keep this
in mind before putting anything sensitive in them.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional, Sequence

import bittensor as bt

from valannounce.announce.errors import WrongSignerError
from valannounce.announce.mailbox import MailboxClient
from valannounce.announce.registry import ValidatorRegistry
from valannounce.announce.replay import ReplayGuard, replay_id
from valannounce.core.types import Announcement, format_validator, parse_storage_location, parse_validator
from valannounce.crypto.digest import announcement_digest, domain_hash
from valannounce.crypto.signature import is_eth_signature_valid
from valannounce.storage.base import AnnounceStore
from valannounce.storage.memory import InMemoryAnnounceStore

AnnouncementListener = Callable[[Announcement], None]


class ValidatorAnnounce:
    def __init__(self, mailbox: MailboxClient, store: Optional[AnnounceStore] = None) -> None:
        self.mailbox = mailbox
        self.store = store if store is not None else InMemoryAnnounceStore()
        self.registry = ValidatorRegistry(self.store)
        self.replay_guard = ReplayGuard(self.store)
        self._listeners: List[AnnouncementListener] = []
        # One invocation at a time, like a ledger transaction.
        self._lock = threading.RLock()

    def subscribe(self, listener: AnnouncementListener) -> None:
        """Call `listener` with every Announcement after it is committed.

        A failing listener is logged and does not change the outcome of
        `announce`: the announcement is already durable by then.
        """
        self._listeners.append(listener)

    def domain_hash(self) -> int:
        return domain_hash(self.mailbox.local_domain(), self.mailbox.mailbox_address())

    def get_announcement_digest(self, storage_location: Sequence[int]) -> int:
        words = parse_storage_location(storage_location)
        return announcement_digest(self.mailbox.local_domain(), self.mailbox.mailbox_address(), words)

    def announce(self, validator: int, storage_location: Sequence[int], signature: bytes) -> bool:
        validator = parse_validator(validator)
        words = parse_storage_location(storage_location)
        with self._lock:
            with self.store.transaction():
                rid = replay_id(validator, words)
                self.replay_guard.check(rid)

                digest = self.get_announcement_digest(words)
                if not is_eth_signature_valid(digest, signature, validator):
                    bt.logging.debug(f"Rejected announcement for {format_validator(validator)}: wrong signer")
                    raise WrongSignerError()

                if not self.registry.contains(validator):
                    self.registry.append(validator)
                    bt.logging.info(f"Registered validator {format_validator(validator)}")
                self.store.set_storage_location(validator, words)
                self.replay_guard.mark(rid)

                event = Announcement(validator=validator, storage_location=tuple(words))
                self.store.append_event(event)

            bt.logging.info(f"Announced storage location for {format_validator(validator)} ({len(words)} words)")
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    bt.logging.warning(f"Announcement listener failed for {format_validator(validator)}: {e}")
        return True

    def get_announced_storage_location(self, validator: int) -> List[int]:
        with self._lock:
            return self.store.get_storage_location(parse_validator(validator)) or []

    def get_announced_storage_locations(self, validators: Sequence[int]) -> List[List[int]]:
        with self._lock:
            return [self.store.get_storage_location(parse_validator(v)) or [] for v in validators]

    def get_announced_validators(self) -> List[int]:
        with self._lock:
            return self.registry.validators()

    def get_announcements(self) -> List[Announcement]:
        with self._lock:
            return self.store.list_events()
