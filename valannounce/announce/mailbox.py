"""Messaging-domain context consumed by digest computation."""

from __future__ import annotations

from typing import Optional, Protocol


class MailboxClient(Protocol):
    def local_domain(self) -> int: ...

    def mailbox_address(self) -> int: ...


class StaticMailboxClient:
    """Fixed domain context, e.g. loaded from env for a single deployment."""

    def __init__(self, local_domain: int, mailbox_address: int) -> None:
        self._local_domain = int(local_domain)
        self._mailbox_address = int(mailbox_address)

    def local_domain(self) -> int:
        return self._local_domain

    def mailbox_address(self) -> int:
        return self._mailbox_address

    def update(self, *, local_domain: Optional[int] = None, mailbox_address: Optional[int] = None) -> None:
        # Digests are always computed from the current values.
        if local_domain is not None:
            self._local_domain = int(local_domain)
        if mailbox_address is not None:
            self._mailbox_address = int(mailbox_address)
