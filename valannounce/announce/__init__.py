"""Validator announcement registry.

Validators publish where their signed checkpoints can be fetched; relayers
read the registry to discover them. An announcement is accepted once per
(validator, storage location) pair and only with a signature by the
validator's key over a digest bound to the local messaging domain and mailbox.
"""

from valannounce.announce.errors import (
    AnnounceError,
    AnnounceErrorKind,
    ReplayError,
    WrongSignerError,
)
from valannounce.announce.mailbox import MailboxClient, StaticMailboxClient
from valannounce.announce.service import ValidatorAnnounce

__all__ = [
    "AnnounceError",
    "AnnounceErrorKind",
    "MailboxClient",
    "ReplayError",
    "StaticMailboxClient",
    "ValidatorAnnounce",
    "WrongSignerError",
]
