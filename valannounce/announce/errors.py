from __future__ import annotations

from enum import Enum
from typing import Optional


class AnnounceErrorKind(str, Enum):
    REPLAY = "REPLAY"
    WRONG_SIGNER = "WRONG_SIGNER"


class AnnounceError(Exception):
    """Aborts an `announce` call. Nothing is retried internally."""

    default_message = "Announce: rejected"

    def __init__(self, kind: AnnounceErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message or self.default_message
        super().__init__(self.message)


class ReplayError(AnnounceError):
    default_message = "Announce: replay"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(AnnounceErrorKind.REPLAY, message)


class WrongSignerError(AnnounceError):
    default_message = "Announce: wrong signer"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(AnnounceErrorKind.WRONG_SIGNER, message)


def error_for_kind(kind: AnnounceErrorKind, message: Optional[str] = None) -> AnnounceError:
    if kind == AnnounceErrorKind.REPLAY:
        return ReplayError(message)
    return WrongSignerError(message)
