from __future__ import annotations

from typing import List, Optional, Sequence, Union

import requests

from valannounce.announce.errors import AnnounceErrorKind, error_for_kind
from valannounce.core.types import (
    encode_storage_location,
    format_validator,
    format_word,
    parse_validator,
    parse_word,
)
from valannounce.crypto.signature import PrivateKey, address_from_private_key, sign_digest

StorageLocationInput = Union[str, Sequence[int]]

_ERROR_KINDS = {k.value for k in AnnounceErrorKind}


def _words(storage_location: StorageLocationInput) -> List[int]:
    if isinstance(storage_location, str):
        return encode_storage_location(storage_location)
    return [int(w) for w in storage_location]


class ValidatorAnnounceClient:
    """HTTP client for the registry; signs announcements with the validator key."""

    def __init__(
        self,
        registry_url: str,
        private_key: Optional[PrivateKey] = None,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.private_key = private_key
        self.timeout_s = timeout_s

    @property
    def validator(self) -> int:
        if self.private_key is None:
            raise RuntimeError("client has no validator key")
        return address_from_private_key(self.private_key)

    def get_announcement_digest(self, storage_location: StorageLocationInput) -> int:
        r = requests.post(
            f"{self.registry_url}/announcement-digest",
            json={"storage_location": [format_word(w) for w in _words(storage_location)]},
            timeout=self.timeout_s,
        )
        r.raise_for_status()
        return int(r.json()["digest"], 16)

    def announce(self, storage_location: StorageLocationInput) -> bool:
        """
        Sign the registry's digest for `storage_location` and submit it.

        Raises:
            ReplayError: the exact (validator, location) pair was already accepted
            WrongSignerError: the registry rejected the signature
        """
        validator = self.validator
        words = _words(storage_location)
        digest = self.get_announcement_digest(words)
        signature = sign_digest(self.private_key, digest)
        r = requests.post(
            f"{self.registry_url}/announce",
            json={
                "validator": format_validator(validator),
                "storage_location": [format_word(w) for w in words],
                "signature": "0x" + signature.hex(),
            },
            timeout=self.timeout_s,
        )
        if r.status_code in (401, 409):
            detail = r.json().get("detail")
            if isinstance(detail, dict) and detail.get("kind") in _ERROR_KINDS:
                raise error_for_kind(AnnounceErrorKind(detail["kind"]), detail.get("message"))
        r.raise_for_status()
        return bool(r.json().get("ok"))

    def get_announced_validators(self) -> List[int]:
        r = requests.get(f"{self.registry_url}/validators", timeout=self.timeout_s)
        r.raise_for_status()
        return [parse_validator(v) for v in r.json().get("validators", [])]

    def get_announced_storage_locations(self, validators: Sequence[int]) -> List[List[int]]:
        r = requests.post(
            f"{self.registry_url}/storage-locations",
            json={"validators": [format_validator(v) for v in validators]},
            timeout=self.timeout_s,
        )
        r.raise_for_status()
        return [[parse_word(w) for w in loc] for loc in r.json().get("storage_locations", [])]
