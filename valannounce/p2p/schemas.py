from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from valannounce.core.types import parse_storage_location, parse_validator

Word = Union[int, str]


class AnnounceRequest(BaseModel):
    # Validator address, `0x` hex (or an int).
    validator: Union[int, str]
    # Storage location words as ints or `0x` hex strings.
    storage_location: List[Word] = Field(default_factory=list)
    # 65-byte r || s || v signature as hex. Undecodable hex is treated as a
    # wrong signature, not as a schema error.
    signature: str

    @field_validator("validator")
    @classmethod
    def _check_validator(cls, v: Union[int, str]) -> int:
        return parse_validator(v)

    @field_validator("storage_location")
    @classmethod
    def _check_words(cls, v: List[Word]) -> List[int]:
        return parse_storage_location(v)

    def signature_bytes(self) -> bytes:
        raw = self.signature.strip()
        if raw.lower().startswith("0x"):
            raw = raw[2:]
        try:
            return bytes.fromhex(raw)
        except ValueError:
            return b""


class AnnounceResponse(BaseModel):
    ok: bool = True


class StorageLocationsRequest(BaseModel):
    validators: List[Union[int, str]] = Field(default_factory=list)

    @field_validator("validators")
    @classmethod
    def _check_validators(cls, v: List[Union[int, str]]) -> List[int]:
        return [parse_validator(x) for x in v]


class StorageLocationsResponse(BaseModel):
    storage_locations: List[List[str]]


class ValidatorsResponse(BaseModel):
    validators: List[str]


class DigestRequest(BaseModel):
    storage_location: List[Word] = Field(default_factory=list)

    @field_validator("storage_location")
    @classmethod
    def _check_words(cls, v: List[Word]) -> List[int]:
        return parse_storage_location(v)


class DigestResponse(BaseModel):
    digest: str
    domain_hash: str


class AnnouncementEvent(BaseModel):
    validator: str
    storage_location: List[str]
    # Decoded URI when the words hold UTF-8 text.
    uri: Optional[str] = None


class ErrorDetail(BaseModel):
    kind: str
    message: str
