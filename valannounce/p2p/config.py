from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from valannounce.core.types import MAX_WORD, StorageLocation, encode_storage_location
from valannounce.utils.env import ENV_PREFIX, _env_float, _env_optional_int, _env_str


@dataclass(frozen=True)
class RegistryEnvConfig:
    local_domain: int
    mailbox_address: int
    database_url: Optional[str]
    cors_origins: List[str]


@dataclass(frozen=True)
class AnnouncerEnvConfig:
    registry_url: str
    private_key_hex: str
    storage_location_uri: str
    announce_interval_s: int
    timeout_s: float

    @property
    def storage_location(self) -> StorageLocation:
        return encode_storage_location(self.storage_location_uri)


def _die(msg: str) -> None:
    raise SystemExit(f"[valannounce] {msg}")


def _var(name: str) -> str:
    return f"{ENV_PREFIX}{name}"


def _required_int(name: str, *, upper: int) -> int:
    key = _var(name)
    try:
        value = _env_optional_int(key)
    except ValueError:
        _die(f"{key} must be an integer (decimal or 0x hex). Got: {_env_str(key)!r}")
    if value is None:
        _die(f"Missing required env var: {key}")
    if not 0 <= value < upper:
        _die(f"{key} out of range: {value}")
    return value


def load_registry_env() -> RegistryEnvConfig:
    """
    Load registry service configuration from env/.env with strict validation.

    The local domain and mailbox address form the domain context every
    announcement digest is bound to, so both are required.
    """
    local_domain = _required_int("LOCAL_DOMAIN", upper=2**64)
    mailbox_address = _required_int("MAILBOX_ADDRESS", upper=MAX_WORD)

    database_url = _env_str(_var("DATABASE_URL"), "") or None

    cors_raw = _env_str(_var("CORS_ORIGINS"), "*") or "*"
    if cors_raw == "*":
        cors_origins = ["*"]
    else:
        cors_origins = [x.strip() for x in cors_raw.split(",") if x.strip()]

    return RegistryEnvConfig(
        local_domain=local_domain,
        mailbox_address=mailbox_address,
        database_url=database_url,
        cors_origins=cors_origins,
    )


def load_announcer_env() -> AnnouncerEnvConfig:
    registry_url = _env_str(_var("REGISTRY_URL"), "").rstrip("/")
    if not registry_url:
        _die(f"Missing required env var: {_var('REGISTRY_URL')}")
    if not registry_url.startswith("http"):
        _die(f"{_var('REGISTRY_URL')} must be http(s). Got: {registry_url!r}")

    private_key_hex = _env_str(_var("VALIDATOR_PRIVATE_KEY"), "")
    if not private_key_hex:
        _die(f"Missing required env var: {_var('VALIDATOR_PRIVATE_KEY')}")

    storage_location_uri = _env_str(_var("STORAGE_LOCATION"), "")
    if not storage_location_uri:
        _die(f"Missing required env var: {_var('STORAGE_LOCATION')}")

    interval_raw = _env_optional_int(_var("ANNOUNCE_INTERVAL_S"))
    announce_interval_s = max(1, interval_raw if interval_raw is not None else 300)
    timeout_s = max(0.5, _env_float(_var("TIMEOUT_S"), 5.0))

    return AnnouncerEnvConfig(
        registry_url=registry_url,
        private_key_hex=private_key_hex,
        storage_location_uri=storage_location_uri,
        announce_interval_s=int(announce_interval_s),
        timeout_s=float(timeout_s),
    )
