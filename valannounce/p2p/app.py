"""Registry HTTP service.

Run with the env-configured factory:

    uvicorn --factory valannounce.p2p.app:create_app
"""

from __future__ import annotations

from typing import List, Optional

import bittensor as bt
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from valannounce import __version__
from valannounce.announce.errors import AnnounceError, AnnounceErrorKind
from valannounce.announce.mailbox import StaticMailboxClient
from valannounce.announce.service import ValidatorAnnounce
from valannounce.core.types import decode_storage_location, format_validator, format_word
from valannounce.crypto.digest import digest_bytes
from valannounce.p2p.config import RegistryEnvConfig, load_registry_env
from valannounce.p2p.schemas import (
    AnnounceRequest,
    AnnounceResponse,
    AnnouncementEvent,
    DigestRequest,
    DigestResponse,
    ErrorDetail,
    StorageLocationsRequest,
    StorageLocationsResponse,
    ValidatorsResponse,
)
from valannounce.storage.sql import SqlAnnounceStore

_STATUS_BY_KIND = {
    AnnounceErrorKind.REPLAY: 409,
    AnnounceErrorKind.WRONG_SIGNER: 401,
}


def _hex32(value: int) -> str:
    return "0x" + digest_bytes(value).hex()


def build_service_from_env(cfg: Optional[RegistryEnvConfig] = None) -> ValidatorAnnounce:
    cfg = cfg or load_registry_env()
    mailbox = StaticMailboxClient(cfg.local_domain, cfg.mailbox_address)
    store = None
    if cfg.database_url:
        store = SqlAnnounceStore(cfg.database_url)
    bt.logging.info(
        f"Registry for domain {cfg.local_domain} mailbox {hex(cfg.mailbox_address)} "
        f"({'sql' if store is not None else 'in-memory'} store)"
    )
    return ValidatorAnnounce(mailbox, store=store)


def create_app(
    service: Optional[ValidatorAnnounce] = None,
    *,
    cors_origins: Optional[List[str]] = None,
) -> FastAPI:
    if service is None:
        cfg = load_registry_env()
        service = build_service_from_env(cfg)
        if cors_origins is None:
            cors_origins = cfg.cors_origins

    app = FastAPI(title="valannounce Validator Announce", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service

    @app.get("/healthz")
    def healthz():
        return {
            "ok": True,
            "local_domain": service.mailbox.local_domain(),
            "mailbox_address": format_word(service.mailbox.mailbox_address()),
            "validators": len(service.get_announced_validators()),
        }

    @app.post("/announce", response_model=AnnounceResponse)
    def announce(req: AnnounceRequest):
        try:
            service.announce(req.validator, req.storage_location, req.signature_bytes())
        except AnnounceError as e:
            raise HTTPException(
                status_code=_STATUS_BY_KIND[e.kind],
                detail=ErrorDetail(kind=e.kind.value, message=e.message).model_dump(),
            )
        return AnnounceResponse(ok=True)

    @app.post("/storage-locations", response_model=StorageLocationsResponse)
    def storage_locations(req: StorageLocationsRequest):
        locations = service.get_announced_storage_locations(req.validators)
        return StorageLocationsResponse(
            storage_locations=[[format_word(w) for w in loc] for loc in locations],
        )

    @app.get("/validators", response_model=ValidatorsResponse)
    def validators():
        return ValidatorsResponse(
            validators=[format_validator(v) for v in service.get_announced_validators()],
        )

    @app.post("/announcement-digest", response_model=DigestResponse)
    def announcement_digest(req: DigestRequest):
        return DigestResponse(
            digest=_hex32(service.get_announcement_digest(req.storage_location)),
            domain_hash=_hex32(service.domain_hash()),
        )

    @app.get("/announcements", response_model=list[AnnouncementEvent])
    def announcements():
        return [
            AnnouncementEvent(
                validator=format_validator(ev.validator),
                storage_location=[format_word(w) for w in ev.storage_location],
                uri=decode_storage_location(ev.storage_location),
            )
            for ev in service.get_announcements()
        ]

    return app
