"""SQLAlchemy persistence for the announcement registry.

256-bit values (validators, words, replay ids) are stored as `0x` hex strings
so any SQL backend can hold them.

Usage::

    store = SqlAnnounceStore("sqlite:///valannounce.db")
    service = ValidatorAnnounce(mailbox, store=store)
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import JSON, DateTime, Integer, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from valannounce.core.types import Announcement
from valannounce.storage.base import AnnounceStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _key(value: int) -> str:
    return "0x" + format(value, "064x")


def _from_key(value: str) -> int:
    return int(value, 16)


# ---------------------------------------------------------------------------
# ORM models
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for registry tables."""

    pass


class ValidatorLinkDB(Base):
    __tablename__ = "validator_links"

    validator: Mapped[str] = mapped_column(String(66), primary_key=True)
    next_validator: Mapped[str] = mapped_column(String(66), nullable=False)


class StorageLocationDB(Base):
    __tablename__ = "storage_locations"

    validator: Mapped[str] = mapped_column(String(66), primary_key=True)
    words: Mapped[list] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class ReplayIdDB(Base):
    __tablename__ = "replay_ids"

    replay_id: Mapped[str] = mapped_column(String(66), primary_key=True)


class AnnouncementEventDB(Base):
    __tablename__ = "announcement_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    validator: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    words: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"<AnnouncementEventDB(id={self.id!r}, validator={self.validator!r})>"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SqlAnnounceStore(AnnounceStore):
    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._engine = create_engine(database_url, echo=echo)
        Base.metadata.create_all(self._engine)
        self._sessionmaker = sessionmaker(self._engine, expire_on_commit=False)
        self._session: Optional[Session] = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._session is not None:
            yield
            return
        session = self._sessionmaker()
        self._session = session
        try:
            yield
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            self._session = None
            session.close()

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            self._session.flush()
            return
        with self._sessionmaker() as session:
            yield session
            session.commit()

    def get_storage_location(self, validator: int) -> Optional[List[int]]:
        with self._scope() as session:
            row = session.get(StorageLocationDB, _key(validator))
            return [_from_key(w) for w in row.words] if row is not None else None

    def set_storage_location(self, validator: int, storage_location: Sequence[int]) -> None:
        words = [_key(w) for w in storage_location]
        with self._scope() as session:
            row = session.get(StorageLocationDB, _key(validator))
            if row is None:
                session.add(StorageLocationDB(validator=_key(validator), words=words))
            else:
                row.words = words

    def is_replay_seen(self, replay_id: bytes) -> bool:
        with self._scope() as session:
            return session.get(ReplayIdDB, "0x" + replay_id.hex()) is not None

    def mark_replay_seen(self, replay_id: bytes) -> None:
        key = "0x" + replay_id.hex()
        with self._scope() as session:
            if session.get(ReplayIdDB, key) is None:
                session.add(ReplayIdDB(replay_id=key))

    def get_next_validator(self, validator: int) -> Optional[int]:
        with self._scope() as session:
            row = session.get(ValidatorLinkDB, _key(validator))
            return _from_key(row.next_validator) if row is not None else None

    def set_next_validator(self, validator: int, next_validator: int) -> None:
        with self._scope() as session:
            row = session.get(ValidatorLinkDB, _key(validator))
            if row is None:
                session.add(ValidatorLinkDB(validator=_key(validator), next_validator=_key(next_validator)))
            else:
                row.next_validator = _key(next_validator)

    def append_event(self, event: Announcement) -> None:
        with self._scope() as session:
            session.add(
                AnnouncementEventDB(
                    validator=_key(event.validator),
                    words=[_key(w) for w in event.storage_location],
                )
            )

    def list_events(self) -> List[Announcement]:
        with self._scope() as session:
            rows = session.scalars(select(AnnouncementEventDB).order_by(AnnouncementEventDB.id)).all()
            return [
                Announcement(
                    validator=_from_key(r.validator),
                    storage_location=tuple(_from_key(w) for w in r.words),
                )
                for r in rows
            ]

    def dispose(self) -> None:
        self._engine.dispose()
