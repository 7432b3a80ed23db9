import pytest

from valannounce.announce.errors import ReplayError
from valannounce.announce.service import ValidatorAnnounce
from valannounce.core.types import Announcement, SENTINEL_VALIDATOR
from valannounce.crypto.signature import sign_digest
from valannounce.storage.sql import SqlAnnounceStore

from conftest import ADDRESS_1, ADDRESS_2, PRIVATE_KEY_1, PRIVATE_KEY_2


def _db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'registry.db'}"


def test_sql_store_primitives(tmp_path):
    store = SqlAnnounceStore(_db_url(tmp_path))

    assert store.get_storage_location(ADDRESS_1) is None
    store.set_storage_location(ADDRESS_1, [1, 2**255])
    store.set_storage_location(ADDRESS_1, [3])
    assert store.get_storage_location(ADDRESS_1) == [3]

    rid = b"\x11" * 32
    assert store.is_replay_seen(rid) is False
    store.mark_replay_seen(rid)
    store.mark_replay_seen(rid)
    assert store.is_replay_seen(rid) is True

    store.set_next_validator(SENTINEL_VALIDATOR, ADDRESS_1)
    assert store.get_next_validator(SENTINEL_VALIDATOR) == ADDRESS_1
    assert store.get_next_validator(ADDRESS_1) is None

    store.append_event(Announcement(validator=ADDRESS_1, storage_location=(3,)))
    assert store.list_events() == [Announcement(validator=ADDRESS_1, storage_location=(3,))]
    store.dispose()


def test_sql_store_transaction_rolls_back(tmp_path):
    store = SqlAnnounceStore(_db_url(tmp_path))

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.set_next_validator(SENTINEL_VALIDATOR, ADDRESS_1)
            store.set_next_validator(ADDRESS_1, SENTINEL_VALIDATOR)
            # Writes are visible inside the open transaction.
            assert store.get_next_validator(ADDRESS_1) == SENTINEL_VALIDATOR
            raise RuntimeError("abort")

    assert store.get_next_validator(SENTINEL_VALIDATOR) is None
    assert store.get_next_validator(ADDRESS_1) is None
    store.dispose()


def test_state_survives_restart(tmp_path, mailbox):
    url = _db_url(tmp_path)
    l1, l2 = [111, 222], [333]

    first = ValidatorAnnounce(mailbox, store=SqlAnnounceStore(url))
    first.announce(ADDRESS_2, l1, sign_digest(PRIVATE_KEY_2, first.get_announcement_digest(l1)))
    first.announce(ADDRESS_1, l1, sign_digest(PRIVATE_KEY_1, first.get_announcement_digest(l1)))
    first.announce(ADDRESS_1, l2, sign_digest(PRIVATE_KEY_1, first.get_announcement_digest(l2)))
    first.store.dispose()

    second = ValidatorAnnounce(mailbox, store=SqlAnnounceStore(url))
    assert second.get_announced_validators() == [ADDRESS_2, ADDRESS_1]
    assert second.get_announced_storage_locations([ADDRESS_1, ADDRESS_2, 0x1111]) == [l2, l1, []]
    assert len(second.get_announcements()) == 3

    with pytest.raises(ReplayError):
        second.announce(ADDRESS_1, l1, b"")
    second.store.dispose()
