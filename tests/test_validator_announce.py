from typing import List

import pytest
from ecdsa import SECP256k1, numbertheory

from valannounce.announce.errors import AnnounceErrorKind, ReplayError, WrongSignerError
from valannounce.announce.service import ValidatorAnnounce
from valannounce.core.types import Announcement, encode_storage_location
from valannounce.crypto.digest import announcement_digest, domain_hash
from valannounce.crypto.signature import EthSignature, sign_digest
from valannounce.storage.memory import InMemoryAnnounceStore

from conftest import ADDRESS_1, ADDRESS_2, LOCAL_DOMAIN, MAILBOX_ADDRESS, PRIVATE_KEY_1, PRIVATE_KEY_2


def _signed(service: ValidatorAnnounce, key: int, location: List[int]) -> bytes:
    return sign_digest(key, service.get_announcement_digest(location))


def test_digest_uses_current_domain_context(service, mailbox):
    location = [111, 222]
    assert service.domain_hash() == domain_hash(LOCAL_DOMAIN, MAILBOX_ADDRESS)
    assert service.get_announcement_digest(location) == announcement_digest(LOCAL_DOMAIN, MAILBOX_ADDRESS, location)
    assert service.get_announcement_digest(location) == service.get_announcement_digest(list(location))

    before = service.get_announcement_digest(location)
    mailbox.update(mailbox_address=MAILBOX_ADDRESS + 1)
    assert service.get_announcement_digest(location) != before


def test_scenario_announce_then_replay(service):
    events: List[Announcement] = []
    service.subscribe(events.append)
    location = [111, 222]
    sig = _signed(service, PRIVATE_KEY_1, location)

    assert service.announce(ADDRESS_1, location, sig) is True
    assert events == [Announcement(validator=ADDRESS_1, storage_location=(111, 222))]
    assert service.get_announced_validators() == [ADDRESS_1]
    assert service.get_announced_storage_locations([ADDRESS_1]) == [[111, 222]]

    # Any signature, even garbage, hits the replay check first.
    for retry_sig in (sig, b"", b"\x00" * 65):
        with pytest.raises(ReplayError) as exc:
            service.announce(ADDRESS_1, location, retry_sig)
        assert exc.value.kind == AnnounceErrorKind.REPLAY

    assert len(events) == 1
    assert service.get_announcements() == events


def test_wrong_signer_is_rejected_without_side_effects(service):
    location = [111, 222]
    other_sig = _signed(service, PRIVATE_KEY_2, location)

    with pytest.raises(WrongSignerError) as exc:
        service.announce(ADDRESS_1, location, other_sig)
    assert exc.value.kind == AnnounceErrorKind.WRONG_SIGNER
    assert str(exc.value) == "Announce: wrong signer"

    assert service.get_announced_validators() == []
    assert service.get_announced_storage_locations([ADDRESS_1]) == [[]]
    assert service.get_announcements() == []

    # The replay id was not consumed, so the genuine signature still goes through.
    assert service.announce(ADDRESS_1, location, _signed(service, PRIVATE_KEY_1, location)) is True


def test_malformed_signature_is_wrong_signer(service):
    with pytest.raises(WrongSignerError):
        service.announce(ADDRESS_1, [1], b"\x01\x02\x03")


def test_signature_for_stale_domain_context_is_rejected(service, mailbox):
    location = [111, 222]
    sig = _signed(service, PRIVATE_KEY_1, location)
    mailbox.update(local_domain=LOCAL_DOMAIN + 1)

    with pytest.raises(WrongSignerError):
        service.announce(ADDRESS_1, location, sig)


def test_overwrite_not_reinsertion(service):
    l1 = [111, 222]
    l2 = encode_storage_location("s3://validator-signatures/eu-west-1")

    assert service.announce(ADDRESS_1, l1, _signed(service, PRIVATE_KEY_1, l1))
    assert service.announce(ADDRESS_1, l2, _signed(service, PRIVATE_KEY_1, l2))

    assert service.get_announced_storage_locations([ADDRESS_1]) == [l2]
    assert service.get_announced_validators() == [ADDRESS_1]
    assert [e.storage_location for e in service.get_announcements()] == [tuple(l1), tuple(l2)]


def test_reannouncing_previous_location_is_a_replay(service):
    l1, l2 = [1], [2]
    service.announce(ADDRESS_1, l1, _signed(service, PRIVATE_KEY_1, l1))
    service.announce(ADDRESS_1, l2, _signed(service, PRIVATE_KEY_1, l2))

    with pytest.raises(ReplayError):
        service.announce(ADDRESS_1, l1, _signed(service, PRIVATE_KEY_1, l1))
    assert service.get_announced_storage_location(ADDRESS_1) == l2


def test_registry_growth_without_duplicates(service):
    keys = [(PRIVATE_KEY_2, ADDRESS_2), (PRIVATE_KEY_1, ADDRESS_1)]
    for round_no in range(3):
        for key, address in keys:
            location = [round_no, address & 0xFFFF]
            assert service.announce(address, location, _signed(service, key, location))

    assert service.get_announced_validators() == [ADDRESS_2, ADDRESS_1]
    assert service.get_announced_storage_locations([ADDRESS_1, ADDRESS_2]) == [
        [2, ADDRESS_1 & 0xFFFF],
        [2, ADDRESS_2 & 0xFFFF],
    ]


def test_unknown_validator_query_returns_empty_location(service):
    assert service.get_announced_storage_locations([0x1111]) == [[]]
    assert service.get_announced_storage_locations([]) == []
    assert service.get_announced_validators() == []


def test_empty_storage_location_can_be_announced(service):
    assert service.announce(ADDRESS_1, [], _signed(service, PRIVATE_KEY_1, []))
    assert service.get_announced_validators() == [ADDRESS_1]
    assert service.get_announced_storage_locations([ADDRESS_1]) == [[]]


def test_out_of_range_word_is_rejected(service):
    with pytest.raises(ValueError):
        service.get_announcement_digest([2**256])
    with pytest.raises(ValueError):
        service.announce(ADDRESS_1, [-1], b"")


class _FailingEventStore(InMemoryAnnounceStore):
    def append_event(self, event: Announcement) -> None:
        raise RuntimeError("event log unavailable")


def test_failure_after_checks_rolls_back_everything(mailbox):
    service = ValidatorAnnounce(mailbox, store=_FailingEventStore())
    location = [111, 222]
    sig = _signed(service, PRIVATE_KEY_1, location)

    with pytest.raises(RuntimeError):
        service.announce(ADDRESS_1, location, sig)

    assert service.get_announced_validators() == []
    assert service.get_announced_storage_locations([ADDRESS_1]) == [[]]
    # Replay id was not kept either: the same call reaches the store again.
    with pytest.raises(RuntimeError):
        service.announce(ADDRESS_1, location, sig)


def test_failing_listener_does_not_fail_committed_announce(service):
    seen: List[Announcement] = []

    def broken(event: Announcement) -> None:
        raise RuntimeError("listener down")

    service.subscribe(broken)
    service.subscribe(seen.append)
    location = [1]

    assert service.announce(ADDRESS_1, location, _signed(service, PRIVATE_KEY_1, location)) is True
    assert service.get_announced_validators() == [ADDRESS_1]
    assert seen == [Announcement(validator=ADDRESS_1, storage_location=(1,))]


def test_queries_accept_hex_validator(service):
    hex_address = "0x%040x" % ADDRESS_1
    location = [1]

    assert service.announce(hex_address, location, _signed(service, PRIVATE_KEY_1, location))
    assert service.get_announced_storage_locations([hex_address]) == [[1]]
    assert service.get_announced_storage_locations(["0x" + format(ADDRESS_1, "040X")]) == [[1]]
    assert service.get_announced_storage_location(hex_address) == [1]
    with pytest.raises(ValueError):
        service.get_announced_storage_locations(["0xzz"])


def test_signature_recovering_to_infinity_is_wrong_signer(service):
    location = [111, 222]
    digest = service.get_announcement_digest(location)
    n = SECP256k1.order
    r = (SECP256k1.generator * 7).x() % n
    s = digest * numbertheory.inverse_mod(7, n) % n

    for v in (27, 28):
        with pytest.raises(WrongSignerError):
            service.announce(ADDRESS_1, location, EthSignature(r=r, s=s, v=v).to_bytes())
    assert service.get_announced_validators() == []
