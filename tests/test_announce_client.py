from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from valannounce.announce.errors import ReplayError, WrongSignerError
from valannounce.core.types import encode_storage_location
from valannounce.p2p.app import create_app
from valannounce.p2p.client import ValidatorAnnounceClient

from conftest import ADDRESS_1, PRIVATE_KEY_1, PRIVATE_KEY_2


@pytest.fixture
def routed(monkeypatch, service):
    """Route the client's `requests` calls into an in-process registry app."""
    app_client = TestClient(create_app(service))
    calls: List[Tuple[str, str, float]] = []

    def fake_post(url: str, *, json: Dict[str, Any], timeout: float):  # noqa: A002 - match requests API
        calls.append(("POST", url, timeout))
        return app_client.post(url.replace("http://registry", ""), json=json)

    def fake_get(url: str, *, timeout: float):
        calls.append(("GET", url, timeout))
        return app_client.get(url.replace("http://registry", ""))

    import valannounce.p2p.client as mod

    monkeypatch.setattr(mod.requests, "post", fake_post)
    monkeypatch.setattr(mod.requests, "get", fake_get)
    return calls


def test_client_announces_uri(routed, service):
    client = ValidatorAnnounceClient("http://registry/", PRIVATE_KEY_1, timeout_s=3.0)
    assert client.validator == ADDRESS_1

    uri = "gs://checkpoints/validator-1"
    assert client.announce(uri) is True

    assert service.get_announced_validators() == [ADDRESS_1]
    assert client.get_announced_validators() == [ADDRESS_1]
    assert client.get_announced_storage_locations([ADDRESS_1, 0x1111]) == [encode_storage_location(uri), []]

    urls = [url for _, url, _ in routed]
    assert urls[:2] == ["http://registry/announcement-digest", "http://registry/announce"]
    assert all(timeout == 3.0 for _, _, timeout in routed)


def test_client_maps_replay(routed):
    client = ValidatorAnnounceClient("http://registry", PRIVATE_KEY_1)
    client.announce([111, 222])
    with pytest.raises(ReplayError):
        client.announce([111, 222])


def test_client_maps_wrong_signer(routed, monkeypatch):
    client = ValidatorAnnounceClient("http://registry", PRIVATE_KEY_2)
    # Claim someone else's identity.
    monkeypatch.setattr(ValidatorAnnounceClient, "validator", property(lambda self: ADDRESS_1))
    with pytest.raises(WrongSignerError):
        client.announce([111, 222])


def test_client_digest_matches_service(routed, service):
    client = ValidatorAnnounceClient("http://registry")
    assert client.get_announcement_digest([111, 222]) == service.get_announcement_digest([111, 222])
