from valannounce.announce.errors import ReplayError, WrongSignerError

from conftest import ADDRESS_1


class _FakeClient:
    validator = ADDRESS_1

    def __init__(self, exc=None):
        self.exc = exc
        self.calls = []

    def announce(self, uri):
        self.calls.append(uri)
        if self.exc is not None:
            raise self.exc
        return True


def test_announce_once_outcomes():
    from scripts.registry.run_announcer import announce_once

    ok = _FakeClient()
    assert announce_once(ok, "s3://bucket") is True
    assert ok.calls == ["s3://bucket"]

    # An already-accepted location is not an error for the runner.
    assert announce_once(_FakeClient(ReplayError()), "s3://bucket") is True
    assert announce_once(_FakeClient(WrongSignerError()), "s3://bucket") is False
