import sys
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so `import valannounce` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from valannounce.announce.mailbox import StaticMailboxClient  # noqa: E402
from valannounce.announce.service import ValidatorAnnounce  # noqa: E402
from valannounce.crypto.signature import address_from_private_key  # noqa: E402

# Well-known test keys: secp256k1 private keys 1 and 2.
PRIVATE_KEY_1 = 1
PRIVATE_KEY_2 = 2
ADDRESS_1 = 0x7E5F4552091A69125D5DFCB7B8C2659029395BDF
ADDRESS_2 = 0x2B5AD5C4795C026514F8317C7A215E218DCCD6CF

LOCAL_DOMAIN = 1000
MAILBOX_ADDRESS = 0x00A11CE0000000000000000000000000000000000000000000000000000B0B


@pytest.fixture
def mailbox() -> StaticMailboxClient:
    return StaticMailboxClient(LOCAL_DOMAIN, MAILBOX_ADDRESS)


@pytest.fixture
def service(mailbox) -> ValidatorAnnounce:
    return ValidatorAnnounce(mailbox)


@pytest.fixture
def validator_key() -> int:
    assert address_from_private_key(PRIVATE_KEY_1) == ADDRESS_1
    return PRIVATE_KEY_1


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: starts real HTTP servers on localhost")
