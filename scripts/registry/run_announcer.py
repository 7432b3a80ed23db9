from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import time
from typing import Optional

import bittensor as bt
import requests

from valannounce.announce.errors import ReplayError, WrongSignerError
from valannounce.core.types import format_validator
from valannounce.crypto.signature import private_key_from_hex
from valannounce.p2p.client import ValidatorAnnounceClient
from valannounce.p2p.config import load_announcer_env
from valannounce.utils.config import config as build_config


def _wait_http_ok(url: str, *, timeout_s: float = 30.0, interval_s: float = 0.5) -> None:
    deadline = time.time() + timeout_s
    last_err: Optional[str] = None
    while time.time() < deadline:
        try:
            r = requests.get(url, timeout=2.0)
            if r.status_code == 200:
                return
            last_err = f"status={r.status_code}"
        except requests.RequestException as e:
            last_err = str(e)
        time.sleep(interval_s)
    raise RuntimeError(f"Timed out waiting for {url}: {last_err}")


def announce_once(client: ValidatorAnnounceClient, uri: str) -> bool:
    """Announce `uri`; True when the registry holds it afterwards."""
    try:
        client.announce(uri)
        bt.logging.info(f"Announced {uri!r} for {format_validator(client.validator)}")
        return True
    except ReplayError:
        # Same (validator, location) already accepted earlier; nothing to update.
        bt.logging.debug(f"Registry already holds {uri!r} for {format_validator(client.validator)}")
        return True
    except WrongSignerError as e:
        bt.logging.error(f"Registry rejected announcement: {e}")
        return False
    except requests.RequestException as e:
        bt.logging.warning(f"Announcement request failed: {e}")
        return False


def main() -> int:
    cfg = build_config(role="announcer")
    env = load_announcer_env()

    client = ValidatorAnnounceClient(
        env.registry_url,
        private_key_from_hex(env.private_key_hex),
        timeout_s=env.timeout_s,
    )
    bt.logging.info(f"Announcer for {format_validator(client.validator)} -> {env.registry_url}")
    _wait_http_ok(f"{env.registry_url}/healthz", timeout_s=float(cfg.announcer.wait_s))

    if cfg.announcer.once:
        return 0 if announce_once(client, env.storage_location_uri) else 1

    while True:
        announce_once(client, env.storage_location_uri)
        time.sleep(env.announce_interval_s)


if __name__ == "__main__":
    raise SystemExit(main())
