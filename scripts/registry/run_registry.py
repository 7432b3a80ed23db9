from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import bittensor as bt
import uvicorn

from valannounce.p2p.app import create_app
from valannounce.utils.config import config as build_config


def main() -> int:
    cfg = build_config(role="registry")
    app = create_app()
    bt.logging.info(f"Serving validator announce registry on {cfg.registry.host}:{cfg.registry.port}")
    uvicorn.run(app, host=cfg.registry.host, port=int(cfg.registry.port), log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
