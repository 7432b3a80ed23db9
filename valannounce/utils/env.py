from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env once on import.
load_dotenv()

ENV_PREFIX = "VALANNOUNCE_"


def _env_str(name: str, default: str = "") -> str:
    """Read a string env var, stripping whitespace."""
    return (os.getenv(name, default) or "").strip()


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean env var with common truthy values."""
    raw = _env_str(name, str(default)).lower()
    return raw in {"y", "yes", "t", "true", "on", "1"}


def _env_int(name: str, default: int = 0) -> int:
    """Read an int env var; `0x` prefixed values are parsed as hex."""
    v = _env_str(name, str(default)) or str(default)
    return int(v, 16) if v.lower().startswith("0x") else int(v)


def _env_float(name: str, default: float = 0.0) -> float:
    v = _env_str(name, str(default)) or str(default)
    return float(v)


def _env_optional_int(name: str) -> Optional[int]:
    """Like `_env_int` but None when unset or empty."""
    if not _env_str(name, ""):
        return None
    return _env_int(name)
