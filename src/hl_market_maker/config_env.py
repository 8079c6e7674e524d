"""Environment resolution and enums for market maker configuration."""
from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Env file resolution
# ---------------------------------------------------------------------------

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return here.parents[2]


PROJECT_ROOT = _find_project_root()


def _resolve_env_file() -> Path:
    """Env file named by ``ENV`` (``ENV=env.test`` reads ``.env.test``), default ``.env``.

    Relative names resolve against the project root.  The file may be
    missing; pydantic-settings then reads the process environment only.
    """
    name = os.getenv("ENV") or ".env"
    path = Path(name)
    if path.is_absolute():
        return path
    if not name.startswith("."):
        path = Path(f".{name}")
    return PROJECT_ROOT / path


ENV_FILE = _resolve_env_file()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MMEnvironment(str, Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class PriceSource(str, Enum):
    """Where the fair price comes from.

    ORACLE: ``oraclePx`` from ``metaAndAssetCtxs`` (the 8h EMA used for
        funding on hyperps, usable for pre-market tokens).
    MID: ``midPx`` from the same endpoint.
    """

    ORACLE = "oracle"
    MID = "mid"
