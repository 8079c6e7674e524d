from __future__ import annotations

import os
import sys
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_PATH = os.path.join(PROJECT_ROOT, "src")

if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from hl_market_maker.models import OrderbookSnapshot  # noqa: E402

# Keep tests deterministic: do not load developer-local MM_* values.
os.environ["ENV"] = "env.test"
for key in list(os.environ.keys()):
    if key.startswith("MM_") or key.startswith("HL_"):
        os.environ.pop(key, None)


UNIVERSE = [
    {"name": "BTC", "szDecimals": 5},
    {"name": "ETH", "szDecimals": 4},
    {"name": "kPEPE", "szDecimals": 0},
]


@pytest.fixture(autouse=True)
def _restore_environment() -> None:
    """Prevent environment mutations from leaking across tests."""
    snapshot = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(snapshot)


def make_settings(**overrides):
    base = {
        "symbol": "ETH",
        "spread_bps": Decimal("10"),
        "take_profit_bps": Decimal("5"),
        "close_threshold_usd": Decimal("1000"),
        "order_size_usd": Decimal("100"),
        "max_deviation_bps": Decimal("50"),
        "cancel_on_start": True,
        "price_poll_interval_s": 5.0,
        "price_source": "oracle",
        "api_url": "https://api.hyperliquid-testnet.xyz",
    }
    base.update(overrides)
    return SimpleNamespace(**base)


def ok_statuses(*statuses, kind: str = "order"):
    return {"status": "ok", "response": {"type": kind, "data": {"statuses": list(statuses)}}}


def make_gateway(universe=None, open_orders=None):
    gateway = MagicMock()
    gateway.fetch_markets = AsyncMock(return_value=list(universe or UNIVERSE))
    gateway.query_open_orders = AsyncMock(return_value=list(open_orders or []))
    gateway.submit = AsyncMock(return_value=ok_statuses({"resting": {"oid": 1}}))
    gateway.cancel = AsyncMock(return_value=ok_statuses("success", kind="cancel"))
    gateway.cancel_batch = AsyncMock(return_value=ok_statuses(kind="cancel"))
    gateway.fetch_position_notional = AsyncMock(return_value=Decimal("0"))
    gateway.fetch_orderbook = AsyncMock(return_value=OrderbookSnapshot())
    return gateway


def open_order_record(oid, *, coin="ETH", side="B", px="99.9", sz="1", orig_sz=None, **extra):
    record = {
        "coin": coin,
        "oid": oid,
        "side": side,
        "limitPx": px,
        "sz": sz,
        "origSz": orig_sz if orig_sz is not None else sz,
        "timestamp": 1700000000000,
        "reduceOnly": False,
        "tif": "Alo",
    }
    record.update(extra)
    return record
