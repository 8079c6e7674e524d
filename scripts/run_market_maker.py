#!/usr/bin/env python
"""Run the Hyperliquid market maker from a source checkout.

Configuration comes from ``MM_*`` environment variables (or the env file
selected by ``ENV``); see ``hl_market_maker.config``.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hl_market_maker.strategy import MarketMakerStrategy  # noqa: E402

if __name__ == "__main__":
    asyncio.run(MarketMakerStrategy.run())
