"""
Hyperps price feed

Polls ``metaAndAssetCtxs`` and hands the fair price to a callback.  The
oracle price is the 8-hour EMA Hyperliquid uses for funding on
Hyperliquid-only perps, so it works for pre-market tokens with no external
spot reference.
"""
from __future__ import annotations

import asyncio
import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from .config_env import PriceSource
from .public_markets import PublicMarketsClient
from .utils import safe_decimal

logger = logging.getLogger(__name__)

PriceCallback = Callable[[Decimal, int], None]

_DEFAULT_POLL_INTERVAL_S = 5.0
_CTX_FIELDS = {
    PriceSource.ORACLE: "oraclePx",
    PriceSource.MID: "midPx",
}


class HyperpsPriceFeed:
    """Polling fair-price feed for a single coin."""

    def __init__(
        self,
        symbol: str,
        callback: PriceCallback,
        client: PublicMarketsClient,
        *,
        poll_interval_s: float = _DEFAULT_POLL_INTERVAL_S,
        source: PriceSource = PriceSource.ORACLE,
    ) -> None:
        self._symbol = symbol.split("/")[0]
        self._callback = callback
        self._client = client
        self._poll_interval_s = poll_interval_s
        self._source = source

        self._poll_task: Optional[asyncio.Task] = None
        self._last_price: Optional[Decimal] = None
        self._last_timestamp: Optional[int] = None
        self._connected = False

    @property
    def last_price(self) -> Optional[Decimal]:
        return self._last_price

    @property
    def last_timestamp(self) -> Optional[int]:
        return self._last_timestamp

    @property
    def connected(self) -> bool:
        return self._connected

    async def start(self) -> None:
        """Fetch an initial price, then keep polling in the background."""
        if self._connected:
            return
        logger.info(
            "Connecting price feed for %s (source=%s, every %.1fs)",
            self._symbol, self._source.value, self._poll_interval_s,
        )
        await self.poll_once()
        self._poll_task = asyncio.create_task(
            self._poll_loop(), name=f"price-feed-{self._symbol}",
        )
        self._connected = True

    async def stop(self) -> None:
        logger.info("Disconnecting price feed for %s", self._symbol)
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        self._connected = False

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval_s)
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.debug("Failed to fetch %s price: %s", self._symbol, exc)

    async def poll_once(self) -> Optional[Decimal]:
        """Fetch one price and deliver it; returns None when none was usable."""
        meta, ctxs = await asyncio.to_thread(self._client.fetch_meta_and_asset_ctxs)

        universe = meta.get("universe", [])
        wanted = self._symbol.upper()
        index = next(
            (i for i, asset in enumerate(universe) if str(asset.get("name", "")).upper() == wanted),
            None,
        )
        if index is None or index >= len(ctxs):
            logger.debug("Asset %s not found in Hyperliquid universe", self._symbol)
            return None

        price = safe_decimal(ctxs[index].get(_CTX_FIELDS[self._source]))
        if not price.is_finite() or price <= 0:
            return None

        timestamp = int(time.time() * 1000)
        self._last_price = price
        self._last_timestamp = timestamp
        self._callback(price, timestamp)
        return price
