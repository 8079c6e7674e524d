"""
Market metadata

``MarketDirectory`` turns the perp universe (``meta`` info endpoint) into
``MarketInfo`` records and resolves symbols to asset ids for the wire
protocol.  ``MarketMetadataCache`` is the explicit slot the quote engine
reads tick size / size precision from.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .errors import MarketNotFoundError
from .models import MarketInfo, MarketMetadata
from .types import ExchangeGatewayLike

logger = logging.getLogger(__name__)

# Perp prices may carry at most (6 - szDecimals) decimals and at most
# 5 significant figures; integer prices are always valid.
_PERP_MAX_DECIMALS = 6
_MAX_PRICE_SIG_FIGS = 5
QUOTE_SUFFIX = "/USDC:USDC"


def base_of(symbol: str) -> str:
    return symbol.split("/")[0] or symbol


def price_tick(price: Decimal, tick_size: Decimal) -> Decimal:
    """Effective tick at *price*: the coarser of *tick_size* and the 5-sig-fig step.

    ETH at 3001.23 with tick 0.01 quotes on a 0.1 grid; BTC above 10000 on
    whole dollars.
    """
    if price <= 0:
        return tick_size
    sig_fig_step = Decimal("1").scaleb(price.adjusted() - (_MAX_PRICE_SIG_FIGS - 1))
    return max(tick_size, min(Decimal("1"), sig_fig_step))


def market_from_universe_entry(asset_id: int, entry: Dict[str, Any]) -> MarketInfo:
    coin = str(entry["name"])
    size_precision = int(entry.get("szDecimals", 0))
    price_precision = max(0, _PERP_MAX_DECIMALS - size_precision)
    return MarketInfo(
        symbol=f"{coin}{QUOTE_SUFFIX}",
        base=coin,
        market_id=asset_id,
        tick_size=Decimal("1").scaleb(-price_precision),
        size_precision=size_precision,
        price_precision=price_precision,
    )


class MarketMetadataCache:
    """Per-symbol metadata slot. Last writer wins; no locking."""

    def __init__(self) -> None:
        self._by_symbol: Dict[str, MarketMetadata] = {}

    def get(self, symbol: str) -> Optional[MarketMetadata]:
        return self._by_symbol.get(symbol)

    def set(self, symbol: str, metadata: MarketMetadata) -> None:
        self._by_symbol[symbol] = metadata

    def clear(self, symbol: Optional[str] = None) -> None:
        if symbol is None:
            self._by_symbol.clear()
        else:
            self._by_symbol.pop(symbol, None)


class MarketDirectory:
    """Lazily loaded symbol → ``MarketInfo`` lookup backed by the gateway."""

    def __init__(self, gateway: ExchangeGatewayLike) -> None:
        self._gateway = gateway
        self._by_coin: Dict[str, MarketInfo] = {}
        self._loaded = False

    @property
    def markets(self) -> List[MarketInfo]:
        return list(self._by_coin.values())

    async def ensure_loaded(self) -> None:
        if not self._loaded:
            await self.refresh()

    async def refresh(self) -> None:
        universe = await self._gateway.fetch_markets()
        self.load(universe)

    def load(self, universe: Iterable[Dict[str, Any]]) -> None:
        self._by_coin = {}
        for asset_id, entry in enumerate(universe):
            market = market_from_universe_entry(asset_id, entry)
            self._by_coin[market.base] = market
        self._loaded = True
        logger.debug("Loaded %d perp markets", len(self._by_coin))

    def find_by_coin(self, coin: str) -> Optional[MarketInfo]:
        market = self._by_coin.get(coin)
        if market is not None:
            return market
        # Coins such as kPEPE are mixed case; fall back to a case-insensitive match.
        lowered = coin.lower()
        for candidate in self._by_coin.values():
            if candidate.base.lower() == lowered:
                return candidate
        return None

    async def resolve(self, symbol: str) -> MarketInfo:
        await self.ensure_loaded()
        market = self.find_by_coin(base_of(symbol))
        if market is None:
            raise MarketNotFoundError(symbol)
        return market
