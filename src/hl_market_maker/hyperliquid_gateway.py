"""
Hyperliquid Gateway

Adapts the synchronous ``hyperliquid-python-sdk`` clients to the async
``ExchangeGatewayLike`` seam.  Every SDK call runs in a worker thread so the
event loop (price feed, control loop) is never blocked on HTTP.

Market ids are perp asset indices (position in the ``meta`` universe); the
SDK addresses markets by coin name, so the gateway keeps the index → coin
map from the last ``fetch_markets`` call.
"""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from eth_account import Account
from hyperliquid.exchange import Exchange
from hyperliquid.info import Info
from hyperliquid.utils.types import Cloid

from .config import MarketMakerSettings
from .errors import MarketNotFoundError
from .models import OrderbookSnapshot, PriceLevel
from .utils import safe_decimal

logger = logging.getLogger(__name__)


class HyperliquidGateway:
    """Order gateway backed by the Hyperliquid ``Info`` / ``Exchange`` clients."""

    def __init__(self, info: Info, exchange: Exchange, account_address: str) -> None:
        self._info = info
        self._exchange = exchange
        self._account_address = account_address
        self._coins_by_asset: Dict[int, str] = {}

    @classmethod
    def from_settings(cls, settings: MarketMakerSettings) -> "HyperliquidGateway":
        wallet = Account.from_key(settings.private_key)
        account_address = settings.account_address or wallet.address
        info = Info(settings.api_url, skip_ws=True)
        exchange = Exchange(
            wallet,
            settings.api_url,
            account_address=settings.account_address or None,
            vault_address=settings.vault_address or None,
        )
        # Orders and positions live on the vault when trading on its behalf.
        query_address = settings.vault_address or account_address
        logger.info(
            "Hyperliquid gateway ready: env=%s account=%s",
            settings.environment.value, query_address,
        )
        return cls(info, exchange, query_address)

    @property
    def account_address(self) -> str:
        return self._account_address

    def _coin(self, market_id: int) -> str:
        coin = self._coins_by_asset.get(market_id)
        if coin is None:
            raise MarketNotFoundError(f"asset {market_id}")
        return coin

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def fetch_markets(self) -> List[Dict[str, Any]]:
        meta = await asyncio.to_thread(self._info.meta)
        universe = list(meta.get("universe", []))
        self._coins_by_asset = {
            asset_id: str(entry["name"]) for asset_id, entry in enumerate(universe)
        }
        return universe

    async def fetch_orderbook(self, coin: str) -> OrderbookSnapshot:
        snapshot = await asyncio.to_thread(self._info.l2_snapshot, coin)
        levels = snapshot.get("levels") or [[], []]
        bids, asks = (levels + [[], []])[:2]
        return OrderbookSnapshot(
            bids=tuple(PriceLevel(safe_decimal(lvl["px"]), safe_decimal(lvl["sz"])) for lvl in bids),
            asks=tuple(PriceLevel(safe_decimal(lvl["px"]), safe_decimal(lvl["sz"])) for lvl in asks),
        )

    async def fetch_position_notional(self, coin: str) -> Decimal:
        """Signed position value in USD: positive long, negative short."""
        state = await asyncio.to_thread(self._info.user_state, self._account_address)
        for entry in state.get("assetPositions", []):
            position = entry.get("position", {})
            if position.get("coin") != coin:
                continue
            size = safe_decimal(position.get("szi"))
            value = abs(safe_decimal(position.get("positionValue")))
            if size < 0:
                return -value
            return value if size > 0 else Decimal("0")
        return Decimal("0")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def submit(
        self,
        *,
        market_id: int,
        is_buy: bool,
        price: str,
        size: str,
        reduce_only: bool,
        tif: str,
        client_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        coin = self._coin(market_id)
        cloid = Cloid.from_str(client_id) if client_id else None
        return await asyncio.to_thread(
            self._exchange.order,
            coin,
            is_buy,
            float(size),
            float(price),
            {"limit": {"tif": tif}},
            reduce_only,
            cloid,
        )

    async def cancel(self, market_id: int, order_id: int) -> Dict[str, Any]:
        return await asyncio.to_thread(self._exchange.cancel, self._coin(market_id), order_id)

    async def cancel_batch(self, cancels: Sequence[tuple[int, int]]) -> Dict[str, Any]:
        requests = [{"coin": self._coin(asset), "oid": oid} for asset, oid in cancels]
        return await asyncio.to_thread(self._exchange.bulk_cancel, requests)

    async def query_open_orders(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._info.frontend_open_orders, self._account_address)
