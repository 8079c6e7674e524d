from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .models import MarketInfo, OrderbookSnapshot


@runtime_checkable
class QuoteSettingsLike(Protocol):
    symbol: str
    spread_bps: Decimal
    take_profit_bps: Decimal
    close_threshold_usd: Decimal
    order_size_usd: Decimal


@runtime_checkable
class ExchangeGatewayLike(Protocol):
    """Transport seam to the exchange.

    Order responses use the Hyperliquid envelope
    ``{"status": "ok", "response": {"type": ..., "data": {"statuses": [...]}}}``.
    """

    async def fetch_markets(self) -> List[Dict[str, Any]]: ...

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
    ) -> Dict[str, Any]: ...

    async def cancel(self, market_id: int, order_id: int) -> Dict[str, Any]: ...

    async def cancel_batch(self, cancels: Sequence[tuple[int, int]]) -> Dict[str, Any]: ...

    async def query_open_orders(self) -> List[Dict[str, Any]]: ...

    async def fetch_orderbook(self, coin: str) -> OrderbookSnapshot: ...

    async def fetch_position_notional(self, coin: str) -> Decimal: ...


@runtime_checkable
class MarketDirectoryLike(Protocol):
    async def resolve(self, symbol: str) -> MarketInfo: ...
    async def ensure_loaded(self) -> None: ...
    def find_by_coin(self, coin: str) -> Optional[MarketInfo]: ...
