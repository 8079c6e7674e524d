"""
Order Manager

Entry point for order submission and cancellation.  Wraps an exchange
gateway and a market directory; the operations themselves live in
``order_lifecycle``.

No locking is done here: callers serialise submit / cancel-all cycles per
symbol.  Nothing is retried; failures propagate to the caller.
"""
from __future__ import annotations

from typing import List, Optional

from . import order_lifecycle
from .models import CancelAllSummary, Order, OrderRequest, OrderResult
from .types import ExchangeGatewayLike, MarketDirectoryLike


class OrderLifecycleManager:
    """Places, cancels and lists orders through the exchange gateway."""

    def __init__(
        self,
        gateway: ExchangeGatewayLike,
        markets: MarketDirectoryLike,
    ) -> None:
        self._gateway = gateway
        self._markets = markets

    async def place_order(self, order: OrderRequest) -> OrderResult:
        return await order_lifecycle.place_order(self, order)

    async def place_orders(self, orders: List[OrderRequest]) -> List[OrderResult]:
        """Place *orders* one after another, stopping at the first failure."""
        results = []
        for order in orders:
            results.append(await self.place_order(order))
        return results

    async def cancel_order(self, order_id: str, symbol: Optional[str] = None) -> None:
        await order_lifecycle.cancel_order(self, order_id, symbol)

    async def cancel_all_orders(self, symbol: Optional[str] = None) -> CancelAllSummary:
        return await order_lifecycle.cancel_all_orders(self, symbol)

    async def get_open_orders(self, symbol: Optional[str] = None) -> List[Order]:
        return await order_lifecycle.get_open_orders(self, symbol)
