from __future__ import annotations

from typing import List

from .models import OrderRequest, OrderSide, Quote


def quote_to_orders(quote: Quote, symbol: str, reduce_only: bool = False) -> List[OrderRequest]:
    """Post-only limit requests for each quoted side, bid first.

    Close-mode quotes are always reduce-only, whatever *reduce_only* says.
    """
    reduce = reduce_only or quote.is_close_mode
    orders: List[OrderRequest] = []

    if quote.bid_size > 0:
        orders.append(
            OrderRequest(
                symbol=symbol,
                side=OrderSide.BUY,
                price=quote.bid_price,
                size=quote.bid_size,
                post_only=True,
                reduce_only=reduce,
            )
        )

    if quote.ask_size > 0:
        orders.append(
            OrderRequest(
                symbol=symbol,
                side=OrderSide.SELL,
                price=quote.ask_price,
                size=quote.ask_size,
                post_only=True,
                reduce_only=reduce,
            )
        )

    return orders
