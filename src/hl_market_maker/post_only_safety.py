from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from .market_metadata import price_tick
from .models import OrderbookSnapshot

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


def clamp_bid(bid_price: Decimal, best_ask: Optional[Decimal], tick_size: Decimal) -> Decimal:
    """Keep a post-only bid strictly below the best ask."""
    if best_ask is None or bid_price < best_ask:
        return bid_price
    max_bid = max(_ZERO, best_ask - price_tick(best_ask, tick_size))
    logger.debug(
        "Adjusting bid from %s to %s to avoid taking liquidity (best ask %s)",
        bid_price, max_bid, best_ask,
    )
    return min(bid_price, max_bid)


def clamp_ask(ask_price: Decimal, best_bid: Optional[Decimal], tick_size: Decimal) -> Decimal:
    """Keep a post-only ask strictly above the best bid."""
    if best_bid is None or ask_price > best_bid:
        return ask_price
    min_ask = best_bid + price_tick(best_bid, tick_size)
    logger.debug(
        "Adjusting ask from %s to %s to avoid taking liquidity (best bid %s)",
        ask_price, min_ask, best_bid,
    )
    return max(ask_price, min_ask)


def clamp_to_book(
    *,
    bid_price: Decimal,
    ask_price: Decimal,
    orderbook: OrderbookSnapshot,
    tick_size: Decimal,
) -> tuple[Decimal, Decimal]:
    """Clamp both sides against the opposite top of book.

    The two checks are independent; each only moves its own side.  The step
    away from the book is one effective tick at the book price, so the
    result stays on the exchange's price grid.
    """
    best_ask = orderbook.best_ask()
    best_bid = orderbook.best_bid()
    return (
        clamp_bid(bid_price, best_ask.price if best_ask is not None else None, tick_size),
        clamp_ask(ask_price, best_bid.price if best_bid is not None else None, tick_size),
    )
