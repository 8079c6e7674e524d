from __future__ import annotations

import logging
from decimal import ROUND_DOWN, ROUND_UP, Decimal
from typing import List, Optional, cast

from .market_metadata import MarketMetadataCache, price_tick
from .models import MarketMetadata, OrderbookSnapshot, OrderRequest, Quote
from .order_translator import quote_to_orders
from .post_only_safety import clamp_to_book
from .types import QuoteSettingsLike
from .utils import safe_decimal

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")
_BPS = Decimal("10000")


class QuoteEngine:
    """Bid/ask quote construction around a fair price.

    Pure with respect to its inputs: the only state read is the market
    metadata held in the injected cache.  Arithmetic stays in Decimal so
    tick alignment and size ceilings are exact.

    ``fair_price`` must be positive; callers filter non-positive prices
    before quoting.
    """

    _to_decimal = staticmethod(safe_decimal)

    def __init__(
        self,
        settings: object,
        metadata_cache: Optional[MarketMetadataCache] = None,
    ) -> None:
        self._settings = cast(QuoteSettingsLike, settings)
        self._cache = metadata_cache if metadata_cache is not None else MarketMetadataCache()

    @property
    def symbol(self) -> str:
        return self._settings.symbol

    def set_market(self, metadata: MarketMetadata) -> None:
        self._cache.set(self.symbol, metadata)
        logger.debug(
            "Quote engine market set: %s tick_size=%s size_precision=%d",
            self.symbol, metadata.tick_size, metadata.size_precision,
        )

    @property
    def market(self) -> Optional[MarketMetadata]:
        return self._cache.get(self.symbol)

    # ------------------------------------------------------------------
    # Rounding
    # ------------------------------------------------------------------

    @staticmethod
    def round_to_tick(price: Decimal, tick_size: Decimal, *, up: bool) -> Decimal:
        """Align *price* to the tick grid: down for bids, up for asks."""
        if tick_size <= 0:
            return price
        rounding = ROUND_UP if up else ROUND_DOWN
        return (price / tick_size).quantize(_ONE, rounding=rounding) * tick_size

    @staticmethod
    def round_size(size: Decimal, size_precision: int) -> Decimal:
        """Ceil *size* to the precision so the notional target is never undershot."""
        quant = _ONE.scaleb(-size_precision)
        return size.quantize(quant, rounding=ROUND_UP)

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def generate_quote(
        self,
        fair_price: Decimal,
        position_notional: Decimal,
        orderbook: Optional[OrderbookSnapshot] = None,
    ) -> Quote:
        fair = self._to_decimal(fair_price)
        notional = self._to_decimal(position_notional)

        is_close_mode = abs(notional) > self._to_decimal(self._settings.close_threshold_usd)
        spread_bps = self._to_decimal(
            self._settings.take_profit_bps if is_close_mode else self._settings.spread_bps
        )
        spread = spread_bps / _BPS

        bid_price = max(_ZERO, fair * (_ONE - spread))
        ask_price = max(_ZERO, fair * (_ONE + spread))

        market = self.market
        if market is not None:
            bid_price = self.round_to_tick(
                bid_price, price_tick(bid_price, market.tick_size), up=False,
            )
            ask_price = self.round_to_tick(
                ask_price, price_tick(ask_price, market.tick_size), up=True,
            )
            if orderbook is not None:
                bid_price, ask_price = clamp_to_book(
                    bid_price=bid_price,
                    ask_price=ask_price,
                    orderbook=orderbook,
                    tick_size=market.tick_size,
                )

        # Size from the actual order price: the spread would leave a
        # fair-price-sized bid short of the notional target.
        order_size_usd = self._to_decimal(self._settings.order_size_usd)
        bid_size = order_size_usd / bid_price if bid_price > 0 else _ZERO
        ask_size = order_size_usd / ask_price if ask_price > 0 else _ZERO

        if is_close_mode:
            if notional > 0:
                bid_size = _ZERO
                logger.debug("Close mode: long position, only asking")
            else:
                ask_size = _ZERO
                logger.debug("Close mode: short position, only bidding")

        if market is not None:
            if bid_size > 0:
                bid_size = self.round_size(bid_size, market.size_precision)
            if ask_size > 0:
                ask_size = self.round_size(ask_size, market.size_precision)

        return Quote(
            bid_price=bid_price,
            ask_price=ask_price,
            bid_size=bid_size,
            ask_size=ask_size,
            fair_price=fair,
            spread_bps=spread_bps,
            is_close_mode=is_close_mode,
        )

    def quote_to_orders(self, quote: Quote, reduce_only: bool = False) -> List[OrderRequest]:
        return quote_to_orders(quote, self.symbol, reduce_only=reduce_only)
