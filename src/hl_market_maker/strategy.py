"""
Market Maker Strategy

Control loop around the quote engine and the order lifecycle manager:
every fair-price tick recomputes the quote, and resting orders are replaced
when they drift too far from fair, when the quoted sides change, or when
close mode flips the reduce-only flag.

All lifecycle calls for the symbol go through one lock, so at most one
requote cycle is in flight at a time.
"""
from __future__ import annotations

import asyncio
import logging
import signal
import sys
from decimal import Decimal
from typing import List, Optional

from .config import MarketMakerSettings
from .errors import OrderLifecycleError
from .market_metadata import MarketDirectory, MarketMetadataCache
from .models import MarketInfo, Order, OrderRequest, Quote
from .order_manager import OrderLifecycleManager
from .price_feed import HyperpsPriceFeed
from .public_markets import PublicMarketsClient
from .quote_engine import QuoteEngine
from .staleness import is_order_stale
from .types import ExchangeGatewayLike

logger = logging.getLogger(__name__)


class MarketMakerStrategy:
    """Single-symbol quoting loop."""

    def __init__(
        self,
        settings: MarketMakerSettings,
        gateway: ExchangeGatewayLike,
        *,
        markets: Optional[MarketDirectory] = None,
        price_feed: Optional[HyperpsPriceFeed] = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._markets = markets if markets is not None else MarketDirectory(gateway)
        self._engine = QuoteEngine(settings, MarketMetadataCache())
        self._orders = OrderLifecycleManager(gateway, self._markets)
        self._feed = price_feed

        self._market: Optional[MarketInfo] = None
        self._fair_price: Optional[Decimal] = None
        self._requote_task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._shutdown_event = asyncio.Event()

        self.last_quote: Optional[Quote] = None

    @property
    def orders(self) -> OrderLifecycleManager:
        return self._orders

    @property
    def engine(self) -> QuoteEngine:
        return self._engine

    @property
    def symbol(self) -> str:
        return self._market.symbol if self._market is not None else self._settings.symbol

    # ------------------------------------------------------------------
    # Class-level entry point
    # ------------------------------------------------------------------

    @classmethod
    async def run(cls) -> None:
        """Load config, initialise components, and run the strategy."""
        from .hyperliquid_gateway import HyperliquidGateway

        settings = MarketMakerSettings()

        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            stream=sys.stdout,
        )

        if not settings.enabled:
            logger.warning("MM_ENABLED is false, exiting")
            return
        if not settings.is_configured:
            logger.error("Missing credentials (MM_PRIVATE_KEY). Exiting.")
            return

        logger.info(
            "Market maker starting: symbol=%s env=%s spread=%sbps take_profit=%sbps "
            "close_threshold=$%s size=$%s source=%s",
            settings.symbol,
            settings.environment.value,
            settings.spread_bps,
            settings.take_profit_bps,
            settings.close_threshold_usd,
            settings.order_size_usd,
            settings.price_source.value,
        )

        gateway = await asyncio.to_thread(HyperliquidGateway.from_settings, settings)
        strategy = cls(settings, gateway)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, strategy._handle_signal)

        try:
            await strategy.start()
            await strategy._shutdown_event.wait()
        finally:
            logger.info("Shutting down, cancelling orders...")
            await strategy.shutdown()
            logger.info("Market maker stopped")

    def _handle_signal(self) -> None:
        logger.info("Signal received, initiating shutdown")
        self._shutdown_event.set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._market = await self._markets.resolve(self._settings.symbol)
        self._engine.set_market(self._market.metadata)
        logger.info(
            "Market loaded: %s asset=%d tick=%s size_decimals=%d",
            self._market.symbol,
            self._market.market_id,
            self._market.tick_size,
            self._market.size_precision,
        )

        if self._settings.cancel_on_start:
            await self._orders.cancel_all_orders(self._market.symbol)

        if self._feed is None:
            self._feed = HyperpsPriceFeed(
                self._market.base,
                self.on_price,
                PublicMarketsClient(api_base=self._settings.api_url),
                poll_interval_s=self._settings.price_poll_interval_s,
                source=self._settings.price_source,
            )
        await self._feed.start()

    async def shutdown(self) -> None:
        if self._feed is not None:
            await self._feed.stop()
        if self._requote_task is not None:
            self._requote_task.cancel()
            await asyncio.gather(self._requote_task, return_exceptions=True)
            self._requote_task = None
        async with self._lock:
            try:
                await self._orders.cancel_all_orders(self.symbol)
            except Exception as exc:
                logger.error("Failed to cancel orders on shutdown: %s", exc)

    # ------------------------------------------------------------------
    # Price ticks
    # ------------------------------------------------------------------

    def on_price(self, price: Decimal, timestamp: int) -> None:
        """Price feed callback: remember the price and schedule a requote."""
        if price <= 0:
            logger.warning("Ignoring non-positive fair price %s at %d", price, timestamp)
            return
        self._fair_price = price
        if self._requote_task is None or self._requote_task.done():
            self._requote_task = asyncio.create_task(self._requote(), name="mm-requote")

    async def _requote(self) -> None:
        # Ticks that arrive mid-cycle are coalesced into one more pass.
        while True:
            price = self._fair_price
            if price is None:
                return
            try:
                await self.update_quotes(price)
            except Exception as exc:
                logger.error("Requote failed at fair=%s: %s", price, exc)
            if self._fair_price == price or self._shutdown_event.is_set():
                return

    async def update_quotes(self, fair_price: Decimal) -> Optional[Quote]:
        """Run one quote/reconcile cycle at *fair_price*."""
        if fair_price <= 0:
            return None
        async with self._lock:
            coin = self._market.base if self._market is not None else self._settings.coin
            position_notional = await self._gateway.fetch_position_notional(coin)
            orderbook = await self._gateway.fetch_orderbook(coin)

            quote = self._engine.generate_quote(fair_price, position_notional, orderbook)
            self.last_quote = quote
            desired = self._engine.quote_to_orders(quote)

            resting = await self._orders.get_open_orders(self.symbol)
            reason = self.requote_reason(resting, desired, quote)
            if reason is None:
                logger.debug("Resting orders still valid at fair=%s", fair_price)
                return quote

            logger.info(
                "Requoting (%s): fair=%s bid=%s x %s ask=%s x %s close_mode=%s",
                reason, fair_price, quote.bid_price, quote.bid_size,
                quote.ask_price, quote.ask_size, quote.is_close_mode,
            )
            if resting:
                await self._orders.cancel_all_orders(self.symbol)
            for order in desired:
                try:
                    await self._orders.place_order(order)
                except OrderLifecycleError as exc:
                    logger.warning("Quote not placed: side=%s error=%s", order.side.value, exc)
            return quote

    def requote_reason(
        self,
        resting: List[Order],
        desired: List[OrderRequest],
        quote: Quote,
    ) -> Optional[str]:
        """Why the resting orders must be replaced, or None to keep them."""
        if not resting:
            return "no_orders" if desired else None
        if len(resting) != len(desired):
            return "order_count"
        if {o.side for o in resting} != {d.side for d in desired}:
            return "sides"
        if any(o.reduce_only != quote.is_close_mode for o in resting):
            return "close_mode"
        max_dev = self._settings.max_deviation_bps
        if any(is_order_stale(o.price, quote.fair_price, max_dev) for o in resting):
            return "stale"
        return None
