from __future__ import annotations

from decimal import Decimal

import pytest

from conftest import make_settings
from hl_market_maker.market_metadata import MarketMetadataCache
from hl_market_maker.models import MarketMetadata, OrderbookSnapshot, OrderSide
from hl_market_maker.quote_engine import QuoteEngine
from hl_market_maker.utils import format_price

ETH_META = MarketMetadata(tick_size=Decimal("0.01"), size_precision=3)


def _engine(metadata=None, **overrides):
    engine = QuoteEngine(make_settings(**overrides))
    if metadata is not None:
        engine.set_market(metadata)
    return engine


def test_symmetric_quote_without_metadata_keeps_raw_values():
    quote = _engine().generate_quote(Decimal("100"), Decimal("0"))

    assert quote.bid_price == Decimal("99.9")
    assert quote.ask_price == Decimal("100.1")
    assert quote.bid_size == Decimal("100") / Decimal("99.9")
    assert quote.ask_size == Decimal("100") / Decimal("100.1")
    assert quote.fair_price == Decimal("100")
    assert quote.spread_bps == Decimal("10")
    assert quote.is_close_mode is False


def test_metadata_aligns_prices_and_ceils_sizes():
    quote = _engine(ETH_META).generate_quote(Decimal("100"), Decimal("0"))

    assert quote.bid_price == Decimal("99.90")
    assert quote.ask_price == Decimal("100.10")
    assert quote.bid_size == Decimal("1.002")
    assert quote.ask_size == Decimal("1.000")
    assert quote.bid_size * quote.bid_price >= Decimal("100")
    assert quote.ask_size * quote.ask_price >= Decimal("100")


def test_prices_round_away_from_fair():
    quote = _engine(ETH_META).generate_quote(Decimal("100.003"), Decimal("0"))

    assert quote.bid_price == Decimal("99.90")
    assert quote.ask_price == Decimal("100.11")
    assert quote.bid_price < quote.fair_price < quote.ask_price


def test_round_to_tick_is_idempotent():
    tick = Decimal("0.01")
    once = QuoteEngine.round_to_tick(Decimal("99.9037"), tick, up=False)
    assert once == Decimal("99.90")
    assert QuoteEngine.round_to_tick(once, tick, up=False) == once
    assert QuoteEngine.round_to_tick(once, tick, up=True) == once


def test_round_size_ceils_to_precision():
    assert QuoteEngine.round_size(Decimal("0.12301"), 3) == Decimal("0.124")
    assert QuoteEngine.round_size(Decimal("4.2"), 0) == Decimal("5")


def test_long_over_threshold_quotes_only_ask_at_take_profit():
    quote = _engine(ETH_META).generate_quote(Decimal("100"), Decimal("1500"))

    assert quote.is_close_mode is True
    assert quote.spread_bps == Decimal("5")
    assert quote.bid_size == 0
    assert quote.ask_size > 0
    assert quote.ask_price == Decimal("100.05")


def test_short_over_threshold_quotes_only_bid():
    quote = _engine(ETH_META).generate_quote(Decimal("100"), Decimal("-1500"))

    assert quote.is_close_mode is True
    assert quote.ask_size == 0
    assert quote.bid_size > 0
    assert quote.bid_price == Decimal("99.95")


def test_position_at_threshold_is_not_close_mode():
    engine = _engine()
    assert engine.generate_quote(Decimal("100"), Decimal("1000")).is_close_mode is False
    assert engine.generate_quote(Decimal("100"), Decimal("-1000")).is_close_mode is False
    assert engine.generate_quote(Decimal("100"), Decimal("1000.01")).is_close_mode is True


def test_post_only_clamp_against_crossed_book():
    book = OrderbookSnapshot.from_levels(bids=[("100.20", "3")], asks=[("99.85", "2")])
    quote = _engine(ETH_META).generate_quote(Decimal("100"), Decimal("0"), book)

    assert quote.bid_price == Decimal("99.84")
    assert quote.ask_price == Decimal("100.21")


def test_book_without_metadata_is_ignored():
    book = OrderbookSnapshot.from_levels(bids=[("100.20", "3")], asks=[("99.85", "2")])
    quote = _engine().generate_quote(Decimal("100"), Decimal("0"), book)

    assert quote.bid_price == Decimal("99.9")
    assert quote.ask_price == Decimal("100.1")


def test_metadata_is_read_from_shared_cache():
    cache = MarketMetadataCache()
    engine = QuoteEngine(make_settings(), cache)
    assert engine.market is None

    cache.set("ETH", ETH_META)
    assert engine.market == ETH_META

    cache.clear("ETH")
    assert engine.generate_quote(Decimal("100"), Decimal("0")).bid_price == Decimal("99.9")


def test_quote_to_orders_uses_engine_symbol():
    engine = _engine(ETH_META)
    orders = engine.quote_to_orders(engine.generate_quote(Decimal("100"), Decimal("0")))

    assert [o.side for o in orders] == [OrderSide.BUY, OrderSide.SELL]
    assert all(o.symbol == "ETH" for o in orders)


def _sig_figs(price):
    text = format_price(price, 6)
    if "." not in text:
        return 0  # integer prices are always accepted
    return len(text.replace(".", "").lstrip("0"))


@pytest.mark.parametrize(
    "fair, meta, bid, ask",
    [
        ("3001.23", MarketMetadata(tick_size=Decimal("0.01"), size_precision=4), "2998.2", "3004.3"),
        ("97123.45", MarketMetadata(tick_size=Decimal("0.1"), size_precision=5), "97026", "97221"),
        ("25.4321", MarketMetadata(tick_size=Decimal("0.0001"), size_precision=2), "25.406", "25.458"),
    ],
)
def test_prices_respect_five_significant_figures(fair, meta, bid, ask):
    quote = _engine(meta).generate_quote(Decimal(fair), Decimal("0"))

    assert quote.bid_price == Decimal(bid)
    assert quote.ask_price == Decimal(ask)
    assert _sig_figs(quote.bid_price) <= 5
    assert _sig_figs(quote.ask_price) <= 5


def test_post_only_clamp_stays_on_significant_figure_grid():
    meta = MarketMetadata(tick_size=Decimal("0.01"), size_precision=4)
    book = OrderbookSnapshot.from_levels(bids=[("3004.4", "1")], asks=[("2998.1", "1")])

    quote = _engine(meta).generate_quote(Decimal("3001.23"), Decimal("0"), book)

    assert quote.bid_price == Decimal("2998.0")
    assert quote.ask_price == Decimal("3004.5")
    assert _sig_figs(quote.bid_price) <= 5
    assert _sig_figs(quote.ask_price) <= 5


@pytest.mark.parametrize("spread_bps", ["1", "5", "10", "25", "40"])
def test_width_is_proportional_to_spread(spread_bps):
    fair = Decimal("100")
    bps = Decimal(spread_bps)

    narrow = _engine(spread_bps=bps).generate_quote(fair, Decimal("0"))
    wide = _engine(spread_bps=bps * 2).generate_quote(fair, Decimal("0"))

    assert narrow.bid_price < fair < narrow.ask_price
    assert narrow.ask_price - narrow.bid_price == fair * 2 * bps / Decimal("10000")
    assert wide.ask_price - wide.bid_price == 2 * (narrow.ask_price - narrow.bid_price)


@pytest.mark.parametrize(
    "best_bid, best_ask",
    [
        ("99.80", "99.85"),
        ("99.80", "99.90"),
        ("99.89", "99.91"),
        ("100.10", "100.12"),
        ("100.20", "100.30"),
        ("99.00", "101.00"),
    ],
)
def test_quotes_never_cross_the_book(best_bid, best_ask):
    book = OrderbookSnapshot.from_levels(bids=[(best_bid, "1")], asks=[(best_ask, "1")])

    quote = _engine(ETH_META).generate_quote(Decimal("100"), Decimal("0"), book)

    assert quote.bid_price < Decimal(best_ask)
    assert quote.ask_price > Decimal(best_bid)
    assert quote.bid_price <= Decimal("99.90")
    assert quote.ask_price >= Decimal("100.10")
