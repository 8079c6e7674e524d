from __future__ import annotations

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from hl_market_maker.config_env import PriceSource
from hl_market_maker.price_feed import HyperpsPriceFeed

META = {"universe": [{"name": "BTC"}, {"name": "HYPE"}]}


def _client(ctxs):
    client = MagicMock()
    client.fetch_meta_and_asset_ctxs.return_value = (META, ctxs)
    return client


@pytest.mark.asyncio
async def test_poll_once_delivers_oracle_price():
    callback = MagicMock()
    client = _client([{"oraclePx": "60000"}, {"oraclePx": "25.5", "midPx": "25.6"}])
    feed = HyperpsPriceFeed("HYPE/USDC:USDC", callback, client)

    price = await feed.poll_once()

    assert price == Decimal("25.5")
    callback.assert_called_once()
    delivered, timestamp = callback.call_args.args
    assert delivered == Decimal("25.5")
    assert timestamp > 0
    assert feed.last_price == Decimal("25.5")
    assert feed.last_timestamp == timestamp


@pytest.mark.asyncio
async def test_poll_once_can_use_mid_price():
    callback = MagicMock()
    client = _client([{"oraclePx": "60000"}, {"oraclePx": "25.5", "midPx": "25.6"}])
    feed = HyperpsPriceFeed("hype", callback, client, source=PriceSource.MID)

    assert await feed.poll_once() == Decimal("25.6")


@pytest.mark.asyncio
async def test_poll_once_ignores_unknown_coin_and_bad_prices():
    callback = MagicMock()
    missing = HyperpsPriceFeed("SOL", callback, _client([{}, {}]))
    assert await missing.poll_once() is None

    for raw in ("0", "-1", None, "NaN"):
        feed = HyperpsPriceFeed("HYPE", callback, _client([{}, {"oraclePx": raw}]))
        assert await feed.poll_once() is None
    callback.assert_not_called()


@pytest.mark.asyncio
async def test_start_polls_immediately_and_stop_cancels_loop():
    callback = MagicMock()
    client = _client([{}, {"oraclePx": "25.5"}])
    feed = HyperpsPriceFeed("HYPE", callback, client, poll_interval_s=0.01)

    await feed.start()
    assert feed.connected is True
    assert callback.call_count == 1

    await asyncio.sleep(0.1)
    await feed.stop()

    assert feed.connected is False
    assert callback.call_count >= 2


@pytest.mark.asyncio
async def test_poll_loop_survives_fetch_errors():
    callback = MagicMock()
    client = _client([{}, {"oraclePx": "25.5"}])
    feed = HyperpsPriceFeed("HYPE", callback, client, poll_interval_s=0.01)
    await feed.start()

    client.fetch_meta_and_asset_ctxs.side_effect = ConnectionError("down")
    await asyncio.sleep(0.1)
    client.fetch_meta_and_asset_ctxs.side_effect = None
    await asyncio.sleep(0.1)
    await feed.stop()

    assert callback.call_count >= 2
