from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from conftest import UNIVERSE, ok_statuses
from hl_market_maker.errors import MarketNotFoundError
from hl_market_maker.hyperliquid_gateway import HyperliquidGateway

ACCOUNT = "0x0000000000000000000000000000000000000001"


def _gateway():
    info = MagicMock()
    info.meta.return_value = {"universe": list(UNIVERSE)}
    exchange = MagicMock()
    return HyperliquidGateway(info, exchange, ACCOUNT), info, exchange


@pytest.mark.asyncio
async def test_fetch_markets_returns_universe():
    gateway, _, _ = _gateway()
    assert await gateway.fetch_markets() == UNIVERSE


@pytest.mark.asyncio
async def test_submit_routes_by_coin_name():
    gateway, _, exchange = _gateway()
    exchange.order.return_value = ok_statuses({"resting": {"oid": 1}})
    await gateway.fetch_markets()

    response = await gateway.submit(
        market_id=1, is_buy=True, price="99.90", size="1.0011", reduce_only=False, tif="Alo",
    )

    assert response == ok_statuses({"resting": {"oid": 1}})
    exchange.order.assert_called_once_with(
        "ETH", True, 1.0011, 99.9, {"limit": {"tif": "Alo"}}, False, None,
    )


@pytest.mark.asyncio
async def test_unknown_asset_raises_before_calling_exchange():
    gateway, _, exchange = _gateway()
    await gateway.fetch_markets()

    with pytest.raises(MarketNotFoundError):
        await gateway.cancel(99, 1)
    exchange.cancel.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_batch_uses_bulk_cancel():
    gateway, _, exchange = _gateway()
    await gateway.fetch_markets()

    await gateway.cancel_batch([(1, 10), (0, 11)])

    exchange.bulk_cancel.assert_called_once_with(
        [{"coin": "ETH", "oid": 10}, {"coin": "BTC", "oid": 11}]
    )


@pytest.mark.asyncio
async def test_query_open_orders_uses_account_address():
    gateway, info, _ = _gateway()
    info.frontend_open_orders.return_value = []

    assert gateway.account_address == ACCOUNT
    assert await gateway.query_open_orders() == []
    info.frontend_open_orders.assert_called_once_with(ACCOUNT)


@pytest.mark.asyncio
async def test_fetch_orderbook_maps_levels():
    gateway, info, _ = _gateway()
    info.l2_snapshot.return_value = {
        "coin": "ETH",
        "levels": [[{"px": "99.9", "sz": "3", "n": 1}], [{"px": "100.1", "sz": "2", "n": 1}]],
    }

    book = await gateway.fetch_orderbook("ETH")

    assert book.best_bid().price == Decimal("99.9")
    assert book.best_ask().size == Decimal("2")


@pytest.mark.asyncio
async def test_fetch_position_notional_is_signed():
    gateway, info, _ = _gateway()
    info.user_state.return_value = {
        "assetPositions": [
            {"position": {"coin": "ETH", "szi": "-0.5", "positionValue": "1250.0"}},
            {"position": {"coin": "BTC", "szi": "0.01", "positionValue": "600.0"}},
        ]
    }

    assert await gateway.fetch_position_notional("ETH") == Decimal("-1250.0")
    assert await gateway.fetch_position_notional("BTC") == Decimal("600.0")
    assert await gateway.fetch_position_notional("SOL") == Decimal("0")
