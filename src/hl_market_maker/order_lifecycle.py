"""
Order Lifecycle Operations

place_order, cancel_order, cancel_all_orders and get_open_orders as used by
``OrderLifecycleManager``.  These are the operations that talk to the
exchange gateway and turn its responses into results or typed errors.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .errors import (
    CancelFailedError,
    MarketNotFoundError,
    OrderNotFoundError,
    OrderRejectedError,
    UnexpectedStatusError,
)
from .market_metadata import base_of
from .models import (
    CancelAllSummary,
    CancelFailure,
    Order,
    OrderRequest,
    OrderResult,
    OrderResultStatus,
    OrderSide,
    TimeInForce,
)
from .order_responses import (
    Filled,
    Rejected,
    Resting,
    decode_order_status,
    extract_statuses,
    is_already_resolved,
    is_success,
    status_error,
    top_level_error,
    unwrap_batch_statuses,
)
from .utils import format_fixed, format_price, safe_decimal

if TYPE_CHECKING:
    from .order_manager import OrderLifecycleManager

logger = logging.getLogger(__name__)

# Label for open orders whose coin is missing from the market directory.
_UNKNOWN_SYMBOL_FMT = "{coin}/USD:USD"

# String statuses that are only reachable for non-limit orders.
_KNOWN_PENDING_STATUSES = {
    "waitingForFill": "Order status 'waitingForFill' - order ID not available yet",
    "waitingForTrigger": "Order status 'waitingForTrigger' - unexpected for limit orders",
}


async def place_order(mgr: OrderLifecycleManager, order: OrderRequest) -> OrderResult:
    """Submit one limit order and classify the exchange's answer."""
    try:
        market = await mgr._markets.resolve(order.symbol)
        tif = TimeInForce.ALO if order.post_only else TimeInForce.GTC
        price_str = format_price(order.price, market.price_precision)
        size_str = format_fixed(order.size, market.size_precision)

        logger.debug(
            "Placing order: %s %s %s @ %s tif=%s reduce_only=%s",
            order.side.value, size_str, order.symbol, price_str, tif.value, order.reduce_only,
        )
        response = await mgr._gateway.submit(
            market_id=market.market_id,
            is_buy=order.side == OrderSide.BUY,
            price=price_str,
            size=size_str,
            reduce_only=order.reduce_only,
            tif=tif.value,
            client_id=order.client_id,
        )

        rejection = top_level_error(response)
        if rejection is not None:
            raise OrderRejectedError(rejection)

        statuses = extract_statuses(response) or []
        if not statuses:
            raise UnexpectedStatusError(response, detail="No order status in response")
        status = statuses[0]

        if isinstance(status, str):
            raise UnexpectedStatusError(
                status,
                detail=_KNOWN_PENDING_STATUSES.get(status, f"Unknown order status: {status}"),
            )

        outcome = decode_order_status(status)
        if isinstance(outcome, Rejected):
            raise OrderRejectedError(outcome.message)
        if isinstance(outcome, Resting):
            result_status = OrderResultStatus.OPEN
        elif isinstance(outcome, Filled):
            result_status = OrderResultStatus.CLOSED
            logger.info(
                "Order immediately filled: %s @ %s", outcome.total_size, outcome.avg_price,
            )
        else:
            raise UnexpectedStatusError(status)

        result = OrderResult(
            order_id=outcome.order_id,
            client_id=outcome.client_id,
            status=result_status,
            timestamp=int(time.time() * 1000),
            raw=response,
        )
        logger.info(
            "Order placed: id=%s status=%s side=%s price=%s size=%s",
            result.order_id, result.status.value, order.side.value, price_str, size_str,
        )
        return result
    except Exception as exc:
        logger.error(
            "Failed to place order: side=%s price=%s size=%s symbol=%s error=%s",
            order.side.value, order.price, order.size, order.symbol, exc,
        )
        raise


async def cancel_order(
    mgr: OrderLifecycleManager,
    order_id: str,
    symbol: Optional[str] = None,
) -> None:
    """Cancel a single order, discovering its market when *symbol* is omitted."""
    try:
        if symbol is None:
            open_orders = await get_open_orders(mgr)
            match = next((o for o in open_orders if o.id == order_id), None)
            if match is None:
                raise OrderNotFoundError(order_id)
            symbol = match.symbol
        market = await mgr._markets.resolve(symbol)

        logger.debug("Canceling order %s (asset %d)", order_id, market.market_id)
        response = await mgr._gateway.cancel(market.market_id, int(order_id))
        rejection = top_level_error(response)
        if rejection is not None:
            raise CancelFailedError(order_id, rejection)

        statuses = extract_statuses(response) or []
        if not statuses:
            raise UnexpectedStatusError(response, detail="No cancellation status in response")
        status = statuses[0]

        if is_success(status):
            logger.info("Order canceled: %s", order_id)
            return
        if is_already_resolved(status):
            logger.info("Order %s was already canceled or filled", order_id)
            return
        raise CancelFailedError(order_id, status_error(status))
    except Exception as exc:
        logger.error("Failed to cancel order %s: %s", order_id, exc)
        raise


async def cancel_all_orders(
    mgr: OrderLifecycleManager,
    symbol: Optional[str] = None,
) -> CancelAllSummary:
    """Cancel every open order (optionally for one symbol) in one batch.

    Per-order failures are counted and logged, never raised.  Failing to
    list open orders or to resolve any order's market fails the call.
    """
    try:
        open_orders = await get_open_orders(mgr, symbol)
        if not open_orders:
            logger.info("No open orders to cancel")
            return CancelAllSummary()

        logger.debug("Canceling %d open orders", len(open_orders))
        cancels = []
        for order in open_orders:
            market = mgr._markets.find_by_coin(base_of(order.symbol))
            if market is None:
                raise MarketNotFoundError(order.symbol)
            cancels.append((market.market_id, int(order.id)))

        batch = await unwrap_batch_statuses(mgr._gateway.cancel_batch(cancels))
        if batch.from_error:
            logger.debug("Batch cancel statuses recovered from error response")
    except Exception as exc:
        logger.error("Failed to cancel all orders: %s", exc)
        raise

    success_count = 0
    failures: List[CancelFailure] = []
    for index, status in enumerate(batch.statuses):
        if is_success(status) or is_already_resolved(status):
            success_count += 1
            continue
        order_id = open_orders[index].id if index < len(open_orders) else "?"
        message = status_error(status)
        failures.append(CancelFailure(order_id=order_id, message=message))
        logger.warning("Failed to cancel order %s: %s", order_id, message)

    logger.info(
        "Canceled %d orders successfully, %d failed", success_count, len(failures),
    )
    return CancelAllSummary(
        success_count=success_count,
        fail_count=len(failures),
        failures=tuple(failures),
    )


def _map_open_order(mgr: OrderLifecycleManager, record: Dict[str, Any]) -> Order:
    coin = str(record.get("coin", ""))
    market = mgr._markets.find_by_coin(coin)
    symbol = market.symbol if market is not None else _UNKNOWN_SYMBOL_FMT.format(coin=coin)

    current_size = safe_decimal(record.get("sz"))
    original_size = safe_decimal(record.get("origSz", record.get("sz")))
    tif = record.get("tif")

    return Order(
        id=str(record.get("oid")),
        client_id=record.get("cloid"),
        symbol=symbol,
        side=OrderSide.BUY if record.get("side") == "B" else OrderSide.SELL,
        price=safe_decimal(record.get("limitPx")),
        size=original_size,
        filled=original_size - current_size,
        remaining=current_size,
        status="open",
        timestamp=int(record.get("timestamp") or 0),
        reduce_only=bool(record.get("reduceOnly", False)),
        post_only=(tif == TimeInForce.ALO.value) if tif is not None else None,
        raw=record,
    )


async def get_open_orders(
    mgr: OrderLifecycleManager,
    symbol: Optional[str] = None,
) -> List[Order]:
    """List resting orders, mapped to ``Order`` and optionally filtered by symbol."""
    try:
        logger.debug("Fetching open orders")
        records = await mgr._gateway.query_open_orders()
        await mgr._markets.ensure_loaded()

        if symbol is not None:
            # Match the coin the directory resolves, so "eth" finds ETH orders.
            market = mgr._markets.find_by_coin(base_of(symbol))
            base = market.base if market is not None else base_of(symbol)
            records = [r for r in records if r.get("coin") == base]

        orders = [_map_open_order(mgr, record) for record in records]
        logger.debug("Fetched %d open orders", len(orders))
        return orders
    except Exception as exc:
        logger.error("Failed to fetch open orders: %s", exc)
        raise
