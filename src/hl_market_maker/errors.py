"""Order lifecycle error taxonomy."""
from __future__ import annotations

from typing import Any


class OrderLifecycleError(Exception):
    """Base class for failures surfaced by the order lifecycle manager."""


class MarketNotFoundError(OrderLifecycleError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Market not found for symbol: {symbol}")
        self.symbol = symbol


class OrderNotFoundError(OrderLifecycleError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class OrderRejectedError(OrderLifecycleError):
    """The exchange declined the order; ``message`` is the exchange's text."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Order rejected: {message}")
        self.message = message


class UnexpectedStatusError(OrderLifecycleError):
    """Response shape outside the known status taxonomy."""

    def __init__(self, status: Any, detail: str = "") -> None:
        text = detail or f"Unknown order status: {status!r}"
        super().__init__(text)
        self.status = status


class CancelFailedError(OrderLifecycleError):
    def __init__(self, order_id: str, message: str) -> None:
        super().__init__(f"Order cancellation failed for {order_id}: {message}")
        self.order_id = order_id
        self.message = message
