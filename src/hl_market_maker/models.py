from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Sequence


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    LIMIT = "limit"


class TimeInForce(str, Enum):
    """Hyperliquid limit-order time-in-force values."""

    ALO = "Alo"  # add liquidity only (post-only)
    GTC = "Gtc"


class OrderResultStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class MarketMetadata:
    tick_size: Decimal
    size_precision: int


@dataclass(frozen=True)
class MarketInfo:
    """Static description of one perp market."""

    symbol: str
    base: str
    market_id: int
    tick_size: Decimal
    size_precision: int
    price_precision: int

    @property
    def metadata(self) -> MarketMetadata:
        return MarketMetadata(tick_size=self.tick_size, size_precision=self.size_precision)


@dataclass(frozen=True)
class PriceLevel:
    """Snapshot of a single price level."""

    price: Decimal
    size: Decimal


@dataclass(frozen=True)
class OrderbookSnapshot:
    bids: Sequence[PriceLevel] = ()
    asks: Sequence[PriceLevel] = ()

    @classmethod
    def from_levels(
        cls,
        bids: Iterable[tuple[Any, Any]],
        asks: Iterable[tuple[Any, Any]],
    ) -> "OrderbookSnapshot":
        return cls(
            bids=tuple(PriceLevel(Decimal(str(p)), Decimal(str(s))) for p, s in bids),
            asks=tuple(PriceLevel(Decimal(str(p)), Decimal(str(s))) for p, s in asks),
        )

    def best_bid(self) -> Optional[PriceLevel]:
        return self.bids[0] if self.bids else None

    def best_ask(self) -> Optional[PriceLevel]:
        return self.asks[0] if self.asks else None


@dataclass(frozen=True)
class Quote:
    """Bid/ask pair around a fair price. A zero price or size skips that side."""

    bid_price: Decimal
    ask_price: Decimal
    bid_size: Decimal
    ask_size: Decimal
    fair_price: Decimal
    spread_bps: Decimal
    is_close_mode: bool


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    side: OrderSide
    price: Decimal
    size: Decimal
    post_only: bool = True
    reduce_only: bool = False
    type: OrderType = OrderType.LIMIT
    client_id: Optional[str] = None


@dataclass(frozen=True)
class OrderResult:
    order_id: str
    status: OrderResultStatus
    timestamp: int
    client_id: Optional[str] = None
    raw: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class Order:
    """A resting order as reported by the exchange."""

    id: str
    symbol: str
    side: OrderSide
    price: Decimal
    size: Decimal
    filled: Decimal
    remaining: Decimal
    status: str
    timestamp: int
    reduce_only: bool
    client_id: Optional[str] = None
    post_only: Optional[bool] = None
    type: OrderType = OrderType.LIMIT
    raw: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class CancelFailure:
    order_id: str
    message: str


@dataclass(frozen=True)
class CancelAllSummary:
    success_count: int = 0
    fail_count: int = 0
    failures: tuple[CancelFailure, ...] = ()
