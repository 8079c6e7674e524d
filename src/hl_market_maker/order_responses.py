"""
Order response decoding

Hyperliquid reports per-order outcomes as a heterogeneous list: plain
strings (``"success"``, ``"waitingForFill"``), or one-key objects
(``{"resting": ...}``, ``{"filled": ...}``, ``{"error": ...}``).  These are
decoded once here into a closed set of outcome types so callers can match
on them exhaustively.

Batched cancels have a transport quirk: partial failures may arrive inside
a raised exception that still carries the full response payload.
``unwrap_batch_statuses`` recovers the status list from either path.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, List, Optional, Union

from .errors import UnexpectedStatusError
from .utils import safe_decimal

SUCCESS = "success"
_ALREADY_GONE_MARKERS = ("already canceled, or filled", "already cancelled, or filled")


@dataclass(frozen=True)
class Resting:
    order_id: str
    client_id: Optional[str] = None


@dataclass(frozen=True)
class Filled:
    order_id: str
    client_id: Optional[str] = None
    total_size: Decimal = Decimal("0")
    avg_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class Rejected:
    message: str


@dataclass(frozen=True)
class Unrecognized:
    raw: Any


OrderOutcome = Union[Resting, Filled, Rejected, Unrecognized]


def decode_order_status(status: Any) -> OrderOutcome:
    if isinstance(status, dict):
        if "error" in status:
            return Rejected(message=str(status["error"]))
        resting = status.get("resting")
        if isinstance(resting, dict) and "oid" in resting:
            return Resting(order_id=str(resting["oid"]), client_id=resting.get("cloid"))
        filled = status.get("filled")
        if isinstance(filled, dict) and "oid" in filled:
            return Filled(
                order_id=str(filled["oid"]),
                client_id=filled.get("cloid"),
                total_size=safe_decimal(filled.get("totalSz")),
                avg_price=safe_decimal(filled.get("avgPx")),
            )
    return Unrecognized(raw=status)


def top_level_error(response: Any) -> Optional[str]:
    """Message of an ``{"status": "err", "response": msg}`` envelope, else None."""
    if isinstance(response, dict) and response.get("status") == "err":
        return str(response.get("response", ""))
    return None


def extract_statuses(response: Any) -> Optional[List[Any]]:
    try:
        statuses = response["response"]["data"]["statuses"]
    except (KeyError, TypeError, IndexError):
        return None
    if not isinstance(statuses, list):
        return None
    return statuses


def statuses_from_error(exc: BaseException) -> Optional[List[Any]]:
    """Dig a status array out of an exception wrapping a response payload."""
    for attr in ("response", "error_data", "data"):
        payload = getattr(exc, attr, None)
        if payload is None:
            continue
        statuses = extract_statuses(payload)
        if statuses is not None:
            return statuses
    return None


def is_success(status: Any) -> bool:
    return status == SUCCESS


def status_error(status: Any) -> str:
    if isinstance(status, dict) and "error" in status:
        return str(status["error"])
    return repr(status)


def is_already_resolved(status: Any) -> bool:
    """The order was already cancelled or filled by the time we cancelled it."""
    if not isinstance(status, dict):
        return False
    message = str(status.get("error", "")).lower()
    return any(marker in message for marker in _ALREADY_GONE_MARKERS)


@dataclass(frozen=True)
class BatchStatuses:
    statuses: List[Any]
    from_error: bool = False


async def unwrap_batch_statuses(pending: Awaitable[Any]) -> BatchStatuses:
    """Await a batched request and return its per-order statuses.

    Exceptions that carry no status array propagate unchanged.
    """
    try:
        response = await pending
    except Exception as exc:
        statuses = statuses_from_error(exc)
        if statuses is None:
            raise
        return BatchStatuses(statuses=statuses, from_error=True)

    statuses = extract_statuses(response)
    if statuses is None:
        message = top_level_error(response)
        raise UnexpectedStatusError(
            response,
            detail=f"No statuses in batch response: {message or response!r}",
        )
    return BatchStatuses(statuses=statuses)
