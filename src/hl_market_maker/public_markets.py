"""
Public market-data helpers for Hyperliquid.

Unauthenticated ``/info`` requests used by the price feed and the market
scanner.  Trading goes through ``hyperliquid_gateway`` instead.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import requests

MAINNET_API_BASE = "https://api.hyperliquid.xyz"
TESTNET_API_BASE = "https://api.hyperliquid-testnet.xyz"
INFO_PATH = "/info"


def resolve_default_api_base() -> str:
    """Resolve API base URL from environment with safe fallbacks.

    Priority:
    1) ``HL_API_BASE`` when explicitly set
    2) ``MM_ENVIRONMENT`` / ``HL_ENV`` equals ``mainnet`` or ``testnet``
    3) testnet default
    """
    explicit = os.getenv("HL_API_BASE", "").strip()
    if explicit:
        return explicit.rstrip("/")

    env = (
        os.getenv("MM_ENVIRONMENT")
        or os.getenv("HL_ENV")
        or "testnet"
    ).strip().lower()
    if env == "mainnet":
        return MAINNET_API_BASE
    return TESTNET_API_BASE


@dataclass
class PublicMarketsClient:
    """Simple wrapper around the public info endpoint."""

    api_base: str
    timeout_s: float = 10.0

    @classmethod
    def default(cls) -> "PublicMarketsClient":
        return cls(api_base=resolve_default_api_base())

    def post_info(self, payload: Dict[str, Any]) -> Any:
        url = f"{self.api_base}{INFO_PATH}"
        resp = requests.post(
            url,
            json=payload,
            headers={"User-Agent": "hl-market-maker/0.1"},
            timeout=self.timeout_s,
        )
        resp.raise_for_status()
        return resp.json()

    def fetch_meta_and_asset_ctxs(self) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        payload = self.post_info({"type": "metaAndAssetCtxs"})
        if not isinstance(payload, list) or len(payload) != 2:
            raise RuntimeError(f"Unexpected metaAndAssetCtxs payload: {payload!r}")

        meta, ctxs = payload
        if not isinstance(meta, dict) or not isinstance(meta.get("universe"), list):
            raise RuntimeError(f"Unexpected `universe` in meta payload: {meta!r}")
        if not isinstance(ctxs, list):
            raise RuntimeError(f"Unexpected asset contexts payload: {ctxs!r}")
        return meta, ctxs

    def fetch_l2_book(self, coin: str) -> Dict[str, Any]:
        payload = self.post_info({"type": "l2Book", "coin": coin})
        if not isinstance(payload, dict):
            raise RuntimeError(f"Unexpected l2Book payload for {coin}: {payload!r}")
        return payload


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except Exception:
        return None


@dataclass
class MarketSummary:
    symbol: str
    mid_price: Optional[Decimal]
    oracle_price: Optional[Decimal]
    volume_24h: Decimal
    funding_rate: Decimal
    open_interest: Decimal
    best_bid: Optional[Decimal] = None
    best_ask: Optional[Decimal] = None
    spread_bps: Optional[Decimal] = None

    def apply_book(self, book: Dict[str, Any]) -> None:
        levels = book.get("levels") or []
        if len(levels) < 2 or not levels[0] or not levels[1]:
            return
        bid = _to_decimal(levels[0][0].get("px"))
        ask = _to_decimal(levels[1][0].get("px"))
        if bid is None or ask is None or bid <= 0:
            return
        self.best_bid = bid
        self.best_ask = ask
        self.spread_bps = (ask - bid) / bid * Decimal("10000")


def summarize_markets(
    meta: Dict[str, Any],
    asset_ctxs: List[Dict[str, Any]],
) -> List[MarketSummary]:
    """Pair universe entries with their asset contexts, skipping delisted coins."""
    summaries: List[MarketSummary] = []
    for asset, ctx in zip(meta.get("universe", []), asset_ctxs):
        if not ctx or asset.get("isDelisted"):
            continue
        summaries.append(
            MarketSummary(
                symbol=str(asset.get("name")),
                mid_price=_to_decimal(ctx.get("midPx")),
                oracle_price=_to_decimal(ctx.get("oraclePx")),
                volume_24h=_to_decimal(ctx.get("dayNtlVlm")) or Decimal("0"),
                funding_rate=_to_decimal(ctx.get("funding")) or Decimal("0"),
                open_interest=_to_decimal(ctx.get("openInterest")) or Decimal("0"),
            )
        )
    return summaries


def rank_markets(
    markets: List[MarketSummary],
    *,
    sort_by: str = "volume",
    min_volume: Decimal = Decimal("0"),
    min_spread_bps: Decimal = Decimal("0"),
    limit: int = 50,
) -> List[MarketSummary]:
    """Filter by volume/spread floors and sort descending by *sort_by*."""
    filtered = [m for m in markets if m.volume_24h >= min_volume]
    if min_spread_bps > 0:
        filtered = [
            m for m in filtered
            if m.spread_bps is not None and m.spread_bps >= min_spread_bps
        ]

    if sort_by == "spread":
        filtered.sort(
            key=lambda m: m.spread_bps if m.spread_bps is not None else Decimal("-1"),
            reverse=True,
        )
    else:
        filtered.sort(key=lambda m: m.volume_24h, reverse=True)
    return filtered[:limit]
