#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import asdict
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hl_market_maker.public_markets import (  # noqa: E402
    MarketSummary,
    PublicMarketsClient,
    rank_markets,
    summarize_markets,
)

# Spread sampling pauses between batches of l2Book requests to stay under rate limits.
_BOOK_BATCH_SIZE = 10
_BOOK_BATCH_DELAY_S = 0.2


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _fmt_usd(value: Decimal) -> str:
    if value >= Decimal("1e9"):
        return f"${value / Decimal('1e9'):.2f}B"
    if value >= Decimal("1e6"):
        return f"${value / Decimal('1e6'):.2f}M"
    if value >= Decimal("1e3"):
        return f"${value / Decimal('1e3'):.1f}K"
    return f"${value:.0f}"


def _fmt_price(value: Optional[Decimal]) -> str:
    if value is None:
        return "-"
    if value >= 1000:
        return f"${value:.2f}"
    if value >= 1:
        return f"${value:.4f}"
    if value >= Decimal("0.01"):
        return f"${value:.6f}"
    return f"${value:.8f}"


def _attach_spreads(client: PublicMarketsClient, markets: List[MarketSummary]) -> None:
    for start in range(0, len(markets), _BOOK_BATCH_SIZE):
        for market in markets[start:start + _BOOK_BATCH_SIZE]:
            try:
                market.apply_book(client.fetch_l2_book(market.symbol))
            except Exception as exc:
                print(f"Warning: l2Book failed for {market.symbol}: {exc}", file=sys.stderr)
        if start + _BOOK_BATCH_SIZE < len(markets):
            time.sleep(_BOOK_BATCH_DELAY_S)


def _print_table(markets: List[MarketSummary]) -> None:
    header = (
        "Symbol".ljust(12)
        + "Mid Price".rjust(14)
        + "Spread(bps)".rjust(12)
        + "24h Volume".rjust(14)
        + "Funding".rjust(12)
        + "OI".rjust(14)
    )
    print(header)
    print("-" * len(header))
    for m in markets:
        spread = f"{m.spread_bps:.1f}" if m.spread_bps is not None else "-"
        print(
            m.symbol.ljust(12)
            + _fmt_price(m.mid_price).rjust(14)
            + spread.rjust(12)
            + _fmt_usd(m.volume_24h).rjust(14)
            + f"{m.funding_rate * 100:.4f}%".rjust(12)
            + _fmt_usd(m.open_interest).rjust(14)
        )


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Scan Hyperliquid perp markets for spread and volume opportunities.",
    )
    parser.add_argument("--sort", choices=["volume", "spread"], default="volume")
    parser.add_argument("--min-volume", type=Decimal, default=Decimal("0"), help="Minimum 24h volume (USD)")
    parser.add_argument("--min-spread", type=Decimal, default=Decimal("0"), help="Minimum spread in bps")
    parser.add_argument("--limit", type=int, default=50, help="Max rows to show")
    parser.add_argument(
        "--api-base",
        default=None,
        help="Override API base URL (e.g. https://api.hyperliquid.xyz)",
    )
    parser.add_argument("--json-stdout", action="store_true", help="Print JSON instead of a table.")
    args = parser.parse_args()

    load_dotenv()

    if args.api_base:
        client = PublicMarketsClient(api_base=str(args.api_base).rstrip("/"))
    else:
        client = PublicMarketsClient.default()

    meta, ctxs = client.fetch_meta_and_asset_ctxs()
    markets = [m for m in summarize_markets(meta, ctxs) if m.volume_24h >= args.min_volume]
    if args.sort == "spread" or args.min_spread > 0:
        _attach_spreads(client, markets)

    ranked = rank_markets(
        markets,
        sort_by=args.sort,
        min_volume=args.min_volume,
        min_spread_bps=args.min_spread,
        limit=args.limit,
    )

    if args.json_stdout:
        print(json.dumps(_to_jsonable([asdict(m) for m in ranked]), indent=2))
        return 0

    print(
        f"Sorted by: {args.sort} | Min volume: {_fmt_usd(args.min_volume)} | "
        f"Min spread: {args.min_spread} bps | Showing {len(ranked)} of {len(markets)}"
    )
    _print_table(ranked)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
