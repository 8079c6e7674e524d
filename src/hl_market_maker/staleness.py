from __future__ import annotations

from decimal import Decimal

from .utils import bps_distance, safe_decimal

DEFAULT_MAX_DEVIATION_BPS = Decimal("50")


def is_order_stale(
    order_price: Decimal,
    fair_price: Decimal,
    max_deviation_bps: Decimal = DEFAULT_MAX_DEVIATION_BPS,
) -> bool:
    """True when a resting price drifted more than *max_deviation_bps* from fair."""
    deviation = bps_distance(safe_decimal(order_price), safe_decimal(fair_price))
    return deviation > safe_decimal(max_deviation_bps)
