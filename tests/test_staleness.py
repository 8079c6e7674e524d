from __future__ import annotations

from decimal import Decimal

from hl_market_maker.staleness import DEFAULT_MAX_DEVIATION_BPS, is_order_stale


def test_default_threshold_is_fifty_bps():
    assert DEFAULT_MAX_DEVIATION_BPS == Decimal("50")


def test_order_beyond_threshold_is_stale():
    assert is_order_stale(Decimal("100.6"), Decimal("100")) is True
    assert is_order_stale(Decimal("99.4"), Decimal("100")) is True


def test_order_at_threshold_is_not_stale():
    assert is_order_stale(Decimal("100.5"), Decimal("100")) is False
    assert is_order_stale(Decimal("99.5"), Decimal("100")) is False


def test_custom_threshold():
    assert is_order_stale(Decimal("100.2"), Decimal("100"), Decimal("10")) is True
    assert is_order_stale(Decimal("100.05"), Decimal("100"), Decimal("10")) is False
