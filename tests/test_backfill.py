"""
Tests for historical price backfill.
"""

import pytest

from src.engine.backfill import MAX_DAILY_MOVE, backfill_asset
from src.engine.candles import D5_CAPACITY, M1_CAPACITY, Y1_CAPACITY, Y5_CAPACITY

MIN_PRICE = 0.00001


@pytest.fixture
def history(asset):
    return backfill_asset(asset, seed=12345, min_price=MIN_PRICE)


class TestBackfill:
    """Tests for long-range history generation."""

    def test_window_sizes(self, history):
        """Test that every resolution is filled to capacity and today is empty."""
        assert history.today == []
        assert len(history.yesterday) == 6
        assert len(history.d5) == D5_CAPACITY
        assert len(history.m1) == M1_CAPACITY
        assert len(history.y1) == Y1_CAPACITY
        assert len(history.y5) == Y5_CAPACITY

    def test_ends_at_current_price(self, asset, history):
        """Test that the daily series closes at the asset's current price."""
        assert history.y1.latest.close == pytest.approx(asset.price)
        assert history.m1.latest.close == pytest.approx(asset.price)
        assert history.yesterday.latest.close == pytest.approx(asset.price)
        assert history.y5.latest.close == pytest.approx(asset.price)

    def test_daily_candles_are_continuous(self, history):
        """Test that each open equals the previous close and days run up to zero."""
        candles = list(history.y1)
        for prev, curr in zip(candles, candles[1:]):
            assert curr.open == pytest.approx(prev.close)
            assert curr.day == prev.day + 1
        assert candles[-1].day == 0

    def test_candles_are_well_formed(self, history):
        """Test OHLC ordering and the price floor across every window."""
        for window in (history.yesterday, history.d5, history.m1, history.y1, history.y5):
            for candle in window:
                assert candle.low <= min(candle.open, candle.close) + 1e-12
                assert candle.high >= max(candle.open, candle.close) - 1e-12
                assert candle.low >= MIN_PRICE

    def test_daily_moves_bounded(self, history):
        """Test that no backfilled day moves more than the cap."""
        for candle in history.y1:
            change = candle.close / candle.open - 1
            assert -MAX_DAILY_MOVE - 1e-9 <= change <= MAX_DAILY_MOVE + 1e-9 or candle.open == MIN_PRICE

    def test_buckets_stay_in_daily_range(self, history):
        """Test that the 5-minute buckets of a day stay inside its daily range."""
        daily = {c.day: c for c in history.y1}
        for bucket in history.d5:
            day = daily[bucket.day]
            assert bucket.high <= day.high + 1e-9
            assert bucket.low >= day.low - 1e-9

    def test_deterministic_and_independent(self, asset, make_asset):
        """Test same seed same history; other symbols and seeds differ."""
        a = backfill_asset(asset, 1, MIN_PRICE)
        b = backfill_asset(asset, 1, MIN_PRICE)
        c = backfill_asset(asset, 2, MIN_PRICE)
        other = backfill_asset(make_asset("other"), 1, MIN_PRICE)
        assert a.to_dict() == b.to_dict()
        assert a.to_dict() != c.to_dict()
        assert a.to_dict()["y1"] != other.to_dict()["y1"]
