"""
Historical price backfill.

Generates plausible long-range history for every asset so charts have data
on day 1. Each asset gets its own generator derived from the game seed and
its symbol, so backfilling never advances the game RNG and the same seed
always yields the same history. Every series ends at the asset's current
price.
"""

import logging
import math
from typing import List

from .candles import (
    BUCKETS_PER_DAY,
    D5_CAPACITY,
    DAYS_PER_WEEK,
    M1_CAPACITY,
    Y1_CAPACITY,
    Y5_CAPACITY,
    PriceCandle,
    PriceHistory,
    aggregate,
)
from .models import Asset
from .rng import SeededRNG

logger = logging.getLogger(__name__)

MAX_DAILY_MOVE = 0.5


def _walk_backwards(
    end_price: float,
    steps: int,
    volatility: float,
    rng: SeededRNG,
    min_price: float,
    start_day: int,
    day_stride: int = 1,
) -> List[PriceCandle]:
    """
    Random walk generated backwards from a known final close.

    Returns candles in chronological order whose last close is end_price and
    where each open equals the previous candle's close.
    """
    candles = []
    close = end_price
    for i in range(steps):
        change = max(-MAX_DAILY_MOVE, min(MAX_DAILY_MOVE, rng.normal(0, volatility)))
        open_ = max(min_price, close / (1 + change))
        wick = abs(rng.range(0, volatility * 0.5))
        high = max(open_, close) * (1 + wick)
        low = max(min_price, min(open_, close) * (1 - wick))
        candles.append(PriceCandle(
            tick=0,
            day=start_day - i * day_stride,
            open=open_,
            high=high,
            low=low,
            close=close,
        ))
        close = open_
    candles.reverse()
    return candles


def _split_day(daily: PriceCandle, rng: SeededRNG, bucket_ticks: int) -> List[PriceCandle]:
    """Split one daily candle into intraday buckets bounded by its range."""
    path = [daily.open]
    spread = daily.high - daily.low
    for i in range(1, BUCKETS_PER_DAY):
        t = i / BUCKETS_PER_DAY
        base = daily.open + (daily.close - daily.open) * t
        noise = rng.range(-spread * 0.25, spread * 0.25)
        path.append(max(daily.low, min(daily.high, base + noise)))
    path.append(daily.close)

    buckets = []
    for i in range(BUCKETS_PER_DAY):
        open_, close = path[i], path[i + 1]
        high = min(daily.high, max(open_, close) * (1 + rng.range(0, 0.005)))
        low = max(daily.low, min(open_, close) * (1 - rng.range(0, 0.005)))
        buckets.append(PriceCandle(
            tick=i * bucket_ticks,
            day=daily.day,
            open=open_,
            high=max(high, open_, close),
            low=min(low, open_, close),
            close=close,
        ))
    return buckets


def backfill_asset(asset: Asset, seed: int, min_price: float, ticks_per_day: int = 1800) -> PriceHistory:
    """
    Build the full history of one asset.

    Args:
        asset: Asset whose current price anchors the history
        seed: Game seed
        min_price: Price floor
        ticks_per_day: Ticks in a trading day

    Returns:
        PriceHistory with y5, y1, m1, d5 and yesterday populated and today empty
    """
    rng = SeededRNG(f"{seed}:{asset.symbol}")
    history = PriceHistory(ticks_per_day)
    bucket_ticks = max(1, ticks_per_day // BUCKETS_PER_DAY)

    # y1: one year of daily candles ending yesterday (day 0)
    daily = _walk_backwards(asset.price, Y1_CAPACITY, asset.base_volatility, rng, min_price, start_day=0)
    history.y1.extend(daily)
    history.m1.extend(daily[-M1_CAPACITY:])

    # d5 / yesterday: the last five days in 5-minute buckets
    d5_days = D5_CAPACITY // BUCKETS_PER_DAY
    for candle in daily[-d5_days:]:
        history.d5.extend(_split_day(candle, rng, bucket_ticks))
    history.yesterday.extend(history.d5.last(BUCKETS_PER_DAY))

    # y5: recent weeks aggregated from y1, older weeks walked back from there
    recent_weeks = []
    for end in range(len(daily), DAYS_PER_WEEK - 1, -DAYS_PER_WEEK):
        recent_weeks.append(aggregate(daily[end - DAYS_PER_WEEK:end]))
    recent_weeks.reverse()
    older_count = Y5_CAPACITY - len(recent_weeks)
    weekly_vol = asset.base_volatility * math.sqrt(DAYS_PER_WEEK)
    first_day = recent_weeks[0].day if recent_weeks else 0
    older = _walk_backwards(
        recent_weeks[0].open if recent_weeks else asset.price,
        older_count,
        weekly_vol,
        rng,
        min_price,
        start_day=first_day - DAYS_PER_WEEK,
        day_stride=DAYS_PER_WEEK,
    )
    history.y5.extend(older + recent_weeks)

    logger.debug(f"Backfilled {asset.symbol}: {len(history.y1)} daily, {len(history.y5)} weekly candles")
    return history
