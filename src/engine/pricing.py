"""
Price model.

Intraday prices follow a random walk: on each trade the price moves by a
Normal(0, sigma) fraction, with sigma scaled from the asset's daily
volatility down to one tick and widened by social hype. Risk events and
player operations apply their own one-off multipliers, all floored at
MIN_PRICE.
"""

import math
from typing import Optional, Tuple

from .candles import PriceCandle
from .models import Asset, AssetTier, MarketVibe
from .rng import SeededRNG


def clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def trade_probability(dynamic_volume: float) -> float:
    """Chance that a trade happens this tick: 10% at zero volume, 90% at full."""
    return 0.1 + 0.8 * dynamic_volume


def tick_sigma(asset: Asset, noise: float, ticks_per_day: int = 1800) -> float:
    """
    Per-trade volatility.

    sigma = (base_volatility / sqrt(ticks_per_day)) * (0.8 + 0.6 * hype) * (1 + noise)
    """
    scaled = asset.base_volatility / math.sqrt(ticks_per_day)
    return scaled * (0.8 + 0.6 * asset.social_hype) * (1 + noise)


def simulate_trade(
    asset: Asset,
    rng: SeededRNG,
    tick: int,
    day: int,
    dynamic_volume: float,
    min_price: float,
    ticks_per_day: int = 1800,
) -> Optional[PriceCandle]:
    """
    Roll for a trade and, if one happens, move the price.

    Draw order is fixed: trade chance, noise, then the normal sample.

    Args:
        asset: Asset being traded
        rng: Game RNG
        tick: Tick within the day (stamped on the candle)
        day: Current day
        dynamic_volume: Output of calculate_dynamic_volume
        min_price: Price floor
        ticks_per_day: Ticks in a trading day

    Returns:
        The trade candle (close is the new price), or None if no trade
    """
    if not rng.chance(trade_probability(dynamic_volume)):
        return None

    old_price = asset.price
    noise = rng.range(-0.1, 0.1)
    sigma = tick_sigma(asset, noise, ticks_per_day)
    delta = rng.normal(0, sigma)
    new_price = max(min_price, old_price * (1 + delta))

    return PriceCandle(
        tick=tick,
        day=day,
        open=old_price,
        high=max(old_price, new_price),
        low=min(old_price, new_price),
        close=new_price,
        volume=1.0,
    )


# =============================================================================
# ONE-OFF PRICE EFFECTS
# =============================================================================

def apply_pump(asset: Asset, budget: float, rng: SeededRNG) -> float:
    """Pump operation: 1 + budget/10000 + U(0, 0.15) multiplier."""
    return asset.price * (1 + budget / 10000 + rng.range(0, 0.15))


def apply_whale_buyback(asset: Asset, rng: SeededRNG) -> float:
    """Whale buyback: 2x-4x multiplier."""
    return asset.price * rng.range(2, 4)


def apply_oracle_hack(asset: Asset, rng: SeededRNG, min_price: float) -> Tuple[float, int]:
    """
    Oracle hack: +/-100-400% shock.

    Returns:
        Tuple of (new price, direction) where direction is +1 or -1
    """
    direction = 1 if rng.chance(0.5) else -1
    magnitude = rng.range(1, 4)
    return max(min_price, asset.price * (1 + direction * magnitude)), direction


def apply_rug_initial(asset: Asset, rng: SeededRNG, min_price: float) -> Tuple[float, float]:
    """
    Initial rug crash: price drops 20-30%, liquidity falls to 60-80%.

    Returns:
        Tuple of (new price, new liquidity)
    """
    price = max(min_price, asset.price * rng.range(0.7, 0.8))
    liquidity = asset.liquidity_usd * rng.range(0.6, 0.8)
    return price, liquidity


def apply_rug_bleed(asset: Asset, rng: SeededRNG, min_price: float) -> Tuple[float, float]:
    """
    One bleed step of a rugged asset: price x U(0.85, 0.95), liquidity x 0.9.

    Returns:
        Tuple of (new price, new liquidity)
    """
    price = max(min_price, asset.price * rng.range(0.85, 0.95))
    return price, asset.liquidity_usd * 0.9


def is_dead(asset: Asset, min_price: float) -> bool:
    """A rugged asset that has bled down to the price floor."""
    return asset.rugged and asset.price <= min_price


def overnight_gap(
    asset: Asset,
    vibe: MarketVibe,
    is_target: bool,
    rng: SeededRNG,
    min_price: float,
) -> float:
    """
    Price gap between the close and the next open, biased by the new vibe.

    gap ~ Normal(drift, base_volatility * 0.5), clamped at -90%.

    Returns:
        New opening price
    """
    sigma = asset.base_volatility * 0.5
    drift = 0.0
    if vibe is MarketVibe.MOONSHOT and is_target:
        drift = rng.range(0.10, 0.30)
    elif vibe is MarketVibe.BLOODBATH:
        drift = -rng.range(0.05, 0.20)
    elif vibe is MarketVibe.MEMEFRENZY and asset.social_hype > 0.5:
        drift = 0.05
    elif vibe is MarketVibe.RUGSEASON and asset.tier is AssetTier.SHITCOIN:
        drift = -0.05
    elif vibe is MarketVibe.WHALEWAR:
        sigma *= 2

    gap = max(-0.9, rng.normal(drift, sigma))
    return max(min_price, asset.price * (1 + gap))
