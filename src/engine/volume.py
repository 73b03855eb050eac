"""
Dynamic trading volume.

Volume (0.05-1.0) controls how often an asset trades within a tick. It is the
product of the asset's static activity, its social hype, intraday momentum,
the day's market vibe and the time of day.
"""

from typing import Iterable, Optional

from .models import Asset, AssetTier, MarketVibe

MIN_VOLUME = 0.05
MAX_VOLUME = 1.0
MOMENTUM_LOOKBACK = 10
MOMENTUM_CAP = 2.0


def hype_multiplier(asset: Asset) -> float:
    """0.5x at zero hype up to 1.5x at full hype."""
    return 0.5 + asset.social_hype


def momentum_multiplier(asset: Asset) -> float:
    """0.8x-2.0x from the price change over the last 10 trades today."""
    recent = asset.price_history.today[-MOMENTUM_LOOKBACK:]
    if len(recent) < 2:
        return 1.0
    old_price = recent[0].open
    new_price = recent[-1].close
    if old_price <= 0:
        return 1.0
    change = abs((new_price - old_price) / old_price)
    return min(MOMENTUM_CAP, 0.8 + change * 5)


def vibe_multiplier(asset: Asset, vibe: MarketVibe, targets: Iterable[str] = ()) -> float:
    """Asset-specific multiplier for the day's market vibe."""
    if vibe is MarketVibe.MOONSHOT:
        return 2.5 if asset.id in set(targets) else 0.7
    if vibe is MarketVibe.BLOODBATH:
        return 1.8
    if vibe is MarketVibe.MEMEFRENZY:
        return 2.0 if asset.social_hype > 0.5 else 1.2
    if vibe is MarketVibe.RUGSEASON:
        return 1.5 if asset.tier is AssetTier.SHITCOIN else 1.0
    if vibe is MarketVibe.WHALEWAR:
        return 1.6
    return 1.0


def time_of_day_multiplier(tick: int, ticks_per_day: int) -> float:
    """Slow start (0.5x-0.8x in the first 10%), frantic close (1x-2x in the last 20%)."""
    progress = tick / ticks_per_day if ticks_per_day > 0 else 0.0
    if progress < 0.1:
        return 0.5 + progress * 3
    if progress > 0.8:
        return 1.0 + (progress - 0.8) / 0.2
    return 1.0


def calculate_dynamic_volume(
    asset: Asset,
    vibe: MarketVibe,
    tick: int,
    ticks_per_day: int = 1800,
    vibe_targets: Optional[Iterable[str]] = None,
) -> float:
    """
    Dynamic volume of an asset at a tick.

    Args:
        asset: Asset being traded
        vibe: Today's market vibe
        tick: Tick within the day
        ticks_per_day: Ticks in a trading day
        vibe_targets: Asset ids the vibe singles out

    Returns:
        Volume clamped to [0.05, 1.0]; rugged assets are pinned at 0.05
    """
    if asset.rugged:
        return MIN_VOLUME

    base = 0.3 + asset.volume * 0.4
    volume = (
        base
        * hype_multiplier(asset)
        * momentum_multiplier(asset)
        * vibe_multiplier(asset, vibe, vibe_targets or ())
        * time_of_day_multiplier(tick, ticks_per_day)
    )
    return max(MIN_VOLUME, min(MAX_VOLUME, volume))


def volume_category(volume: float) -> str:
    """Display label for a volume level."""
    if volume < 0.2:
        return "Very Low"
    if volume < 0.4:
        return "Low"
    if volume < 0.6:
        return "Medium"
    if volume < 0.8:
        return "High"
    return "Very High"
