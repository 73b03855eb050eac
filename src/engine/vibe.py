"""Daily market vibe selection."""

import logging
from typing import Dict, List, Tuple

from .models import Asset, MarketVibe
from .rng import SeededRNG

logger = logging.getLogger(__name__)

# Categorical distribution, checked in this order against one uniform draw
VIBE_DISTRIBUTION: List[Tuple[MarketVibe, float]] = [
    (MarketVibe.MOONSHOT, 0.10),
    (MarketVibe.BLOODBATH, 0.08),
    (MarketVibe.MEMEFRENZY, 0.15),
    (MarketVibe.RUGSEASON, 0.03),
    (MarketVibe.WHALEWAR, 0.03),
    (MarketVibe.NORMIE, 0.61),
]

# Vibes that single out 1-3 target assets
TARGETED_VIBES = (MarketVibe.MOONSHOT, MarketVibe.WHALEWAR)

VIBE_INFO: Dict[MarketVibe, Dict[str, str]] = {
    MarketVibe.MOONSHOT: {
        "label": "Moonshot Day",
        "description": "Select coins are primed for massive pumps",
    },
    MarketVibe.BLOODBATH: {
        "label": "Market Bloodbath",
        "description": "Everything is crashing hard today",
    },
    MarketVibe.MEMEFRENZY: {
        "label": "Meme Frenzy",
        "description": "Social hype is driving everything crazy",
    },
    MarketVibe.RUGSEASON: {
        "label": "Rug Season",
        "description": "High risk of rug pulls - watch your bags",
    },
    MarketVibe.WHALEWAR: {
        "label": "Whale War",
        "description": "Massive volatile swings from competing whales",
    },
    MarketVibe.NORMIE: {
        "label": "Normal Day",
        "description": "Standard market conditions",
    },
}


def roll_market_vibe(rng: SeededRNG) -> MarketVibe:
    """Pick the day's vibe with a single draw against the cumulative distribution."""
    roll = rng.next()
    cumulative = 0.0
    for vibe, weight in VIBE_DISTRIBUTION:
        cumulative += weight
        if roll < cumulative:
            return vibe
    return MarketVibe.NORMIE


def select_vibe_targets(vibe: MarketVibe, assets: List[Asset], rng: SeededRNG) -> List[str]:
    """
    Choose the assets a targeted vibe singles out.

    Args:
        vibe: The day's vibe
        assets: All assets, in stable order
        rng: Game RNG

    Returns:
        1-3 distinct non-rugged asset ids, or [] for untargeted vibes
    """
    if vibe not in TARGETED_VIBES:
        return []
    candidates = [a for a in assets if not a.rugged]
    if not candidates:
        return []
    count = min(len(candidates), rng.int(1, 3))
    return [a.id for a in rng.shuffle(candidates)[:count]]


def describe_vibe(vibe: MarketVibe) -> str:
    info = VIBE_INFO[vibe]
    return f"{info['label']}: {info['description']}"
