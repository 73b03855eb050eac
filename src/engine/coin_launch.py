"""
New coin launches.

Most launches are meme shitcoins with thin liquidity, heavy dev holdings
and a weak audit, but high hype. Launch odds depend on the market vibe and
the time since the previous launch.
"""

import logging
from typing import List, Optional

from .candles import PriceHistory
from .models import Asset, MarketVibe, NewsArticle, Sentiment
from .rng import SeededRNG
from .tiers import classify_tier

logger = logging.getLogger(__name__)

NAME_PREFIXES = ["Moon", "Doge", "Pepe", "Shib", "Floki", "Elon", "Wojak", "Chad", "Based", "Giga"]
NAME_SUFFIXES = ["Coin", "Token", "Inu", "Finance", "Swap", "Protocol", "DAO", "Chain", "Moon", "Rocket"]

HYPE_TEMPLATES = [
    "New project {SYMBOL} generating massive buzz in crypto community",
    "Early investors accumulating {SYMBOL} right after launch",
    "{SYMBOL} trending on crypto social media",
    "{SYMBOL} presale sold out in minutes",
    "Influencers backing the {SYMBOL} launch",
    "{SYMBOL} promises revolutionary tokenomics",
    "{SYMBOL} aiming for 100x returns",
]

BASE_LAUNCH_CHANCE = 0.15
VIBE_LAUNCH_CHANCE = {
    MarketVibe.MEMEFRENZY: 0.4,
    MarketVibe.RUGSEASON: 0.25,
    MarketVibe.BLOODBATH: 0.05,
    MarketVibe.NORMIE: 0.1,
}
MIN_DAYS_BETWEEN_LAUNCHES = 3
DROUGHT_DAYS = 5
DROUGHT_BOOST = 1.5
LAUNCH_NEWS_WEIGHT = 70
LAUNCH_NEWS_FAKE_CHANCE = 0.4


def launch_chance(vibe: MarketVibe, days_since_last_launch: int) -> float:
    """Probability of a launch today; zero within three days of the last one."""
    if days_since_last_launch < MIN_DAYS_BETWEEN_LAUNCHES:
        return 0.0
    chance = VIBE_LAUNCH_CHANCE.get(vibe, BASE_LAUNCH_CHANCE)
    if days_since_last_launch > DROUGHT_DAYS:
        chance *= DROUGHT_BOOST
    return chance


def should_launch_coin(vibe: MarketVibe, days_since_last_launch: int, rng: SeededRNG) -> bool:
    chance = launch_chance(vibe, days_since_last_launch)
    return chance > 0 and rng.chance(chance)


def generate_new_coin(day: int, rng: SeededRNG, ticks_per_day: int = 1800) -> Asset:
    """Create a freshly launched meme coin."""
    prefix = rng.pick(NAME_PREFIXES)
    suffix = rng.pick(NAME_SUFFIXES)
    symbol = (prefix[:3] + suffix[:3]).upper()

    base_price = rng.range(0.0001, 0.01)
    liquidity = rng.range(50_000, 500_000)
    dev_tokens = rng.range(30, 70)
    audit = rng.range(0.1, 0.4)
    hype = rng.range(0.6, 0.95)
    volatility = rng.range(0.08, 0.15)
    volume = rng.range(0.6, 0.9)

    return Asset(
        id=f"new_{day}_{symbol.lower()}",
        symbol=symbol,
        name=f"{prefix}{suffix}",
        base_price=base_price,
        price=base_price,
        liquidity_usd=liquidity,
        dev_tokens_pct=dev_tokens,
        audit_score=audit,
        social_hype=hype,
        base_volatility=volatility,
        volume=volume,
        tier=classify_tier(liquidity, audit),
        gov_favor_score=0.1,
        launch_day=day,
        price_history=PriceHistory(ticks_per_day),
    )


def generate_launch_hype_news(day: int, coin: Asset, rng: SeededRNG) -> List[NewsArticle]:
    """1-2 bullish launch articles; some of them overhyped (fake)."""
    articles = []
    for i in range(rng.int(1, 2)):
        template = rng.pick(HYPE_TEMPLATES)
        articles.append(NewsArticle(
            id=f"news_{day}_launch_{coin.symbol.lower()}_{i}",
            day=day,
            asset_id=coin.id,
            asset_symbol=coin.symbol,
            headline=template.replace("{SYMBOL}", coin.symbol),
            sentiment=Sentiment.BULLISH,
            weight=LAUNCH_NEWS_WEIGHT,
            category="launch",
            is_fake=rng.chance(LAUNCH_NEWS_FAKE_CHANCE),
        ))
    return articles


def days_since_last_launch(last_launch_day: Optional[int], day: int) -> int:
    """Days since the previous launch (counting from day 0 if none yet)."""
    return day - (last_launch_day or 0)
