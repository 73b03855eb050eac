"""
News generation, impact and debunking.

Each day 2-5 articles are drawn from the template pool and tagged to random
live assets. Impact depends on the article weight band:

    weight >= 61   price x (1 +/- weight/100 * U(10%, 25%)), hype +/- weight/100 * 0.2
    weight 31-60   hype +/- weight/100 * 0.3
    weight < 31    hype +/- weight/100 * 0.15
    fake           hype +/- weight/100 * 0.15 only, debunkable later

The hype delta actually applied is stored on the article, so a debunk can
reverse exactly half of it.
"""

import dataclasses
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Asset, AssetTier, NewsArticle, Sentiment
from .rng import SeededRNG
from .seed_data import NEWS_TEMPLATES, RUG_WARNING_TEMPLATES

logger = logging.getLogger(__name__)

FAKE_NEWS_PROBABILITY = 0.15
DEBUNK_RATE_PER_DAY = 0.3
MAX_DEBUNK_CHANCE = 0.9
DEBUNK_REVERSAL = 0.5

RUG_WARNING_DAILY_CHANCE = 0.2
RUG_WARNING_DEV_THRESHOLD = 40
RUG_WARNING_AUDIT_THRESHOLD = 0.3
RUG_WARNING_WEIGHT = 50


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def roll_daily_news(
    day: int,
    assets: List[Asset],
    rng: SeededRNG,
    templates: Optional[Sequence[Dict]] = None,
    fake_probability: float = FAKE_NEWS_PROBABILITY,
) -> List[NewsArticle]:
    """
    Draw the day's articles.

    Args:
        day: Publication day
        assets: All assets in stable order (rugged ones are skipped)
        rng: Game RNG
        templates: Template pool (defaults to the built-in pool)
        fake_probability: Chance each article is fabricated

    Returns:
        2-5 articles, or [] when no live asset exists
    """
    live = [a for a in assets if not a.rugged]
    if not live:
        return []
    pool = list(templates or NEWS_TEMPLATES)

    articles = []
    for i in range(rng.int(2, 5)):
        asset = rng.pick(live)
        template = rng.pick(pool)
        articles.append(NewsArticle(
            id=f"news_{day}_{i}",
            day=day,
            asset_id=asset.id,
            asset_symbol=asset.symbol,
            headline=template["template"].replace("{SYMBOL}", asset.symbol),
            sentiment=Sentiment(template["sentiment"]),
            weight=float(template["weight"]),
            category=template.get("category", "general"),
            is_fake=rng.chance(fake_probability),
        ))
    return articles


def article_impact(article: NewsArticle, rng: SeededRNG) -> Tuple[float, float]:
    """
    Price multiplier and raw hype delta for one article.

    Only real high-weight articles draw from the RNG.

    Returns:
        Tuple of (price multiplier, hype delta before clamping)
    """
    sign = article.sentiment.sign
    strength = article.weight / 100

    if article.is_fake:
        return 1.0, sign * strength * 0.15
    if article.weight >= 61:
        impact = strength * rng.range(0.10, 0.25)
        return 1.0 + sign * impact, sign * strength * 0.2
    if article.weight >= 31:
        return 1.0, sign * strength * 0.3
    return 1.0, sign * strength * 0.15


def apply_news_impact(
    asset: Asset,
    articles: List[NewsArticle],
    rng: SeededRNG,
) -> Tuple[float, float, List[NewsArticle]]:
    """
    Apply a list of same-asset articles in order.

    Args:
        asset: Subject asset
        articles: Undebunked articles about the asset
        rng: Game RNG

    Returns:
        Tuple of (new price, new hype, articles with hype_impact and
        impact_realized recorded)
    """
    price = asset.price
    hype = asset.social_hype
    updated = []
    for article in articles:
        if article.debunked_day is not None:
            updated.append(article)
            continue
        multiplier, hype_delta = article_impact(article, rng)
        price *= multiplier
        new_hype = _clamp01(hype + hype_delta)
        applied = new_hype - hype
        hype = new_hype
        updated.append(dataclasses.replace(
            article, hype_impact=applied, impact_realized=multiplier != 1.0 or applied != 0.0))
    return price, hype, updated


def check_fake_news_debunks(day: int, articles: List[NewsArticle], rng: SeededRNG) -> List[str]:
    """
    Ids of fake articles debunked today.

    Each undebunked fake at least one day old is debunked with chance
    min(0.9, days_since_published * 0.3).
    """
    debunked = []
    for article in articles:
        if not article.is_fake or article.debunked_day is not None:
            continue
        days_since = day - article.day
        if days_since < 1:
            continue
        if rng.chance(min(MAX_DEBUNK_CHANCE, days_since * DEBUNK_RATE_PER_DAY)):
            debunked.append(article.id)
    return debunked


def debunk_reversal(article: NewsArticle) -> float:
    """Hype delta that reverses half of what the fake article pushed."""
    return -DEBUNK_REVERSAL * article.hype_impact


def reverse_fake_news_impact(social_hype: float, article: NewsArticle) -> float:
    """New hype after a debunk, clamped to [0, 1]."""
    return _clamp01(social_hype + debunk_reversal(article))


def generate_rug_warnings(
    day: int,
    assets: List[Asset],
    rng: SeededRNG,
) -> Tuple[List[NewsArticle], List[str]]:
    """
    Publish warnings for at-risk shitcoins.

    With a 20% daily chance, 1-2 unwarned live shitcoins with heavy dev
    holdings (>40%) or a weak audit (<0.3) are flagged; only warned assets
    can be rug pulled.

    Returns:
        Tuple of (warning articles, warned asset ids)
    """
    if not rng.chance(RUG_WARNING_DAILY_CHANCE):
        return [], []

    candidates = [
        a for a in assets
        if a.tier is AssetTier.SHITCOIN
        and not a.rugged
        and not a.rug_warned
        and (a.dev_tokens_pct > RUG_WARNING_DEV_THRESHOLD or a.audit_score < RUG_WARNING_AUDIT_THRESHOLD)
    ]
    if not candidates:
        return [], []

    count = min(len(candidates), rng.int(1, 2))
    warned = rng.shuffle(candidates)[:count]
    articles = []
    for i, asset in enumerate(warned):
        template = rng.pick(RUG_WARNING_TEMPLATES)
        articles.append(NewsArticle(
            id=f"news_{day}_rugwarn_{i}",
            day=day,
            asset_id=asset.id,
            asset_symbol=asset.symbol,
            headline=template.replace("{SYMBOL}", asset.symbol),
            sentiment=Sentiment.BEARISH,
            weight=RUG_WARNING_WEIGHT,
            category="rug_warning",
        ))
    logger.info(f"Rug warnings published on day {day}: {[a.symbol for a in warned]}")
    return articles, [a.id for a in warned]


def prune_articles(
    articles: List[NewsArticle],
    day: int,
    max_articles: int = 200,
    retention_days: int = 200,
) -> List[NewsArticle]:
    """Keep articles newer than the retention window, newest first, capped."""
    kept = [a for a in articles if day - a.day < retention_days]
    kept.sort(key=lambda a: a.day, reverse=True)
    return kept[:max_articles]


def get_news_ticker(articles: List[NewsArticle], count: int = 10) -> List[NewsArticle]:
    """Latest articles for a ticker display."""
    return sorted(articles, key=lambda a: a.day, reverse=True)[:count]
