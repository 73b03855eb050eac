"""
Day-advance pipeline.

The end of a trading day runs as an ordered list of independent stages.
Each stage reads a DaySnapshot and returns a StageResult; the orchestrator
applies the result and takes a fresh snapshot before the next stage runs.

Stage order:
    candles        compact today's trades into every resolution
    operations     apply multi-day operation effects, retire finished ops
    vibe           roll the coming day's market vibe and its targets
    offers         expire stale offers, roll new ones
    launch         maybe list a new meme coin with launch hype
    debunk         debunk fake articles and reverse half their hype
    news           publish and apply the day's articles
    rug_warnings   flag at-risk shitcoins
    overnight_gap  gap every live price to the next open
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .coin_launch import (
    days_since_last_launch,
    generate_launch_hype_news,
    generate_new_coin,
    should_launch_coin,
)
from .events import build_event
from .models import (
    Asset,
    EventType,
    MarketVibe,
    NewsArticle,
    Offer,
    Operation,
    OperationType,
    PlayerState,
    Severity,
)
from .news import (
    apply_news_impact,
    check_fake_news_debunks,
    generate_rug_warnings,
    prune_articles,
    reverse_fake_news_impact,
    roll_daily_news,
)
from .offers import prune_expired_offers, roll_daily_offers
from .patches import AssetPatch, StageResult
from .pricing import overnight_gap
from .rng import SeededRNG
from .vibe import describe_vibe, roll_market_vibe, select_vibe_targets

logger = logging.getLogger(__name__)

WASH_HYPE_MIN = 0.05
WASH_HYPE_MAX = 0.15


@dataclass(frozen=True)
class DaySnapshot:
    """
    Read-only view of the game handed to each day stage.

    Attributes:
        day: The day being closed
        assets: All assets in listing order
        player: Player state
        articles: Published articles, newest first
        offers: Active offers
        operations: Active operations
        market_vibe: Current vibe
        vibe_targets: Current vibe targets
        last_launch_day: Day of the most recent coin launch
        tick: Absolute tick of the day boundary
        min_price: Price floor
        ticks_per_day: Ticks in a trading day
        max_articles: Article cap after pruning
        news_retention_days: Article age limit
    """
    day: int
    assets: Tuple[Asset, ...]
    player: PlayerState
    articles: Tuple[NewsArticle, ...] = ()
    offers: Tuple[Offer, ...] = ()
    operations: Tuple[Operation, ...] = ()
    market_vibe: MarketVibe = MarketVibe.NORMIE
    vibe_targets: Tuple[str, ...] = ()
    last_launch_day: Optional[int] = None
    tick: int = 0
    min_price: float = 0.00001
    ticks_per_day: int = 1800
    max_articles: int = 200
    news_retention_days: int = 200

    @property
    def new_day(self) -> int:
        return self.day + 1

    def asset(self, asset_id: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None


Stage = Callable[[DaySnapshot, SeededRNG], StageResult]


# =============================================================================
# STAGES
# =============================================================================

def candle_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """Close the day for every asset's price history."""
    result = StageResult()
    for asset in snapshot.assets:
        try:
            history = asset.price_history.copy()
            history.close_day(snapshot.day, asset.price)
            result.asset_patches.append(AssetPatch(asset_id=asset.id, price_history=history))
        except Exception:
            logger.exception(f"Candle compaction failed for {asset.id}")
    return result


def operations_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """Wash trading lifts hype on each active day; finished operations retire."""
    result = StageResult()
    for op in snapshot.operations:
        if op.type is OperationType.WASH and op.is_active(snapshot.day):
            asset = snapshot.asset(op.asset_id)
            if asset is None or asset.rugged:
                logger.warning(f"Wash trading target {op.asset_id} unavailable, skipping")
            else:
                boost = rng.range(WASH_HYPE_MIN, WASH_HYPE_MAX)
                result.asset_patches.append(AssetPatch(
                    asset_id=asset.id, social_hype=asset.social_hype + boost))

        if not op.is_active(snapshot.new_day):
            result.removed_operation_ids.append(op.id)
            result.events.append(build_event(
                EventType.OP_COMPLETE, snapshot.tick, snapshot.day,
                f"{op.type.value.upper()} operation completed",
                Severity.INFO, op.asset_id, operationId=op.id,
            ))
    return result


def vibe_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    vibe = roll_market_vibe(rng)
    targets = select_vibe_targets(vibe, list(snapshot.assets), rng)
    result = StageResult(market_vibe=vibe, vibe_targets=targets)
    if vibe is not MarketVibe.NORMIE:
        result.events.append(build_event(
            EventType.INFO, snapshot.tick, snapshot.new_day, describe_vibe(vibe),
            Severity.WARNING if vibe in (MarketVibe.BLOODBATH, MarketVibe.RUGSEASON) else Severity.INFO,
            None, vibe=vibe.value, targets=list(targets),
        ))
    logger.info(f"Day {snapshot.new_day} vibe: {vibe.value} (targets: {targets})")
    return result


def offers_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    result = StageResult()
    _, expired = prune_expired_offers(list(snapshot.offers), snapshot.new_day)
    result.removed_offer_ids.extend(expired)

    for offer in roll_daily_offers(snapshot.new_day, snapshot.player, list(snapshot.assets), rng):
        result.new_offers.append(offer)
        result.events.append(build_event(
            EventType.OFFER, snapshot.tick, snapshot.new_day, f"New offer: {offer.description}",
            Severity.INFO, offer.asset_id, offerId=offer.id,
        ))
    return result


def coin_launch_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """List a new coin; its launch articles apply their impact immediately."""
    result = StageResult()
    days_since = days_since_last_launch(snapshot.last_launch_day, snapshot.new_day)
    if not should_launch_coin(snapshot.market_vibe, days_since, rng):
        return result

    coin = generate_new_coin(snapshot.new_day, rng, snapshot.ticks_per_day)
    if snapshot.asset(coin.id) is not None:
        logger.warning(f"Launch id collision for {coin.id}, skipping launch")
        return result

    articles = generate_launch_hype_news(snapshot.new_day, coin, rng)
    price, hype, articles = apply_news_impact(coin, articles, rng)
    coin.price = max(snapshot.min_price, price)
    coin.social_hype = hype

    result.new_assets.append(coin)
    result.new_articles.extend(articles)
    result.events.append(build_event(
        EventType.LAUNCH, snapshot.tick, snapshot.new_day,
        f"NEW LAUNCH: {coin.name} ({coin.symbol}) just hit the market!",
        Severity.SUCCESS, coin.id,
    ))
    logger.info(f"Launched {coin.symbol} on day {snapshot.new_day} at ${coin.price:.6f}")
    return result


def debunk_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """Debunk fakes published on earlier days and reverse half of their hype."""
    result = StageResult()
    debunked_ids = set(check_fake_news_debunks(snapshot.new_day, list(snapshot.articles), rng))
    if not debunked_ids:
        return result

    hype: Dict[str, float] = {}
    for article in snapshot.articles:
        if article.id not in debunked_ids:
            continue
        asset = snapshot.asset(article.asset_id)
        result.updated_articles.append(_debunked(article, snapshot.new_day))
        if asset is None:
            continue
        current = hype.get(asset.id, asset.social_hype)
        hype[asset.id] = reverse_fake_news_impact(current, article)
        result.events.append(build_event(
            EventType.WARNING, snapshot.tick, snapshot.new_day,
            f"DEBUNKED: \"{article.headline}\" was fake news",
            Severity.WARNING, asset.id, articleId=article.id,
        ))

    for asset_id, value in hype.items():
        result.asset_patches.append(AssetPatch(asset_id=asset_id, social_hype=value))
    return result


def _debunked(article: NewsArticle, day: int) -> NewsArticle:
    return dataclasses.replace(article, debunked_day=day)


def news_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """Publish the day's articles, apply their impact and prune old news."""
    result = StageResult()
    published = roll_daily_news(snapshot.new_day, list(snapshot.assets), rng)

    by_asset: Dict[str, List[NewsArticle]] = {}
    for article in published:
        by_asset.setdefault(article.asset_id, []).append(article)

    applied: Dict[str, NewsArticle] = {}
    for asset_id, articles in by_asset.items():
        asset = snapshot.asset(asset_id)
        try:
            price, hype, updated = apply_news_impact(asset, articles, rng)
        except Exception:
            logger.exception(f"News impact failed for {asset_id}")
            continue
        result.asset_patches.append(AssetPatch(asset_id=asset_id, price=price, social_hype=hype))
        applied.update((a.id, a) for a in updated)

    result.new_articles.extend(applied.get(a.id, a) for a in published)

    kept = prune_articles(
        list(snapshot.articles), snapshot.new_day, snapshot.max_articles, snapshot.news_retention_days)
    kept_ids = {a.id for a in kept}
    result.removed_article_ids.extend(a.id for a in snapshot.articles if a.id not in kept_ids)
    return result


def rug_warning_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    result = StageResult()
    articles, warned_ids = generate_rug_warnings(snapshot.new_day, list(snapshot.assets), rng)
    result.new_articles.extend(articles)
    for article in articles:
        result.asset_patches.append(AssetPatch(asset_id=article.asset_id, rug_warned=True))
        result.events.append(build_event(
            EventType.WARNING, snapshot.tick, snapshot.new_day, article.headline,
            Severity.WARNING, article.asset_id,
        ))
    return result


def overnight_gap_stage(snapshot: DaySnapshot, rng: SeededRNG) -> StageResult:
    """Gap each live asset from its close to the next day's open."""
    result = StageResult()
    targets = set(snapshot.vibe_targets)
    for asset in snapshot.assets:
        if asset.rugged:
            continue
        try:
            price = overnight_gap(asset, snapshot.market_vibe, asset.id in targets, rng, snapshot.min_price)
        except Exception:
            logger.exception(f"Overnight gap failed for {asset.id}")
            continue
        result.asset_patches.append(AssetPatch(asset_id=asset.id, price=price))
    return result


DAY_STAGES: List[Tuple[str, Stage]] = [
    ("candles", candle_stage),
    ("operations", operations_stage),
    ("vibe", vibe_stage),
    ("offers", offers_stage),
    ("launch", coin_launch_stage),
    ("debunk", debunk_stage),
    ("news", news_stage),
    ("rug_warnings", rug_warning_stage),
    ("overnight_gap", overnight_gap_stage),
]


def run_day_pipeline(
    take_snapshot: Callable[[], DaySnapshot],
    apply_result: Callable[[StageResult], None],
    rng: SeededRNG,
    stages: Sequence[Tuple[str, Stage]] = DAY_STAGES,
) -> None:
    """
    Run every stage in order, applying each result before the next stage.

    Args:
        take_snapshot: Builds a snapshot of the current state
        apply_result: Reducer applying one StageResult to the state
        rng: Game RNG
        stages: Ordered (name, stage) pairs
    """
    for name, stage in stages:
        result = stage(take_snapshot(), rng)
        logger.debug(
            f"Stage {name}: {len(result.asset_patches)} asset patches, "
            f"{len(result.events)} events, {len(result.new_articles)} articles"
        )
        apply_result(result)
