"""
Patch value types returned by simulation stages.

Stages never mutate game state. They read a snapshot and return a
StageResult; the orchestrator applies every patch in one reducer step before
the next stage reads state.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .candles import PriceCandle, PriceHistory
from .models import (
    Asset,
    CostBasis,
    GameEvent,
    LPPosition,
    MarketVibe,
    NewsArticle,
    Offer,
    Operation,
    PlayerState,
    Trade,
)
from .tiers import classify_tier

logger = logging.getLogger(__name__)


@dataclass
class AssetPatch:
    """
    Partial update for one asset. None means "leave unchanged".

    Attributes:
        asset_id: Asset the patch applies to
        price: New price (floored at the minimum price)
        liquidity_usd: New pool liquidity
        social_hype: New hype (clamped to 0-1)
        audit_score: New audit score (clamped to 0-1)
        rugged: New rugged flag
        rug_warned: New rug-warning flag
        rug_start_tick: Absolute tick of the rug
        flagged: New flagged flag
        price_history: Replacement history (day compaction)
        new_candles: Trade candles appended to today
    """
    asset_id: str
    price: Optional[float] = None
    liquidity_usd: Optional[float] = None
    social_hype: Optional[float] = None
    audit_score: Optional[float] = None
    rugged: Optional[bool] = None
    rug_warned: Optional[bool] = None
    rug_start_tick: Optional[int] = None
    flagged: Optional[bool] = None
    price_history: Optional[PriceHistory] = None
    new_candles: List[PriceCandle] = field(default_factory=list)

    def merge(self, other: "AssetPatch") -> "AssetPatch":
        """Combine with a later patch for the same asset; later fields win."""
        if other.asset_id != self.asset_id:
            raise ValueError("Cannot merge patches for different assets")
        merged = dataclasses.replace(self, new_candles=self.new_candles + other.new_candles)
        for f in dataclasses.fields(other):
            if f.name in ("asset_id", "new_candles"):
                continue
            value = getattr(other, f.name)
            if value is not None:
                setattr(merged, f.name, value)
        return merged


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def apply_asset_patch(asset: Asset, patch: AssetPatch, min_price: float) -> Asset:
    """
    Produce the patched asset.

    Enforces the asset invariants: price floor, hype/audit bounds, a rugged
    asset's price never rising, and tier recomputation when liquidity or
    audit change.

    Args:
        asset: Current asset
        patch: Patch to apply
        min_price: Price floor

    Returns:
        New Asset instance (candle appends go to the shared today list)
    """
    changes = {}
    if patch.price is not None:
        new_price = max(min_price, patch.price)
        if asset.rugged and new_price > asset.price:
            logger.debug(f"Ignoring price increase on rugged asset {asset.symbol}")
        else:
            changes["price"] = new_price
    if patch.liquidity_usd is not None:
        changes["liquidity_usd"] = max(0.0, patch.liquidity_usd)
    if patch.social_hype is not None:
        changes["social_hype"] = _clamp01(patch.social_hype)
    if patch.audit_score is not None:
        changes["audit_score"] = _clamp01(patch.audit_score)
    for name in ("rugged", "rug_warned", "rug_start_tick", "flagged", "price_history"):
        value = getattr(patch, name)
        if value is not None:
            changes[name] = value

    if "liquidity_usd" in changes or "audit_score" in changes:
        changes["tier"] = classify_tier(
            changes.get("liquidity_usd", asset.liquidity_usd),
            changes.get("audit_score", asset.audit_score),
        )

    updated = dataclasses.replace(asset, **changes) if changes else asset
    for candle in patch.new_candles:
        updated.price_history.record_trade(candle)
    return updated


@dataclass
class PlayerPatch:
    """
    Partial update for the player. None means "leave unchanged".

    Scalar fields carry absolute values. Collection fields carry complete
    replacements except ``new_trades``, which is appended to the ledger.
    """
    cash_usd: Optional[float] = None
    reputation: Optional[float] = None
    influence: Optional[float] = None
    security: Optional[float] = None
    scrutiny: Optional[float] = None
    exposure: Optional[float] = None
    holdings: Optional[Dict[str, float]] = None
    frozen_units: Optional[Dict[str, float]] = None
    frozen_until_tick: Optional[int] = None
    clear_freeze: bool = False
    lp_positions: Optional[List[LPPosition]] = None
    cost_basis: Optional[Dict[str, CostBasis]] = None
    realized_pnl: Optional[float] = None
    new_trades: List[Trade] = field(default_factory=list)

    def merge(self, other: "PlayerPatch") -> "PlayerPatch":
        """Combine with a later patch; later fields win, trades concatenate."""
        merged = dataclasses.replace(self, new_trades=self.new_trades + other.new_trades)
        for f in dataclasses.fields(other):
            if f.name in ("new_trades", "clear_freeze"):
                continue
            value = getattr(other, f.name)
            if value is not None:
                setattr(merged, f.name, value)
        merged.clear_freeze = self.clear_freeze or other.clear_freeze
        return merged


def apply_player_patch(player: PlayerState, patch: PlayerPatch) -> PlayerState:
    """Produce the patched player. Scrutiny and exposure never go negative."""
    changes = {}
    for name in ("cash_usd", "reputation", "influence", "security", "realized_pnl"):
        value = getattr(patch, name)
        if value is not None:
            changes[name] = value
    if patch.scrutiny is not None:
        changes["scrutiny"] = max(0.0, patch.scrutiny)
    if patch.exposure is not None:
        changes["exposure"] = max(0.0, patch.exposure)
    if patch.holdings is not None:
        changes["holdings"] = {k: v for k, v in patch.holdings.items() if v > 1e-12}
    if patch.clear_freeze:
        changes["frozen_units"] = {}
        changes["frozen_until_tick"] = None
    if patch.frozen_units is not None:
        changes["frozen_units"] = dict(patch.frozen_units)
    if patch.frozen_until_tick is not None:
        changes["frozen_until_tick"] = patch.frozen_until_tick
    if patch.lp_positions is not None:
        changes["lp_positions"] = list(patch.lp_positions)
    if patch.cost_basis is not None:
        changes["cost_basis"] = dict(patch.cost_basis)
    if patch.new_trades:
        changes["trades"] = player.trades + patch.new_trades
    return dataclasses.replace(player, **changes) if changes else player


@dataclass
class StageResult:
    """
    Everything one simulation stage wants to change.

    Attributes:
        asset_patches: Per-asset partial updates, applied in order
        player_patch: Player update, if any
        events: Feed events (ids assigned on apply)
        new_articles: Newly published articles
        updated_articles: Replacements for existing articles, matched by id
        removed_article_ids: Articles to drop
        new_offers: Offers to present
        removed_offer_ids: Offers to withdraw
        new_assets: Assets listed this stage
        new_operations: Operations started this stage
        removed_operation_ids: Operations that finished
        market_vibe: The vibe for the coming day, if rolled
        vibe_targets: Assets singled out by the vibe
    """
    asset_patches: List[AssetPatch] = field(default_factory=list)
    player_patch: Optional[PlayerPatch] = None
    events: List[GameEvent] = field(default_factory=list)
    new_articles: List[NewsArticle] = field(default_factory=list)
    updated_articles: List[NewsArticle] = field(default_factory=list)
    removed_article_ids: List[str] = field(default_factory=list)
    new_offers: List[Offer] = field(default_factory=list)
    removed_offer_ids: List[str] = field(default_factory=list)
    new_assets: List[Asset] = field(default_factory=list)
    new_operations: List[Operation] = field(default_factory=list)
    removed_operation_ids: List[str] = field(default_factory=list)
    market_vibe: Optional[MarketVibe] = None
    vibe_targets: Optional[List[str]] = None

    def patch_player(self, patch: PlayerPatch) -> None:
        self.player_patch = patch if self.player_patch is None else self.player_patch.merge(patch)

    def extend(self, other: "StageResult") -> "StageResult":
        """Append another result's changes after this one's."""
        self.asset_patches.extend(other.asset_patches)
        if other.player_patch is not None:
            self.patch_player(other.player_patch)
        self.events.extend(other.events)
        self.new_articles.extend(other.new_articles)
        self.updated_articles.extend(other.updated_articles)
        self.removed_article_ids.extend(other.removed_article_ids)
        self.new_offers.extend(other.new_offers)
        self.removed_offer_ids.extend(other.removed_offer_ids)
        self.new_assets.extend(other.new_assets)
        self.new_operations.extend(other.new_operations)
        self.removed_operation_ids.extend(other.removed_operation_ids)
        if other.market_vibe is not None:
            self.market_vibe = other.market_vibe
            self.vibe_targets = other.vibe_targets
        return self

    @property
    def is_empty(self) -> bool:
        return not any((
            self.asset_patches, self.player_patch, self.events, self.new_articles,
            self.updated_articles, self.removed_article_ids, self.new_offers,
            self.removed_offer_ids, self.new_assets, self.new_operations,
            self.removed_operation_ids, self.market_vibe,
        ))
