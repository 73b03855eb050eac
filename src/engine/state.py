"""
Game state container and the reducer that applies stage results.

GameState is the single in-memory source of truth for a running game. It
serialises to the saved-game layout:

    {seed, rngState, tick, day, simulationStatus, marketVibe, player,
     assets: {id -> Asset}, articles, activeOffers, activeOps, ...}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import (
    Asset,
    GameEvent,
    LimitOrder,
    MarketVibe,
    NewsArticle,
    Offer,
    Operation,
    PlayerState,
    SimulationStatus,
)
from .patches import StageResult, apply_asset_patch, apply_player_patch

logger = logging.getLogger(__name__)

SAVE_FORMAT_VERSION = 1


@dataclass
class GameState:
    """
    Complete state of one game session.

    Attributes:
        seed: 32-bit game seed
        rng_state: RNG state at the last sync point
        profile_id: Save slot the game belongs to
        tick: Ticks elapsed in the current day (0 before trading starts)
        day: Current day, starting at 1
        status: Lifecycle state
        market_vibe: Today's vibe
        vibe_targets: Assets today's vibe singles out
        dev_mode: Multiply risk-event rates
        player: The player's account
        assets: asset_id -> Asset in listing order
        articles: Published articles, newest first
        events: Bounded event feed, newest first
        active_offers: Offers awaiting a decision
        active_ops: Operations still running
        limit_orders: Limit orders of every status
        last_launch_day: Day of the most recent coin launch
        next_id: Counter for deterministic record ids
        ticks_per_day: Ticks in a trading day
    """
    seed: int
    rng_state: int
    profile_id: str = "default"
    tick: int = 0
    day: int = 1
    status: SimulationStatus = SimulationStatus.BACKFILL
    market_vibe: MarketVibe = MarketVibe.NORMIE
    vibe_targets: List[str] = field(default_factory=list)
    dev_mode: bool = False
    player: PlayerState = field(default_factory=PlayerState)
    assets: Dict[str, Asset] = field(default_factory=dict)
    articles: List[NewsArticle] = field(default_factory=list)
    events: List[GameEvent] = field(default_factory=list)
    active_offers: List[Offer] = field(default_factory=list)
    active_ops: List[Operation] = field(default_factory=list)
    limit_orders: List[LimitOrder] = field(default_factory=list)
    last_launch_day: Optional[int] = None
    next_id: int = 1
    ticks_per_day: int = 1800

    @property
    def absolute_tick(self) -> int:
        """Ticks since the start of day 1."""
        return (self.day - 1) * self.ticks_per_day + self.tick

    def asset_list(self) -> List[Asset]:
        return list(self.assets.values())

    def prices(self) -> Dict[str, float]:
        return {asset_id: asset.price for asset_id, asset in self.assets.items()}

    def find_offer(self, offer_id: str) -> Optional[Offer]:
        for offer in self.active_offers:
            if offer.id == offer_id:
                return offer
        return None

    def find_order(self, order_id: str) -> Optional[LimitOrder]:
        for order in self.limit_orders:
            if order.id == order_id:
                return order
        return None

    def allocate_id(self, prefix: str) -> str:
        record_id = f"{prefix}_{self.next_id}"
        self.next_id += 1
        return record_id

    def peek_id(self, prefix: str) -> str:
        """The id allocate_id would return, without consuming it."""
        return f"{prefix}_{self.next_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SAVE_FORMAT_VERSION,
            "profile_id": self.profile_id,
            "seed": self.seed,
            "rngState": self.rng_state,
            "tick": self.tick,
            "day": self.day,
            "simulationStatus": self.status.value,
            "marketVibe": self.market_vibe.value,
            "vibeTargets": list(self.vibe_targets),
            "devMode": self.dev_mode,
            "ticksPerDay": self.ticks_per_day,
            "player": self.player.to_dict(),
            "assets": {asset_id: asset.to_dict() for asset_id, asset in self.assets.items()},
            "articles": [a.to_dict() for a in self.articles],
            "events": [e.to_dict() for e in self.events],
            "activeOffers": [o.to_dict() for o in self.active_offers],
            "activeOps": [o.to_dict() for o in self.active_ops],
            "limitOrders": [o.to_dict() for o in self.limit_orders],
            "lastLaunchDay": self.last_launch_day,
            "nextId": self.next_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Rebuild state from a saved-game dict.

        Raises:
            KeyError: If seed or rngState is missing
            ValueError: If an enum value is unknown
        """
        ticks_per_day = int(data.get("ticksPerDay", 1800))
        return cls(
            seed=int(data["seed"]),
            rng_state=int(data["rngState"]),
            profile_id=data.get("profile_id", "default"),
            tick=int(data.get("tick", 0)),
            day=int(data.get("day", 1)),
            status=SimulationStatus(data.get("simulationStatus", SimulationStatus.BEGINNING_OF_DAY.value)),
            market_vibe=MarketVibe(data.get("marketVibe", MarketVibe.NORMIE.value)),
            vibe_targets=list(data.get("vibeTargets", [])),
            dev_mode=bool(data.get("devMode", False)),
            player=PlayerState.from_dict(data.get("player", {})),
            assets={
                asset_id: Asset.from_dict(asset, ticks_per_day)
                for asset_id, asset in data.get("assets", {}).items()
            },
            articles=[NewsArticle.from_dict(a) for a in data.get("articles", [])],
            events=[GameEvent.from_dict(e) for e in data.get("events", [])],
            active_offers=[Offer.from_dict(o) for o in data.get("activeOffers", [])],
            active_ops=[Operation.from_dict(o) for o in data.get("activeOps", [])],
            limit_orders=[LimitOrder.from_dict(o) for o in data.get("limitOrders", [])],
            last_launch_day=data.get("lastLaunchDay"),
            next_id=int(data.get("nextId", 1)),
            ticks_per_day=ticks_per_day,
        )


def apply_result(
    state: GameState,
    result: StageResult,
    min_price: float,
    max_feed_size: int = 50,
) -> None:
    """
    Apply one StageResult to the state in a single step.

    New assets are listed first so later patches can target them. Patches for
    unknown assets are skipped with a warning. Events receive sequential ids
    and are prepended to the bounded feed.

    Args:
        state: State to update in place
        result: Changes produced by a stage or action
        min_price: Price floor enforced on every asset patch
        max_feed_size: Event feed capacity
    """
    for asset in result.new_assets:
        if asset.id in state.assets:
            logger.warning(f"Asset {asset.id} already listed, ignoring duplicate")
            continue
        state.assets[asset.id] = asset
        if asset.launch_day is not None:
            state.last_launch_day = max(state.last_launch_day or 0, asset.launch_day)

    for patch in result.asset_patches:
        asset = state.assets.get(patch.asset_id)
        if asset is None:
            logger.warning(f"Patch for unknown asset {patch.asset_id} skipped")
            continue
        state.assets[patch.asset_id] = apply_asset_patch(asset, patch, min_price)

    if result.player_patch is not None:
        state.player = apply_player_patch(state.player, result.player_patch)

    if result.updated_articles:
        updates = {a.id: a for a in result.updated_articles}
        state.articles = [updates.get(a.id, a) for a in state.articles]
    if result.removed_article_ids:
        removed = set(result.removed_article_ids)
        state.articles = [a for a in state.articles if a.id not in removed]
    if result.new_articles:
        state.articles = list(reversed(result.new_articles)) + state.articles

    if result.removed_offer_ids:
        removed = set(result.removed_offer_ids)
        state.active_offers = [o for o in state.active_offers if o.id not in removed]
    state.active_offers.extend(result.new_offers)

    if result.removed_operation_ids:
        removed = set(result.removed_operation_ids)
        state.active_ops = [o for o in state.active_ops if o.id not in removed]
    state.active_ops.extend(result.new_operations)

    if result.market_vibe is not None:
        state.market_vibe = result.market_vibe
        state.vibe_targets = list(result.vibe_targets or [])

    if result.events:
        stamped = []
        for event in result.events:
            event.id = state.allocate_id("evt")
            stamped.append(event)
        state.events = (list(reversed(stamped)) + state.events)[:max_feed_size]
