"""
Tick/day orchestrator.

Game owns the GameState and the session RNG and sequences every subsystem:

    backfill -> beginning-of-day -> trading -> end-of-day -> beginning-of-day ...

While trading, an external clock calls process_tick() once per simulated
second. Each tick runs the price model for every live asset, bleeds rugged
assets, rolls risk events, fills limit orders, lapses expired freezes and
recomputes net worth. process_day() fast-forwards any unconsumed ticks, runs
the day pipeline and persists the game.

Every subsystem reads a snapshot and returns patches; the reducer applies
them before the next step reads state.

Example:
    >>> game = Game.new_game(seed="test-1", store=JsonSaveStore(SAVE_DIR))
    >>> game.start_trading()
    >>> game.process_day()
    >>> game.get_kpis()
"""

import dataclasses
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

from .actions import (
    ActionResult,
    LPAction,
    OpAction,
    OpType,
    TradeAction,
    TradeType,
    execute_lp as _execute_lp,
    execute_op as _execute_op,
    execute_trade as _execute_trade,
)
from .backfill import backfill_asset
from .day_pipeline import DAY_STAGES, DaySnapshot, run_day_pipeline
from .errors import AssetNotFoundError, InvalidActionError, InvalidStateTransition, InvariantViolation
from .events import build_event, process_tick_events
from .models import (
    Asset,
    EventType,
    LimitOrder,
    LimitOrderStatus,
    MarketVibe,
    NewsArticle,
    Offer,
    PlayerState,
    Severity,
    SimulationStatus,
    TradeSide,
)
from .news import get_news_ticker
from .offers import resolve_offer
from .patches import AssetPatch, PlayerPatch, StageResult
from .portfolio import (
    PortfolioEntry,
    compute_net_worth,
    get_filtered_assets,
    get_kpis,
    get_portfolio_table,
    get_top_movers,
)
from .pricing import apply_rug_bleed, is_dead, simulate_trade
from .rng import SeededRNG, hash_seed
from .seed_data import build_seed_assets
from .state import GameState, apply_result
from .volume import calculate_dynamic_volume

from ..config import (
    DAY_DURATION_SECONDS,
    DEV_MODE_EVENT_MULTIPLIER,
    MAX_FEED_SIZE,
    MAX_ARTICLES,
    MAX_NET_WORTH_HISTORY,
    MIN_PRICE,
    NEWS_RETENTION_DAYS,
    RUG_BLEED_INTERVAL_TICKS,
    STARTING_CASH_USD,
    STARTING_REPUTATION,
    STARTING_SECURITY,
    TICKS_PER_DAY,
)
from ..storage.save_store import StorageError

logger = logging.getLogger(__name__)

# Net worth is sampled once per simulated minute
NET_WORTH_SAMPLE_TICKS = 60


class Game:
    """
    Single-player game session.

    Attributes:
        state: The game state (single source of truth)
        rng: Session RNG, synced into state.rng_state on save
        store: Save store (load_game/save_game), optional
        dirty: True when state changed since the last successful save
    """

    def __init__(
        self,
        state: GameState,
        store: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
        day_duration_seconds: float = DAY_DURATION_SECONDS,
        min_price: float = MIN_PRICE,
        max_feed_size: int = MAX_FEED_SIZE,
        event_multiplier: Optional[float] = None,
    ):
        self.state = state
        self.rng = SeededRNG(state.seed)
        self.rng.set_state(state.rng_state)
        self.store = store
        self.clock = clock
        self.day_duration_seconds = day_duration_seconds
        self.min_price = min_price
        self.max_feed_size = max_feed_size
        if event_multiplier is None:
            event_multiplier = DEV_MODE_EVENT_MULTIPLIER if state.dev_mode else 1.0
        self.event_multiplier = event_multiplier

        self.dirty = False
        self._mutation_seq = 0
        self._save_lock = threading.Lock()
        self._processing_day = False
        self._trading_started_at: Optional[float] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def new_game(
        cls,
        seed: Union[int, str],
        profile_id: str = "default",
        dev_mode: bool = False,
        assets: Optional[List[Asset]] = None,
        player: Optional[PlayerState] = None,
        ticks_per_day: int = TICKS_PER_DAY,
        run_backfill: bool = True,
        **kwargs,
    ) -> "Game":
        """
        Start a fresh game.

        Day 1 opens on a normal market with the seed asset list. The session
        RNG is untouched by setup, so the first tick draws the seed's first
        value.

        Args:
            seed: Integer or string seed
            profile_id: Save slot
            dev_mode: Multiply risk-event rates
            assets: Starting assets (defaults to the seed list)
            player: Starting player (defaults to starting cash and stats)
            ticks_per_day: Ticks in a trading day
            run_backfill: Generate long-range history before day 1
            **kwargs: Passed through to Game()

        Returns:
            Game in the beginning-of-day state
        """
        seed_value = hash_seed(seed)
        if player is None:
            player = PlayerState(
                cash_usd=STARTING_CASH_USD,
                net_worth_usd=STARTING_CASH_USD,
                reputation=STARTING_REPUTATION,
                security=STARTING_SECURITY,
                initial_net_worth=STARTING_CASH_USD,
            )
        if assets is None:
            assets = build_seed_assets(ticks_per_day)

        state = GameState(
            seed=seed_value,
            rng_state=seed_value,
            profile_id=profile_id,
            dev_mode=dev_mode,
            player=player,
            assets={asset.id: asset for asset in assets},
            ticks_per_day=ticks_per_day,
        )
        game = cls(state, **kwargs)
        game._touch()
        logger.info(f"New game '{profile_id}' (seed {seed_value}, {len(assets)} assets, dev_mode={dev_mode})")

        if run_backfill:
            game.backfill()
        else:
            state.status = SimulationStatus.BEGINNING_OF_DAY
        return game

    @classmethod
    def load(cls, store: Any, profile_id: str, **kwargs) -> Optional["Game"]:
        """
        Resume a saved game; None (with a warning) when no save exists.
        """
        saved = store.load_game(profile_id)
        if saved is None:
            logger.warning(f"No saved game for profile '{profile_id}'")
            return None
        state = GameState.from_dict(saved)
        if state.status is SimulationStatus.TRADING:
            # The wall clock does not survive a restart
            state.status = SimulationStatus.END_OF_DAY
        game = cls(state, store=store, **kwargs)
        logger.info(f"Loaded game '{profile_id}' at day {state.day}, tick {state.tick}")
        return game

    def backfill(self) -> None:
        """
        Generate long-range history for every asset and open day 1.

        Raises:
            InvalidStateTransition: If the game is past the backfill state
        """
        if self.state.status is not SimulationStatus.BACKFILL:
            raise InvalidStateTransition(f"Cannot backfill in state {self.state.status.value}")
        for asset_id, asset in self.state.assets.items():
            history = backfill_asset(asset, self.state.seed, self.min_price, self.state.ticks_per_day)
            self.state.assets[asset_id] = dataclasses.replace(asset, price_history=history)
        self.state.status = SimulationStatus.BEGINNING_OF_DAY
        self._touch()
        logger.info(f"Backfilled history for {len(self.state.assets)} assets")

    def start_trading(self) -> None:
        """
        Open the trading window and start the wall-clock timer.

        Raises:
            InvalidStateTransition: Unless the game is at beginning-of-day
        """
        if self.state.status is not SimulationStatus.BEGINNING_OF_DAY:
            raise InvalidStateTransition(f"Cannot start trading in state {self.state.status.value}")
        self.state.status = SimulationStatus.TRADING
        self._trading_started_at = self.clock()
        self._touch()
        logger.info(f"Trading started on day {self.state.day}")

    @property
    def status(self) -> SimulationStatus:
        return self.state.status

    # =========================================================================
    # TICK
    # =========================================================================

    def process_tick(self) -> bool:
        """
        Advance one tick if the trading window is open.

        Ends the trading window once the wall-clock duration has elapsed or
        every tick of the day has been consumed.

        Returns:
            True if a tick was simulated
        """
        if self.state.status is not SimulationStatus.TRADING:
            logger.warning(f"process_tick ignored in state {self.state.status.value}")
            return False
        if self._trading_started_at is not None:
            elapsed = self.clock() - self._trading_started_at
            if elapsed >= self.day_duration_seconds:
                self._end_trading()
                return False
        if self.state.tick >= self.state.ticks_per_day:
            self._end_trading()
            return False

        self._run_tick()
        if self.state.tick >= self.state.ticks_per_day:
            self._end_trading()
        return True

    def _end_trading(self) -> None:
        self.state.status = SimulationStatus.END_OF_DAY
        self._trading_started_at = None
        self._touch()
        logger.info(f"Trading closed on day {self.state.day} at tick {self.state.tick}")

    def _run_tick(self) -> None:
        state = self.state
        state.tick += 1
        tick = state.tick
        absolute_tick = state.absolute_tick
        day = state.day

        # Price model for live assets, bleed for rugged ones
        market = StageResult()
        for asset in state.asset_list():
            try:
                if asset.rugged:
                    patch = self._rug_bleed(asset, absolute_tick)
                    if patch is not None:
                        market.asset_patches.append(patch)
                    continue
                volume = calculate_dynamic_volume(
                    asset, state.market_vibe, tick, state.ticks_per_day, state.vibe_targets)
                candle = simulate_trade(
                    asset, self.rng, tick, day, volume, self.min_price, state.ticks_per_day)
                if candle is not None:
                    market.asset_patches.append(
                        AssetPatch(asset_id=asset.id, price=candle.close, new_candles=[candle]))
            except Exception:
                logger.exception(f"Tick {absolute_tick} failed for {asset.id}")
        self._apply(market)

        # Risk events
        self._apply(process_tick_events(
            state.asset_list(), state.player, self.rng, absolute_tick, day,
            self.min_price, self.event_multiplier,
        ))

        self._check_limit_orders(absolute_tick)
        self._expire_freeze(absolute_tick)
        self._update_net_worth(absolute_tick)

    def _rug_bleed(self, asset: Asset, absolute_tick: int) -> Optional[AssetPatch]:
        if asset.rug_start_tick is None or is_dead(asset, self.min_price):
            return None
        since = absolute_tick - asset.rug_start_tick
        if since <= 0 or since % RUG_BLEED_INTERVAL_TICKS != 0:
            return None
        price, liquidity = apply_rug_bleed(asset, self.rng, self.min_price)
        if price <= self.min_price:
            logger.info(f"{asset.symbol} has bled out to the price floor")
        return AssetPatch(asset_id=asset.id, price=price, liquidity_usd=liquidity)

    def _expire_freeze(self, absolute_tick: int) -> None:
        player = self.state.player
        if player.frozen_until_tick is None or absolute_tick < player.frozen_until_tick:
            return
        result = StageResult(player_patch=PlayerPatch(clear_freeze=True))
        result.events.append(build_event(
            EventType.INFO, absolute_tick, self.state.day,
            "Account freeze lifted", Severity.SUCCESS,
        ))
        self._apply(result)

    def _update_net_worth(self, absolute_tick: int, sample: bool = True) -> None:
        player = self.state.player
        net_worth = compute_net_worth(player, self.state.prices())
        history = player.net_worth_history
        if sample and absolute_tick % NET_WORTH_SAMPLE_TICKS == 0:
            history = (history + [{"tick": absolute_tick, "value": net_worth}])[-MAX_NET_WORTH_HISTORY:]
        self.state.player = dataclasses.replace(player, net_worth_usd=net_worth, net_worth_history=history)

    # =========================================================================
    # DAY
    # =========================================================================

    def process_day(self) -> bool:
        """
        Close the current day and open the next one.

        Unconsumed ticks are simulated first. The day pipeline then runs to
        completion before the state returns to beginning-of-day, and the game
        is saved if a store is attached.

        Returns:
            True if the day advanced, False if a day-advance was already running

        Raises:
            InvalidStateTransition: If the day has not started trading
        """
        if self._processing_day:
            logger.warning("process_day already running, ignoring re-entrant call")
            return False
        if self.state.status not in (SimulationStatus.TRADING, SimulationStatus.END_OF_DAY):
            raise InvalidStateTransition(f"Cannot advance the day in state {self.state.status.value}")

        self._processing_day = True
        try:
            closing_day = self.state.day
            remaining = self.state.ticks_per_day - self.state.tick
            if remaining > 0:
                logger.info(f"Fast-forwarding {remaining} ticks of day {closing_day}")
            while self.state.tick < self.state.ticks_per_day:
                self._run_tick()
            self.state.status = SimulationStatus.END_OF_DAY
            self._trading_started_at = None

            run_day_pipeline(self._day_snapshot, self._apply, self.rng, DAY_STAGES)

            self.state.day = closing_day + 1
            self.state.tick = 0
            self.state.status = SimulationStatus.BEGINNING_OF_DAY
            self._update_net_worth(self.state.absolute_tick, sample=False)
            self._touch()
            logger.info(
                f"Day {closing_day} closed; day {self.state.day} opens "
                f"({self.state.market_vibe.value}), net worth ${self.state.player.net_worth_usd:,.2f}"
            )
        finally:
            self._processing_day = False

        self.save()
        return True

    def _day_snapshot(self) -> DaySnapshot:
        state = self.state
        return DaySnapshot(
            day=state.day,
            assets=tuple(state.asset_list()),
            player=state.player,
            articles=tuple(state.articles),
            offers=tuple(state.active_offers),
            operations=tuple(state.active_ops),
            market_vibe=state.market_vibe,
            vibe_targets=tuple(state.vibe_targets),
            last_launch_day=state.last_launch_day,
            tick=state.absolute_tick,
            min_price=self.min_price,
            ticks_per_day=state.ticks_per_day,
            max_articles=MAX_ARTICLES,
            news_retention_days=NEWS_RETENTION_DAYS,
        )

    # =========================================================================
    # PLAYER ACTIONS
    # =========================================================================

    def _asset_or_warn(self, asset_id: Optional[str], action: str) -> Optional[Asset]:
        asset = self.state.assets.get(asset_id) if asset_id is not None else None
        if asset is None:
            logger.warning(f"{action}: asset {asset_id} not found")
        return asset

    def _apply_action(self, result: ActionResult, event_type: EventType, asset_id: Optional[str]) -> None:
        stage = StageResult(player_patch=result.player_patch)
        if result.asset_patch is not None:
            stage.asset_patches.append(result.asset_patch)
        if result.operation is not None:
            stage.new_operations.append(result.operation)
        stage.events.append(build_event(
            event_type, self.state.absolute_tick, self.state.day, result.message, Severity.INFO, asset_id,
        ))
        self._apply(stage)
        self._update_net_worth(self.state.absolute_tick)

    def execute_trade(self, action: TradeAction) -> Optional[ActionResult]:
        """
        Market buy or sell at the current price.

        Returns:
            ActionResult, or None if the asset does not exist

        Raises:
            InvariantViolation: The trade was rejected; state is unchanged
        """
        asset = self._asset_or_warn(action.asset_id, "execute_trade")
        if asset is None:
            return None
        trade_id = self.state.peek_id("trade")
        result = _execute_trade(action, asset, self.state.player, self.state.absolute_tick, trade_id)
        self.state.allocate_id("trade")
        self._apply_action(result, EventType.TRADE, asset.id)
        logger.info(result.message)
        return result

    def execute_lp(self, action: LPAction) -> Optional[ActionResult]:
        asset = self._asset_or_warn(action.asset_id, "execute_lp")
        if asset is None:
            return None
        result = _execute_lp(action, asset, self.state.player, self.state.absolute_tick)
        self._apply_action(result, EventType.INFO, asset.id)
        logger.info(result.message)
        return result

    def execute_op(self, action: OpAction) -> Optional[ActionResult]:
        """
        Launch a market operation.

        Returns:
            ActionResult, or None if the target asset does not exist

        Raises:
            InvariantViolation: The operation was rejected; state is unchanged
        """
        asset = None
        if action.asset_id is not None or action.type is not OpType.BRIBE:
            asset = self._asset_or_warn(action.asset_id, "execute_op")
            if asset is None:
                return None
        op_id = self.state.peek_id("op")
        result = _execute_op(
            action, self.state.absolute_tick, asset, self.state.player, self.rng, self.state.day, op_id)
        self.state.allocate_id("op")
        self._apply_action(result, EventType.INFO, asset.id if asset else None)
        logger.info(result.message)
        return result

    def accept_offer(self, offer_id: str) -> Optional[ActionResult]:
        """
        Execute an offer in full and remove it.

        Returns:
            ActionResult, or None if the offer or its asset does not exist

        Raises:
            InvariantViolation: The offer cannot be executed (expired, not
                enough cash or units); the offer stays listed
        """
        offer = self.state.find_offer(offer_id)
        if offer is None:
            logger.warning(f"accept_offer: offer {offer_id} not found")
            return None
        trade_id = self.state.peek_id("trade")
        try:
            result = resolve_offer(
                offer, self.state.player, self.state.assets, self.state.day, self.state.absolute_tick, trade_id)
        except AssetNotFoundError as e:
            logger.warning(f"accept_offer: {e}")
            return None
        self.state.allocate_id("trade")

        stage = StageResult(player_patch=result.player_patch, removed_offer_ids=[offer.id])
        stage.events.append(build_event(
            EventType.OFFER, self.state.absolute_tick, self.state.day, result.message,
            Severity.SUCCESS, offer.asset_id, offerId=offer.id,
        ))
        self._apply(stage)
        self._update_net_worth(self.state.absolute_tick)
        logger.info(f"Offer {offer.id} accepted")
        return result

    def decline_offer(self, offer_id: str) -> bool:
        if self.state.find_offer(offer_id) is None:
            logger.warning(f"decline_offer: offer {offer_id} not found")
            return False
        self._apply(StageResult(removed_offer_ids=[offer_id]))
        logger.info(f"Offer {offer_id} declined")
        return True

    def place_limit_order(
        self,
        side: TradeSide,
        asset_id: str,
        trigger_price: float,
        amount: float,
    ) -> Optional[LimitOrder]:
        """
        Queue a limit order.

        Args:
            side: BUY (amount in USD) or SELL (amount in units)
            asset_id: Target asset
            trigger_price: Buy at or below / sell at or above this price
            amount: USD for buys, units for sells

        Returns:
            The pending order, or None if the asset does not exist

        Raises:
            InvalidActionError: Non-positive trigger price or amount
        """
        if not trigger_price > 0 or not amount > 0:
            raise InvalidActionError("trigger_price and amount must be positive")
        if self._asset_or_warn(asset_id, "place_limit_order") is None:
            return None
        order = LimitOrder(
            id=self.state.allocate_id("order"),
            side=side,
            asset_id=asset_id,
            trigger_price=trigger_price,
            amount=amount,
            created_tick=self.state.absolute_tick,
        )
        self.state.limit_orders.append(order)
        self._touch()
        logger.info(f"Limit {side.value} {order.id} on {asset_id} at ${trigger_price}")
        return order

    def cancel_limit_order(self, order_id: str) -> bool:
        order = self.state.find_order(order_id)
        if order is None or order.status is not LimitOrderStatus.PENDING:
            logger.warning(f"cancel_limit_order: no pending order {order_id}")
            return False
        self._replace_order(dataclasses.replace(order, status=LimitOrderStatus.CANCELLED))
        return True

    def _replace_order(self, order: LimitOrder) -> None:
        self.state.limit_orders = [order if o.id == order.id else o for o in self.state.limit_orders]
        self._touch()

    def _check_limit_orders(self, absolute_tick: int) -> None:
        for order in list(self.state.limit_orders):
            if order.status is not LimitOrderStatus.PENDING:
                continue
            asset = self.state.assets.get(order.asset_id)
            if asset is None or not order.is_triggered(asset.price):
                continue

            if order.side is TradeSide.BUY:
                action = TradeAction(TradeType.BUY, asset.id, usd=order.amount)
            else:
                action = TradeAction(TradeType.SELL, asset.id, units=order.amount)
            try:
                result = _execute_trade(
                    action, asset, self.state.player, absolute_tick, self.state.peek_id("trade"))
            except InvariantViolation as e:
                self._replace_order(dataclasses.replace(
                    order, status=LimitOrderStatus.FAILED, failure_reason=str(e)))
                failed = StageResult()
                failed.events.append(build_event(
                    EventType.WARNING, absolute_tick, self.state.day,
                    f"Limit order {order.id} failed: {e}", Severity.WARNING, asset.id,
                ))
                self._apply(failed)
                logger.warning(f"Limit order {order.id} failed: {e}")
                continue

            self.state.allocate_id("trade")
            self._apply_action(result, EventType.TRADE, asset.id)
            self._replace_order(dataclasses.replace(
                order, status=LimitOrderStatus.FILLED, filled_tick=absolute_tick, filled_price=asset.price))
            logger.info(f"Limit order {order.id} filled: {result.message}")

    # =========================================================================
    # SELECTORS
    # =========================================================================

    def get_kpis(self) -> Dict[str, float]:
        return get_kpis(self.state.player)

    def get_portfolio_table(self) -> List[PortfolioEntry]:
        return get_portfolio_table(self.state.player, self.state.assets)

    def get_filtered_assets(
        self,
        search: Optional[str] = None,
        risk_level: str = "all",
        audited: Optional[bool] = None,
    ) -> List[Asset]:
        return get_filtered_assets(self.state.asset_list(), search, risk_level, audited)

    def get_top_movers(self, n: int = 5):
        return get_top_movers(self.state.asset_list(), n)

    def get_news_ticker(self, count: int = 10) -> List[NewsArticle]:
        return get_news_ticker(self.state.articles, count)

    def get_active_offers(self) -> List[Offer]:
        return list(self.state.active_offers)

    def get_net_worth_history(self) -> List[Dict[str, float]]:
        return list(self.state.player.net_worth_history)

    @property
    def market_vibe(self) -> MarketVibe:
        return self.state.market_vibe

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _apply(self, result: StageResult) -> None:
        if result.is_empty:
            return
        apply_result(self.state, result, self.min_price, self.max_feed_size)
        self._touch()

    def _touch(self) -> None:
        with self._save_lock:
            self._mutation_seq += 1
            self.dirty = True

    def snapshot(self) -> Dict[str, Any]:
        """Serialised state with the current RNG position."""
        self.state.rng_state = self.rng.get_state()
        return self.state.to_dict()

    def save(self) -> bool:
        """
        Save synchronously if anything changed since the last save.

        Returns:
            True if a save was written
        """
        if self.store is None or not self.dirty:
            return False
        with self._save_lock:
            seq = self._mutation_seq
        return self._write(self.snapshot(), seq)

    def save_in_background(self) -> Optional[threading.Thread]:
        """
        Snapshot now and write on a worker thread.

        The dirty flag clears only if nothing changed after the snapshot.

        Returns:
            The started thread, or None if there was nothing to save
        """
        if self.store is None or not self.dirty:
            return None
        with self._save_lock:
            seq = self._mutation_seq
        snapshot = self.snapshot()
        thread = threading.Thread(target=self._write, args=(snapshot, seq), daemon=True)
        thread.start()
        return thread

    def _write(self, snapshot: Dict[str, Any], seq: int) -> bool:
        try:
            self.store.save_game(snapshot)
        except StorageError as e:
            logger.error(f"Failed to save game '{self.state.profile_id}': {e}")
            return False
        with self._save_lock:
            if self._mutation_seq == seq:
                self.dirty = False
        logger.info(f"Saved game '{self.state.profile_id}' (day {snapshot['day']}, tick {snapshot['tick']})")
        return True
