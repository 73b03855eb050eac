"""
Tests for the Game orchestrator: lifecycle, ticks, days, actions and saves.
"""

import json
import shutil

import pytest

from src.config import MIN_PRICE
from src.engine import (
    Game,
    InsufficientCashError,
    InsufficientUnitsError,
    InvalidActionError,
    InvalidStateTransition,
    LimitOrder,
    MarketVibe,
    Offer,
    OpAction,
    OpType,
    PlayerState,
    SimulationStatus,
    TradeAction,
    TradeSide,
    TradeType,
    hash_seed,
)
from src.engine.candles import Y1_CAPACITY
from src.engine.events import process_tick_events
from src.engine.models import LimitOrderStatus, OfferType
from src.engine.patches import AssetPatch, apply_asset_patch, apply_player_patch
from src.engine.pricing import simulate_trade
from src.engine.rng import SeededRNG
from src.engine.volume import calculate_dynamic_volume
from src.storage import JsonSaveStore


class FakeClock:
    """Manually advanced clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _new_game(make_asset, seed="test-1", store=None, clock=None, **kwargs):
    assets = [make_asset("mid"), make_asset("alt", price=2.0, liquidity_usd=300_000)]
    return Game.new_game(
        seed,
        assets=assets,
        player=PlayerState(),
        run_backfill=False,
        store=store,
        clock=clock or (lambda: 0.0),
        **kwargs,
    )


def _canonical(game):
    return json.dumps(game.snapshot(), sort_keys=True)


@pytest.fixture
def game(make_asset):
    return _new_game(make_asset)


@pytest.fixture
def trading(game):
    game.start_trading()
    return game


# =============================================================================
# Test: Lifecycle
# =============================================================================


class TestLifecycle:
    """Tests for the simulation state machine."""

    def test_new_game_defaults(self, game):
        """Test that a new game opens day 1 on a normal market without consuming draws."""
        assert game.status is SimulationStatus.BEGINNING_OF_DAY
        assert game.state.day == 1
        assert game.state.tick == 0
        assert game.market_vibe is MarketVibe.NORMIE
        assert game.state.seed == hash_seed("test-1")
        assert game.rng.get_state() == game.state.seed

    def test_new_game_backfills(self, make_asset):
        """Test that backfill fills history and then opens day 1."""
        game = Game.new_game(7, assets=[make_asset()], clock=lambda: 0.0)
        assert game.status is SimulationStatus.BEGINNING_OF_DAY
        history = game.state.assets["mid"].price_history
        assert len(history.y1) == Y1_CAPACITY
        assert history.y1.latest.close == pytest.approx(100.0)

    def test_backfill_only_once(self, game):
        """Test that backfill is rejected after day 1 has opened."""
        with pytest.raises(InvalidStateTransition):
            game.backfill()

    def test_start_trading_twice(self, trading):
        """Test that trading cannot start while already trading."""
        with pytest.raises(InvalidStateTransition):
            trading.start_trading()

    def test_process_day_before_trading(self, game):
        """Test that the day cannot close before trading starts."""
        with pytest.raises(InvalidStateTransition):
            game.process_day()

    def test_tick_outside_trading(self, game):
        """Test that ticks are ignored unless trading."""
        assert game.process_tick() is False
        assert game.state.tick == 0

    def test_clock_ends_trading(self, make_asset):
        """Test that the wall-clock duration closes the trading window."""
        clock = FakeClock()
        game = _new_game(make_asset, clock=clock, day_duration_seconds=60)
        game.start_trading()
        assert game.process_tick() is True
        clock.now = 61.0
        assert game.process_tick() is False
        assert game.status is SimulationStatus.END_OF_DAY
        assert game.state.tick == 1

    def test_tick_budget_ends_trading(self, trading):
        """Test that consuming every tick of the day closes the window."""
        ticks = 0
        while trading.process_tick():
            ticks += 1
        assert ticks == trading.state.ticks_per_day
        assert trading.status is SimulationStatus.END_OF_DAY

    def test_process_day_fast_forwards(self, trading):
        """Test that closing the day simulates the remaining ticks and opens the next day."""
        for _ in range(10):
            trading.process_tick()
        assert trading.process_day() is True
        assert trading.state.day == 2
        assert trading.state.tick == 0
        assert trading.status is SimulationStatus.BEGINNING_OF_DAY
        history = trading.state.assets["mid"].price_history
        assert history.today == []
        assert len(history.yesterday) > 0

    def test_net_worth_sampled_per_minute(self, trading):
        """Test one net-worth sample every 60 ticks."""
        for _ in range(180):
            trading.process_tick()
        assert [s["tick"] for s in trading.get_net_worth_history()] == [60, 120, 180]


# =============================================================================
# Test: Determinism
# =============================================================================


class TestDeterminism:
    """Tests for seeded replay."""

    def test_same_seed_same_game(self, make_asset):
        """Test that two games from one seed stay identical over several days."""
        games = [_new_game(make_asset, seed="replay") for _ in range(2)]
        for game in games:
            for _ in range(3):
                game.start_trading()
                game.process_day()
        assert _canonical(games[0]) == _canonical(games[1])

    def test_different_seeds_diverge(self, make_asset):
        """Test that different seeds produce different prices."""
        a = _new_game(make_asset, seed=1)
        b = _new_game(make_asset, seed=2)
        for game in (a, b):
            game.start_trading()
            game.process_day()
        assert a.state.prices() != b.state.prices()

    def test_save_and_resume_matches_uninterrupted(self, make_asset, tmp_path):
        """Test that saving mid-day and resuming replays the same day."""
        straight = _new_game(make_asset, store=JsonSaveStore(tmp_path / "a"))
        resumed = _new_game(make_asset, store=JsonSaveStore(tmp_path / "b"))
        for game in (straight, resumed):
            game.start_trading()
            for _ in range(100):
                game.process_tick()

        assert resumed.save() is True
        loaded = Game.load(resumed.store, "default", clock=lambda: 0.0)
        assert loaded.status is SimulationStatus.END_OF_DAY
        assert loaded.state.tick == 100

        straight.process_day()
        loaded.process_day()
        assert _canonical(straight) == _canonical(loaded)


# =============================================================================
# Test: Persistence
# =============================================================================


class TestPersistence:
    """Tests for saving, loading and the dirty flag."""

    def test_dirty_flag(self, make_asset, tmp_path):
        """Test that saves happen only when something changed."""
        game = _new_game(make_asset, store=JsonSaveStore(tmp_path))
        assert game.dirty is True
        assert game.save() is True
        assert game.dirty is False
        assert game.save() is False
        game.execute_trade(TradeAction(TradeType.BUY, "mid", usd=100.0))
        assert game.dirty is True

    def test_save_without_store(self, game):
        """Test that a game without a store never saves."""
        assert game.save() is False

    def test_load_missing_profile(self, tmp_path):
        """Test that loading an unknown profile returns None."""
        assert Game.load(JsonSaveStore(tmp_path), "nobody") is None

    def test_background_save(self, make_asset, tmp_path):
        """Test that a background save writes the snapshot."""
        store = JsonSaveStore(tmp_path)
        game = _new_game(make_asset, store=store)
        thread = game.save_in_background()
        thread.join(timeout=5)
        assert store.load_game("default")["seed"] == game.state.seed
        assert game.dirty is False

    def test_day_close_saves(self, make_asset, tmp_path):
        """Test that closing a day persists the new day."""
        store = JsonSaveStore(tmp_path)
        game = _new_game(make_asset, store=store)
        game.start_trading()
        game.process_day()
        saved = store.load_game("default")
        assert saved["day"] == 2
        assert saved["simulationStatus"] == SimulationStatus.BEGINNING_OF_DAY.value
        assert saved["rngState"] == game.rng.get_state()

    def test_failed_save_does_not_stop_the_day(self, make_asset, tmp_path):
        """Test that a save failure is logged and the simulation keeps going."""
        store_dir = tmp_path / "saves"
        game = _new_game(make_asset, store=JsonSaveStore(store_dir))
        shutil.rmtree(store_dir)
        game.start_trading()
        assert game.process_day() is True
        assert game.state.day == 2
        assert game.status is SimulationStatus.BEGINNING_OF_DAY
        assert game.dirty is True


# =============================================================================
# Test: Actions
# =============================================================================


class TestActions:
    """Tests for player actions through the game."""

    def test_trade_ids_allocated_on_success_only(self, game):
        """Test that a rejected trade does not consume an id."""
        with pytest.raises(InsufficientCashError):
            game.execute_trade(TradeAction(TradeType.BUY, "mid", usd=1e9))
        assert game.state.next_id == 1
        result = game.execute_trade(TradeAction(TradeType.BUY, "mid", usd=1000.0))
        assert result.trades[0].id == "trade_1"
        assert game.state.player.trades[-1].id == "trade_1"
        assert game.state.player.cash_usd == pytest.approx(9000.0)
        assert game.state.player.holdings["mid"] == pytest.approx(10.0)
        assert game.state.events[0].id == "evt_2"

    def test_trade_unknown_asset(self, game):
        """Test that trading a missing asset returns None."""
        assert game.execute_trade(TradeAction(TradeType.BUY, "nope", usd=10.0)) is None

    def test_bribe_without_asset(self, game):
        """Test that a bribe needs no target asset."""
        result = game.execute_op(OpAction(OpType.BRIBE, budget=1000.0))
        assert result.operation.id == "op_1"
        assert result.operation.asset_id is None
        assert game.state.player.cash_usd == pytest.approx(9000.0)
        assert game.state.active_ops[0].type.value == "bribe"

    def test_pump_requires_asset(self, game):
        """Test that a pump without a known target is ignored."""
        assert game.execute_op(OpAction(OpType.PUMP, budget=100.0)) is None
        assert game.state.active_ops == []

    def test_kpis(self, game):
        """Test the KPI keys."""
        assert set(game.get_kpis()) == {
            "cash", "netWorth", "reputation", "influence", "security",
            "scrutiny", "exposure", "realizedPnL", "roi",
        }


# =============================================================================
# Test: Limit Orders
# =============================================================================


class TestLimitOrders:
    """Tests for limit order placement and execution."""

    def test_buy_fills_on_trigger(self, trading):
        """Test that a buy below the current price fills on the next tick."""
        order = trading.place_limit_order(TradeSide.BUY, "mid", trigger_price=1_000.0, amount=500.0)
        assert isinstance(order, LimitOrder)
        trading.process_tick()
        filled = trading.state.find_order(order.id)
        assert filled.status is LimitOrderStatus.FILLED
        assert filled.filled_tick == 1
        assert trading.state.player.holdings["mid"] > 0

    def test_sell_without_units_fails(self, trading):
        """Test that a triggered order that cannot execute is marked failed."""
        order = trading.place_limit_order(TradeSide.SELL, "mid", trigger_price=0.001, amount=5.0)
        trading.process_tick()
        failed = trading.state.find_order(order.id)
        assert failed.status is LimitOrderStatus.FAILED
        assert failed.failure_reason

    def test_invalid_order(self, game):
        """Test that non-positive triggers or amounts are rejected."""
        with pytest.raises(InvalidActionError):
            game.place_limit_order(TradeSide.BUY, "mid", trigger_price=0, amount=10.0)
        assert game.place_limit_order(TradeSide.BUY, "nope", trigger_price=1.0, amount=1.0) is None

    def test_cancel(self, game):
        """Test that only pending orders can be cancelled."""
        order = game.place_limit_order(TradeSide.BUY, "mid", trigger_price=1.0, amount=10.0)
        assert game.cancel_limit_order(order.id) is True
        assert game.state.find_order(order.id).status is LimitOrderStatus.CANCELLED
        assert game.cancel_limit_order(order.id) is False


# =============================================================================
# Test: Offers
# =============================================================================


class TestOffers:
    """Tests for accepting and declining offers."""

    @pytest.fixture
    def offered(self, game):
        game.state.player = PlayerState(holdings={"mid": 10.0})
        game.state.active_offers.append(Offer(
            id="offer_1_gov",
            type=OfferType.GOV_BUMP,
            asset_id="mid",
            description="Sell to the treasury",
            action="Sell",
            cost=0.0,
            benefit=1500.0,
            units=4.0,
            scrutiny_increase=10.0,
            created_day=1,
            expires_day=6,
        ))
        return game

    def test_accept(self, offered):
        """Test that accepting pays out and removes the offer."""
        offered.accept_offer("offer_1_gov")
        player = offered.state.player
        assert player.cash_usd == pytest.approx(11500.0)
        assert player.holdings["mid"] == pytest.approx(6.0)
        assert player.scrutiny == pytest.approx(10.0)
        assert offered.get_active_offers() == []

    def test_failed_accept_keeps_offer(self, offered):
        """Test that an offer that cannot execute stays listed."""
        offered.state.player = PlayerState(holdings={"mid": 1.0})
        with pytest.raises(InsufficientUnitsError):
            offered.accept_offer("offer_1_gov")
        assert len(offered.get_active_offers()) == 1
        assert offered.state.next_id == 1

    def test_decline(self, offered):
        """Test that declining removes the offer."""
        assert offered.decline_offer("offer_1_gov") is True
        assert offered.get_active_offers() == []
        assert offered.decline_offer("offer_1_gov") is False

    def test_unknown_offer(self, game):
        """Test that accepting a missing offer returns None."""
        assert game.accept_offer("missing") is None

    def test_offer_for_missing_asset(self, offered):
        """Test that an offer whose asset is gone returns None and stays listed."""
        del offered.state.assets["mid"]
        assert offered.accept_offer("offer_1_gov") is None
        assert len(offered.get_active_offers()) == 1
        assert offered.state.next_id == 1
        assert offered.state.player.holdings == {"mid": 10.0}


# =============================================================================
# Test: End-to-End Replay
# =============================================================================


class TestReplay:
    """Tests for a full trading day against an independent replay."""

    def test_day_matches_independent_replay(self, make_asset):
        """Test that 1800 ticks reproduce exactly from the seed with the tick models alone."""
        game = Game.new_game(
            "test-1", assets=[make_asset()], player=PlayerState(), run_backfill=False, clock=lambda: 0.0)
        game.start_trading()
        while game.process_tick():
            pass
        assert game.state.tick == 1800

        shadow = make_asset()
        player = PlayerState()
        rng = SeededRNG("test-1")
        trades = 0
        for tick in range(1, 1801):
            volume = calculate_dynamic_volume(shadow, MarketVibe.NORMIE, tick, 1800)
            candle = simulate_trade(shadow, rng, tick, 1, volume, MIN_PRICE, 1800)
            if candle is not None:
                trades += 1
                shadow = apply_asset_patch(
                    shadow, AssetPatch(shadow.id, price=candle.close, new_candles=[candle]), MIN_PRICE)
            events = process_tick_events([shadow], player, rng, tick, 1, MIN_PRICE, 1.0)
            for patch in events.asset_patches:
                shadow = apply_asset_patch(shadow, patch, MIN_PRICE)
            if events.player_patch is not None:
                player = apply_player_patch(player, events.player_patch)

        asset = game.state.assets["mid"]
        assert trades > 0
        assert len(asset.price_history.today) == trades
        assert asset.price == shadow.price
        assert asset.price_history.today[-1].close == shadow.price_history.today[-1].close
        assert game.rng.get_state() == rng.get_state()


# =============================================================================
# Test: Rug Bleed and Freezes
# =============================================================================


class TestRugBleed:
    """Tests for per-tick effects on rugged assets and frozen accounts."""

    def _rugged_game(self, make_asset, **overrides):
        rugged = make_asset("rug", rugged=True, flagged=True, rug_warned=True, rug_start_tick=0, **overrides)
        game = Game.new_game(
            "bleed", assets=[rugged], player=PlayerState(), run_backfill=False, clock=lambda: 0.0)
        game.start_trading()
        return game

    def test_bleeds_every_thirty_ticks(self, make_asset):
        """Test one monotone bleed step every 30 ticks after the rug."""
        game = self._rugged_game(make_asset)
        price = game.state.assets["rug"].price
        bleed_ticks = []
        while game.process_tick():
            new_price = game.state.assets["rug"].price
            assert new_price <= price
            assert new_price >= MIN_PRICE
            if new_price < price:
                bleed_ticks.append(game.state.tick)
            price = new_price

        assert len(bleed_ticks) == 60
        assert all(tick % 30 == 0 for tick in bleed_ticks)
        assert game.state.assets["rug"].liquidity_usd == pytest.approx(1_000_000 * 0.9 ** 60)

    def test_bleed_stops_at_floor(self, make_asset):
        """Test that an asset bled to the floor stays there."""
        game = self._rugged_game(make_asset, price=MIN_PRICE)
        while game.process_tick():
            pass
        dead = game.state.assets["rug"]
        assert dead.price == MIN_PRICE
        assert dead.liquidity_usd == pytest.approx(1_000_000)

    def test_freeze_lapses(self, make_asset):
        """Test that a freeze lifts automatically at its expiry tick."""
        trading = _new_game(make_asset, event_multiplier=0.0)
        trading.state.player = PlayerState(
            holdings={"mid": 10.0}, frozen_units={"mid": 4.0}, frozen_until_tick=3)
        trading.start_trading()
        trading.process_tick()
        trading.process_tick()
        assert trading.state.player.frozen_units == {"mid": 4.0}

        trading.process_tick()
        player = trading.state.player
        assert player.frozen_units == {}
        assert player.frozen_until_tick is None
        assert any(e.message == "Account freeze lifted" for e in trading.state.events)
