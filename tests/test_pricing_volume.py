"""
Tests for the price model, dynamic volume and tier classification.
"""

import math

import pytest

from src.engine.candles import PriceCandle
from src.engine.models import AssetTier, MarketVibe
from src.engine.pricing import (
    apply_oracle_hack,
    apply_pump,
    apply_rug_bleed,
    apply_rug_initial,
    apply_whale_buyback,
    is_dead,
    overnight_gap,
    simulate_trade,
    tick_sigma,
    trade_probability,
)
from src.engine.rng import SeededRNG
from src.engine.tiers import can_exit_scam, can_rug, classify_tier
from src.engine.vibe import VIBE_DISTRIBUTION, roll_market_vibe, select_vibe_targets
from src.engine.volume import (
    MAX_VOLUME,
    MIN_VOLUME,
    calculate_dynamic_volume,
    momentum_multiplier,
    time_of_day_multiplier,
    vibe_multiplier,
    volume_category,
)

MIN_PRICE = 0.00001


# =============================================================================
# Test: Trade Simulation
# =============================================================================


class TestSimulateTrade:
    """Tests for the per-tick random walk."""

    def test_trade_probability_bounds(self):
        """Test 10% at zero volume and 90% at full volume."""
        assert trade_probability(0.0) == pytest.approx(0.1)
        assert trade_probability(1.0) == pytest.approx(0.9)

    def test_tick_sigma_formula(self, asset):
        """Test sigma scaling from daily volatility to one tick."""
        expected = 0.1 / math.sqrt(1800) * (0.8 + 0.6 * 0.5) * 1.05
        assert tick_sigma(asset, 0.05, 1800) == pytest.approx(expected)

    def test_trade_candle_shape(self, asset):
        """Test that a trade candle opens at the old price and brackets the move."""
        rng = SeededRNG("trade")
        candle = None
        for tick in range(1, 200):
            candle = simulate_trade(asset, rng, tick, 1, 1.0, MIN_PRICE)
            if candle is not None:
                break
        assert candle is not None
        assert candle.open == asset.price
        assert candle.high == max(candle.open, candle.close)
        assert candle.low == min(candle.open, candle.close)
        assert candle.volume == 1.0

    def test_no_trade_consumes_one_draw(self, asset):
        """Test the draw order: a missed trade uses only the chance draw."""
        rng = SeededRNG(11)
        replay = SeededRNG(11)
        results = [simulate_trade(asset, rng, t, 1, 0.0, MIN_PRICE) for t in range(1, 50)]

        for result in results:
            if replay.next() < trade_probability(0.0):
                replay.range(-0.1, 0.1)
                replay.normal()
                assert result is not None
            else:
                assert result is None
        assert rng.get_state() == replay.get_state()

    def test_price_floor(self, make_asset):
        """Test that a trade never takes the price below the floor."""
        cheap = make_asset("dust", price=MIN_PRICE, base_volatility=50.0)
        rng = SeededRNG("floor")
        for tick in range(1, 500):
            candle = simulate_trade(cheap, rng, tick, 1, 1.0, MIN_PRICE)
            if candle is not None:
                assert candle.close >= MIN_PRICE

    def test_deterministic(self, asset):
        """Test that the same seed gives the same candle."""
        a = simulate_trade(asset, SeededRNG(3), 1, 1, 1.0, MIN_PRICE)
        b = simulate_trade(asset, SeededRNG(3), 1, 1, 1.0, MIN_PRICE)
        assert a == b


# =============================================================================
# Test: One-off Effects
# =============================================================================


class TestPriceEffects:
    """Tests for event and operation multipliers."""

    def test_pump_range(self, asset):
        """Test pump multiplier of 1 + budget/10000 + U(0, 0.15)."""
        rng = SeededRNG("pump")
        for _ in range(100):
            price = apply_pump(asset, 5000, rng)
            assert 150.0 <= price < 165.0

    def test_whale_buyback_range(self, asset):
        """Test whale buyback multiplier of 2x-4x."""
        rng = SeededRNG("whale")
        for _ in range(100):
            assert 200.0 <= apply_whale_buyback(asset, rng) < 400.0

    def test_oracle_hack_floor(self, asset):
        """Test that a downward oracle hack floors at the minimum price."""
        rng = SeededRNG("oracle")
        for _ in range(100):
            price, direction = apply_oracle_hack(asset, rng, MIN_PRICE)
            assert direction in (1, -1)
            if direction < 0:
                assert price == MIN_PRICE
            else:
                assert 200.0 <= price < 500.0

    def test_rug_initial(self, asset):
        """Test rug crash of 20-30% and liquidity to 60-80%."""
        rng = SeededRNG("rug")
        price, liquidity = apply_rug_initial(asset, rng, MIN_PRICE)
        assert 70.0 <= price < 80.0
        assert 600_000.0 <= liquidity < 800_000.0

    def test_rug_bleed(self, asset):
        """Test one bleed step."""
        rng = SeededRNG("bleed")
        price, liquidity = apply_rug_bleed(asset, rng, MIN_PRICE)
        assert 85.0 <= price < 95.0
        assert liquidity == pytest.approx(900_000.0)

    def test_is_dead(self, make_asset):
        """Test that only rugged assets at the floor are dead."""
        assert is_dead(make_asset(rugged=True, price=MIN_PRICE), MIN_PRICE)
        assert not is_dead(make_asset(rugged=True, price=1.0), MIN_PRICE)
        assert not is_dead(make_asset(price=MIN_PRICE), MIN_PRICE)


class TestOvernightGap:
    """Tests for the close-to-open gap."""

    def test_gap_clamped(self, make_asset):
        """Test that the gap never loses more than 90%."""
        wild = make_asset("wild", base_volatility=20.0)
        rng = SeededRNG("gap")
        for _ in range(200):
            assert overnight_gap(wild, MarketVibe.NORMIE, False, rng, MIN_PRICE) >= 10.0 - 1e-9

    def test_moonshot_target_drifts_up(self, make_asset):
        """Test that moonshot targets gap up on average."""
        calm = make_asset("calm", base_volatility=0.01)
        rng = SeededRNG("moon")
        prices = [overnight_gap(calm, MarketVibe.MOONSHOT, True, rng, MIN_PRICE) for _ in range(50)]
        assert sum(prices) / len(prices) > 105.0

    def test_bloodbath_drifts_down(self, make_asset):
        """Test that a bloodbath gaps down on average."""
        calm = make_asset("calm", base_volatility=0.01)
        rng = SeededRNG("blood")
        prices = [overnight_gap(calm, MarketVibe.BLOODBATH, False, rng, MIN_PRICE) for _ in range(50)]
        assert sum(prices) / len(prices) < 97.0


# =============================================================================
# Test: Dynamic Volume
# =============================================================================


class TestDynamicVolume:
    """Tests for volume multipliers and clamping."""

    def test_midday_baseline(self, asset):
        """Test base * hype at midday on a normal day."""
        volume = calculate_dynamic_volume(asset, MarketVibe.NORMIE, 900, 1800)
        assert volume == pytest.approx((0.3 + 0.5 * 0.4) * 1.0)

    def test_rugged_pinned_to_min(self, make_asset):
        """Test that rugged assets trade at minimum volume."""
        rugged = make_asset(rugged=True, social_hype=1.0)
        assert calculate_dynamic_volume(rugged, MarketVibe.MEMEFRENZY, 1700) == MIN_VOLUME

    def test_clamped(self, make_asset):
        """Test that volume stays within [0.05, 1.0]."""
        hot = make_asset(volume=1.0, social_hype=1.0)
        cold = make_asset(volume=0.0, social_hype=0.0)
        assert calculate_dynamic_volume(hot, MarketVibe.MEMEFRENZY, 1790) == MAX_VOLUME
        assert calculate_dynamic_volume(cold, MarketVibe.MOONSHOT, 1) >= MIN_VOLUME

    def test_time_of_day(self):
        """Test slow open and frantic close."""
        assert time_of_day_multiplier(0, 1800) == pytest.approx(0.5)
        assert time_of_day_multiplier(900, 1800) == 1.0
        assert time_of_day_multiplier(1800, 1800) == pytest.approx(2.0)

    def test_vibe_multipliers(self, asset, shitcoin):
        """Test per-vibe volume multipliers."""
        assert vibe_multiplier(asset, MarketVibe.MOONSHOT, [asset.id]) == 2.5
        assert vibe_multiplier(asset, MarketVibe.MOONSHOT, []) == 0.7
        assert vibe_multiplier(asset, MarketVibe.BLOODBATH) == 1.8
        assert vibe_multiplier(shitcoin, MarketVibe.MEMEFRENZY) == 2.0
        assert vibe_multiplier(asset, MarketVibe.MEMEFRENZY) == 1.2
        assert vibe_multiplier(shitcoin, MarketVibe.RUGSEASON) == 1.5
        assert vibe_multiplier(asset, MarketVibe.WHALEWAR) == 1.6

    def test_momentum(self, asset):
        """Test momentum from the last trades of the day."""
        assert momentum_multiplier(asset) == 1.0
        asset.price_history.record_trade(PriceCandle(1, 1, 100, 100, 100, 100, 1))
        asset.price_history.record_trade(PriceCandle(2, 1, 100, 110, 100, 110, 1))
        assert momentum_multiplier(asset) == pytest.approx(1.3)

    def test_volume_category(self):
        """Test display labels."""
        assert volume_category(0.1) == "Very Low"
        assert volume_category(0.5) == "Medium"
        assert volume_category(0.95) == "Very High"


# =============================================================================
# Test: Tiers
# =============================================================================


class TestTiers:
    """Tests for tier classification and gates."""

    def test_classification(self):
        """Test bluechip, midcap and shitcoin thresholds."""
        assert classify_tier(10_000_000, 0.9) is AssetTier.BLUECHIP
        assert classify_tier(10_000_000, 0.5) is AssetTier.MIDCAP
        assert classify_tier(100_000, 0.9) is AssetTier.SHITCOIN
        assert classify_tier(1_000_000, 0.3) is AssetTier.SHITCOIN

    def test_gates(self, asset, shitcoin, bluechip, make_asset):
        """Test which tiers can rug or exit scam."""
        assert not can_rug(bluechip)
        assert can_rug(asset)
        assert can_rug(shitcoin)
        assert not can_rug(make_asset(rugged=True))
        assert can_exit_scam(shitcoin)
        assert not can_exit_scam(asset)


# =============================================================================
# Test: Market Vibe
# =============================================================================


class TestMarketVibe:
    """Tests for the daily vibe roll."""

    def test_distribution(self):
        """Test that 10,000 rolls land within 2 points of each target share."""
        rng = SeededRNG("vibes")
        counts = {vibe: 0 for vibe, _ in VIBE_DISTRIBUTION}
        for _ in range(10000):
            counts[roll_market_vibe(rng)] += 1
        for vibe, weight in VIBE_DISTRIBUTION:
            assert abs(counts[vibe] / 10000 - weight) <= 0.02

    def test_single_draw(self):
        """Test that a roll consumes exactly one value."""
        rng = SeededRNG(3)
        roll_market_vibe(rng)
        reference = SeededRNG(3)
        reference.next()
        assert rng.get_state() == reference.get_state()

    def test_targets(self, asset, shitcoin, bluechip, make_asset):
        """Test 1-3 distinct live targets for targeted vibes only."""
        dead = make_asset("dead", rugged=True)
        assets = [asset, shitcoin, bluechip, dead]
        for seed in range(20):
            targets = select_vibe_targets(MarketVibe.WHALEWAR, assets, SeededRNG(seed))
            assert 1 <= len(targets) <= 3
            assert len(set(targets)) == len(targets)
            assert "dead" not in targets
        assert select_vibe_targets(MarketVibe.BLOODBATH, assets, SeededRNG(1)) == []


class TestVolumeBounds:
    """Tests for volume clamping across extreme inputs."""

    @pytest.mark.parametrize("vibe", list(MarketVibe))
    def test_extremes_stay_in_range(self, make_asset, vibe):
        """Test all-zero and all-one attributes at the open, midday and close."""
        for level in (0.0, 1.0):
            asset = make_asset(volume=level, social_hype=level, liquidity_usd=1_000 if level else 50_000_000)
            for tick in (0, 900, 1800):
                for targets in ([], [asset.id]):
                    volume = calculate_dynamic_volume(asset, vibe, tick, 1800, targets)
                    assert MIN_VOLUME <= volume <= MAX_VOLUME
