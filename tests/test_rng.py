"""
Tests for the seeded random number generator.

Covers seed hashing, determinism, state save/restore and the derived
distributions (range, int, chance, pick, normal, shuffle).
"""

import math

import pytest

from src.engine.rng import SeededRNG, hash_seed


# =============================================================================
# Test: Seed Hashing
# =============================================================================


class TestHashSeed:
    """Tests for seed reduction to 32 bits."""

    def test_empty_string_is_offset_basis(self):
        """Test that the empty string hashes to the FNV offset basis."""
        assert hash_seed("") == 0x811C9DC5

    def test_known_fnv1a_value(self):
        """Test a published FNV-1a 32-bit value."""
        assert hash_seed("a") == 0xE40C292C

    def test_string_hash_is_stable(self):
        """Test that the same string always hashes the same."""
        assert hash_seed("test-1") == hash_seed("test-1")
        assert hash_seed("test-1") != hash_seed("test-2")

    def test_int_is_masked(self):
        """Test that integers are reduced to 32 bits."""
        assert hash_seed(42) == 42
        assert hash_seed(2 ** 32 + 7) == 7
        assert hash_seed(-1) == 0xFFFFFFFF

    def test_rejects_other_types(self):
        """Test that non int/str seeds are rejected."""
        with pytest.raises(TypeError):
            hash_seed(1.5)
        with pytest.raises(TypeError):
            hash_seed(True)


# =============================================================================
# Test: Determinism
# =============================================================================


class TestDeterminism:
    """Tests for reproducible sequences."""

    def test_same_seed_same_sequence(self):
        """Test that two generators with one seed agree."""
        a = SeededRNG("test-1")
        b = SeededRNG("test-1")
        assert [a.next() for _ in range(100)] == [b.next() for _ in range(100)]

    def test_string_and_hashed_seed_agree(self):
        """Test that a string seed equals its hashed integer seed."""
        a = SeededRNG("test-1")
        b = SeededRNG(hash_seed("test-1"))
        assert a.next() == b.next()

    def test_different_seeds_diverge(self):
        """Test that different seeds give different sequences."""
        a = SeededRNG("test-1")
        b = SeededRNG("test-2")
        assert [a.next() for _ in range(5)] != [b.next() for _ in range(5)]

    def test_state_restore_replays_sequence(self):
        """Test that set_state resumes the exact same future sequence."""
        rng = SeededRNG("save-me")
        for _ in range(37):
            rng.next()
        saved = rng.get_state()
        expected = [rng.next() for _ in range(20)]

        restored = SeededRNG("anything")
        restored.set_state(saved)
        assert [restored.next() for _ in range(20)] == expected

    def test_fork_does_not_advance_parent(self):
        """Test that drawing from a fork leaves the parent untouched."""
        rng = SeededRNG(7)
        before = rng.get_state()
        fork = rng.fork("asset")
        for _ in range(10):
            fork.next()
        assert rng.get_state() == before

    def test_fork_is_deterministic(self):
        """Test that the same salt gives the same fork sequence."""
        a = SeededRNG(7).fork("BTC")
        b = SeededRNG(7).fork("BTC")
        assert a.next() == b.next()


# =============================================================================
# Test: Distributions
# =============================================================================


class TestDistributions:
    """Tests for the helpers built on next()."""

    @pytest.fixture
    def rng(self):
        return SeededRNG("distributions")

    def test_next_in_unit_interval(self, rng):
        """Test that next() stays in [0, 1)."""
        for _ in range(5000):
            value = rng.next()
            assert 0.0 <= value < 1.0

    def test_range_bounds(self, rng):
        """Test that range() stays in [min, max)."""
        for _ in range(2000):
            value = rng.range(0.7, 0.8)
            assert 0.7 <= value < 0.8

    def test_int_inclusive_bounds(self, rng):
        """Test that int() hits both ends and nothing outside."""
        seen = {rng.int(1, 3) for _ in range(2000)}
        assert seen == {1, 2, 3}

    def test_int_single_value(self, rng):
        """Test that int(n, n) always returns n."""
        assert all(rng.int(0, 0) == 0 for _ in range(50))

    def test_chance_extremes(self, rng):
        """Test that chance(0) never fires and chance(1) always does."""
        assert not any(rng.chance(0.0) for _ in range(500))
        assert all(rng.chance(1.0) for _ in range(500))

    def test_chance_frequency(self, rng):
        """Test that chance(0.3) fires roughly 30% of the time."""
        hits = sum(rng.chance(0.3) for _ in range(10000))
        assert 2700 < hits < 3300

    def test_pick_returns_member(self, rng):
        """Test that pick() returns an element of the sequence."""
        items = ["a", "b", "c"]
        assert all(rng.pick(items) in items for _ in range(100))

    def test_pick_empty_raises(self, rng):
        """Test that pick() on an empty sequence raises."""
        with pytest.raises(ValueError):
            rng.pick([])

    def test_normal_consumes_two_draws(self):
        """Test that one normal sample advances the generator twice."""
        a = SeededRNG(99)
        b = SeededRNG(99)
        a.normal()
        b.next()
        b.next()
        assert a.get_state() == b.get_state()

    def test_normal_is_finite_and_centered(self, rng):
        """Test that normal samples are finite with mean near zero."""
        samples = [rng.normal() for _ in range(5000)]
        assert all(math.isfinite(s) for s in samples)
        assert abs(sum(samples) / len(samples)) < 0.1

    def test_normal_scaling(self):
        """Test that mean and std_dev scale the standard sample."""
        a = SeededRNG(5)
        b = SeededRNG(5)
        z = a.normal()
        assert b.normal(10.0, 2.0) == pytest.approx(10.0 + 2.0 * z)

    def test_shuffle_is_permutation(self, rng):
        """Test that shuffle() returns a reordering without touching the input."""
        items = list(range(20))
        shuffled = rng.shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(20))
