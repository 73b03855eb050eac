"""
Tests for daily news, article impact, fake-news debunks and rug warnings.
"""

import pytest

from src.engine.models import NewsArticle, Sentiment
from src.engine.news import (
    apply_news_impact,
    article_impact,
    check_fake_news_debunks,
    generate_rug_warnings,
    get_news_ticker,
    prune_articles,
    reverse_fake_news_impact,
    roll_daily_news,
)
from src.engine.rng import SeededRNG


def _article(article_id="a1", day=1, weight=50.0, sentiment=Sentiment.BULLISH, is_fake=False, **kwargs):
    return NewsArticle(
        id=article_id,
        day=day,
        asset_id="mid",
        asset_symbol="MID",
        headline="MID does something",
        sentiment=sentiment,
        weight=weight,
        is_fake=is_fake,
        **kwargs,
    )


# =============================================================================
# Test: Daily Roll
# =============================================================================


class TestRollDailyNews:
    """Tests for drawing the day's articles."""

    def test_article_count(self, asset, shitcoin):
        """Test that each day publishes 2-5 articles."""
        rng = SeededRNG("news")
        for day in range(1, 30):
            articles = roll_daily_news(day, [asset, shitcoin], rng)
            assert 2 <= len(articles) <= 5
            assert all(a.day == day for a in articles)

    def test_skips_rugged_assets(self, asset, make_asset):
        """Test that rugged assets never make the news."""
        dead = make_asset("dead", rugged=True)
        rng = SeededRNG("rugged")
        for day in range(1, 20):
            assert all(a.asset_id == asset.id for a in roll_daily_news(day, [asset, dead], rng))

    def test_no_live_assets(self, make_asset):
        """Test that an all-rugged market publishes nothing."""
        assert roll_daily_news(1, [make_asset(rugged=True)], SeededRNG(1)) == []

    def test_headline_substitution(self, asset):
        """Test that the symbol placeholder is filled in."""
        templates = [{"template": "{SYMBOL} to the moon", "sentiment": "bullish", "weight": 70}]
        articles = roll_daily_news(3, [asset], SeededRNG(2), templates=templates)
        assert articles[0].headline == "MID to the moon"
        assert articles[0].weight == 70.0

    def test_fake_probability(self, asset):
        """Test that fake_probability=1 marks every article fake."""
        articles = roll_daily_news(1, [asset], SeededRNG(3), fake_probability=1.0)
        assert all(a.is_fake for a in articles)

    def test_deterministic(self, asset, shitcoin):
        """Test that the same seed yields the same articles."""
        a = roll_daily_news(4, [asset, shitcoin], SeededRNG(5))
        b = roll_daily_news(4, [asset, shitcoin], SeededRNG(5))
        assert a == b


# =============================================================================
# Test: Impact
# =============================================================================


class TestImpact:
    """Tests for per-band article impact."""

    def test_high_weight_moves_price(self):
        """Test that weight >= 61 moves price and hype."""
        multiplier, hype = article_impact(_article(weight=80), SeededRNG(1))
        assert 1.08 <= multiplier < 1.2
        assert hype == pytest.approx(0.8 * 0.2)

    def test_bearish_high_weight(self):
        """Test that bearish high-weight news pushes the price down."""
        multiplier, hype = article_impact(_article(weight=80, sentiment=Sentiment.BEARISH), SeededRNG(1))
        assert multiplier < 1.0
        assert hype < 0

    def test_mid_and_low_weight_only_hype(self):
        """Test that lower bands change hype only and draw nothing."""
        rng = SeededRNG(1)
        state = rng.get_state()
        assert article_impact(_article(weight=50), rng) == (1.0, pytest.approx(0.15))
        assert article_impact(_article(weight=20), rng) == (1.0, pytest.approx(0.03))
        assert rng.get_state() == state

    def test_fake_only_hype(self):
        """Test that fake articles never move the price."""
        multiplier, hype = article_impact(_article(weight=90, is_fake=True), SeededRNG(1))
        assert multiplier == 1.0
        assert hype == pytest.approx(0.9 * 0.15)

    def test_neutral_has_no_effect(self):
        """Test that neutral articles change nothing."""
        multiplier, hype = article_impact(_article(weight=80, sentiment=Sentiment.NEUTRAL), SeededRNG(1))
        assert multiplier == 1.0
        assert hype == 0

    def test_apply_records_clamped_hype(self, make_asset):
        """Test that the stored hype impact is the clamped delta actually applied."""
        hyped = make_asset(social_hype=0.95)
        _, hype, updated = apply_news_impact(hyped, [_article(weight=50)], SeededRNG(1))
        assert hype == 1.0
        assert updated[0].hype_impact == pytest.approx(0.05)
        assert updated[0].impact_realized is True

    def test_apply_in_order(self, asset):
        """Test that several articles compound on one asset."""
        articles = [_article("a", weight=50), _article("b", weight=50, sentiment=Sentiment.BEARISH)]
        price, hype, updated = apply_news_impact(asset, articles, SeededRNG(1))
        assert price == asset.price
        assert hype == pytest.approx(0.5)
        assert [a.id for a in updated] == ["a", "b"]


# =============================================================================
# Test: Debunks
# =============================================================================


class TestDebunks:
    """Tests for fake-news debunking."""

    def test_same_day_never_debunked(self):
        """Test that a fake is not debunked on its publication day."""
        fake = _article(day=5, is_fake=True)
        rng = SeededRNG(1)
        assert all(check_fake_news_debunks(5, [fake], rng) == [] for _ in range(50))

    def test_old_fake_debunked(self):
        """Test the 90% cap for old fakes."""
        fake = _article(day=1, is_fake=True)
        rng = SeededRNG(2)
        hits = sum(bool(check_fake_news_debunks(10, [fake], rng)) for _ in range(1000))
        assert 850 < hits < 950

    def test_real_and_debunked_skipped(self):
        """Test that real or already-debunked articles are never debunked again."""
        real = _article("real", day=1)
        done = _article("done", day=1, is_fake=True, debunked_day=2)
        assert check_fake_news_debunks(10, [real, done], SeededRNG(3)) == []

    def test_reversal_is_half(self):
        """Test that a debunk reverses half the applied hype."""
        fake = _article(is_fake=True, hype_impact=0.1)
        assert reverse_fake_news_impact(0.6, fake) == pytest.approx(0.55)
        assert reverse_fake_news_impact(0.01, fake) == 0.0


# =============================================================================
# Test: Rug Warnings
# =============================================================================


class TestRugWarnings:
    """Tests for rug warning publication."""

    def test_only_risky_shitcoins(self, asset, bluechip, shitcoin):
        """Test that only unwarned risky shitcoins are warned."""
        rng = SeededRNG("warn")
        warned_ids = set()
        for day in range(1, 60):
            articles, ids = generate_rug_warnings(day, [asset, bluechip, shitcoin], rng)
            warned_ids.update(ids)
            assert len(articles) == len(ids)
            assert all(a.sentiment is Sentiment.BEARISH for a in articles)
        assert warned_ids == {shitcoin.id}

    def test_already_warned_skipped(self, shitcoin):
        """Test that a warned asset is not warned again."""
        shitcoin.rug_warned = True
        rng = SeededRNG("again")
        for day in range(1, 30):
            assert generate_rug_warnings(day, [shitcoin], rng) == ([], [])


# =============================================================================
# Test: Retention
# =============================================================================


class TestRetention:
    """Tests for pruning and the ticker."""

    def test_prune_by_age_and_count(self):
        """Test the retention window and the article cap."""
        articles = [_article(f"a{d}", day=d) for d in range(1, 11)]
        kept = prune_articles(articles, day=10, max_articles=3, retention_days=5)
        assert [a.day for a in kept] == [10, 9, 8]
        kept = prune_articles(articles, day=10, max_articles=100, retention_days=5)
        assert min(a.day for a in kept) == 6

    def test_ticker_newest_first(self):
        """Test that the ticker lists the newest articles first."""
        articles = [_article(f"a{d}", day=d) for d in (3, 1, 2)]
        assert [a.day for a in get_news_ticker(articles, 2)] == [3, 2]
