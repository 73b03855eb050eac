"""Shared fixtures for the simulation tests."""

import pytest

from src.engine.candles import PriceHistory
from src.engine.models import Asset, AssetTier, PlayerState


def build_asset(asset_id="mid", **overrides):
    """A midcap asset at $100 with neutral stats; keyword overrides win."""
    fields = dict(
        id=asset_id,
        symbol=asset_id.upper(),
        name=f"{asset_id.title()} Coin",
        base_price=100.0,
        price=100.0,
        liquidity_usd=1_000_000.0,
        dev_tokens_pct=10.0,
        audit_score=0.5,
        social_hype=0.5,
        base_volatility=0.1,
        volume=0.5,
        tier=AssetTier.MIDCAP,
    )
    fields.update(overrides)
    fields.setdefault("price_history", PriceHistory())
    return Asset(**fields)


@pytest.fixture
def make_asset():
    """Factory for test assets."""
    return build_asset


@pytest.fixture
def asset():
    return build_asset()


@pytest.fixture
def shitcoin():
    return build_asset(
        "rug", price=0.01, base_price=0.01, liquidity_usd=100_000.0,
        audit_score=0.1, dev_tokens_pct=60.0, social_hype=0.9, tier=AssetTier.SHITCOIN,
    )


@pytest.fixture
def bluechip():
    return build_asset(
        "btc", price=50_000.0, base_price=50_000.0, liquidity_usd=50_000_000.0,
        audit_score=0.95, tier=AssetTier.BLUECHIP,
    )


@pytest.fixture
def player():
    """Player with $10k cash and security high enough to rule out freezes."""
    return PlayerState(cash_usd=10_000.0, net_worth_usd=10_000.0, initial_net_worth=10_000.0, security=5.0)
