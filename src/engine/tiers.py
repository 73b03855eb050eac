"""Asset risk tiers and the tier gates on rug pulls and exit scams."""

from .models import Asset, AssetTier

BLUECHIP_MIN_LIQUIDITY = 5_000_000
BLUECHIP_MIN_AUDIT = 0.7
SHITCOIN_MAX_LIQUIDITY = 500_000
SHITCOIN_MAX_AUDIT = 0.4


def classify_tier(liquidity_usd: float, audit_score: float) -> AssetTier:
    """
    Classify an asset from its liquidity and audit score.

    Bluechip needs deep liquidity AND a strong audit; thin liquidity OR a
    weak audit makes a shitcoin; everything else is midcap.
    """
    if liquidity_usd > BLUECHIP_MIN_LIQUIDITY and audit_score > BLUECHIP_MIN_AUDIT:
        return AssetTier.BLUECHIP
    if liquidity_usd < SHITCOIN_MAX_LIQUIDITY or audit_score < SHITCOIN_MAX_AUDIT:
        return AssetTier.SHITCOIN
    return AssetTier.MIDCAP


def can_rug(asset: Asset) -> bool:
    """Bluechips never rug; a rugged asset cannot rug twice."""
    return asset.tier is not AssetTier.BLUECHIP and not asset.rugged


def can_exit_scam(asset: Asset) -> bool:
    """Only live shitcoins can exit scam."""
    return asset.tier is AssetTier.SHITCOIN and not asset.rugged
