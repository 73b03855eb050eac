"""
Risk probabilities.

Every rare event in the market has a fixed-form per-tick probability. These
functions only compute probabilities; events.py rolls them.
"""

from .models import Asset, OperationType, PlayerState
from .pricing import clamp

# Fixed per-tick rates
EXIT_SCAM_PROBABILITY = 0.00001
ORACLE_HACK_PROBABILITY = 0.00003
WHALE_BUYBACK_PROBABILITY = 0.00005
WHALE_BUYBACK_MIN_LIQUIDITY = 200_000

# Scrutiny / exposure added per $1000 of operation budget
SCRUTINY_PER_1K = {
    OperationType.PUMP: 0.05,
    OperationType.WASH: 0.10,
    OperationType.BRIBE: 0.15,
}
EXPOSURE_PER_1K = {
    OperationType.PUMP: 0.08,
    OperationType.WASH: 0.12,
}


def rug_probability(asset: Asset) -> float:
    """
    Per-tick rug probability.

    clamp(0.015 + dev%/100*0.012 - audit*0.010 + (0.30 - liqFactor)*0.04
          + hype*0.01, 0.002, 0.45) where liqFactor = clamp(liq/1M, 0, 1)
    """
    liquidity_factor = clamp(asset.liquidity_usd / 1_000_000, 0, 1)
    prob = (
        0.015
        + (asset.dev_tokens_pct / 100) * 0.012
        - asset.audit_score * 0.01
        + (0.3 - liquidity_factor) * 0.04
        + asset.social_hype * 0.01
    )
    return clamp(prob, 0.002, 0.45)


def exit_scam_probability() -> float:
    return EXIT_SCAM_PROBABILITY


def oracle_hack_probability() -> float:
    return ORACLE_HACK_PROBABILITY


def whale_buyback_probability(asset: Asset) -> float:
    if asset.liquidity_usd < WHALE_BUYBACK_MIN_LIQUIDITY:
        return 0.0
    return WHALE_BUYBACK_PROBABILITY


def freeze_probability(player: PlayerState) -> float:
    """clamp(0.001 + exposure*0.005 + scrutiny*0.01 - security*0.02, 0, 0.9)"""
    prob = 0.001 + player.exposure * 0.005 + player.scrutiny * 0.01 - player.security * 0.02
    return clamp(prob, 0, 0.9)


def scrutiny_increase(op_type: OperationType, budget: float) -> float:
    return SCRUTINY_PER_1K.get(op_type, 0.0) * (budget / 1000)


def exposure_increase(op_type: OperationType, budget: float) -> float:
    return EXPOSURE_PER_1K.get(op_type, 0.0) * (budget / 1000)
