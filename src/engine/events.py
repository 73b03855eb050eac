"""
Per-tick risk events.

Rolls rug pulls, exit scams, oracle hacks, whale buybacks and account
freezes against a read-only snapshot and returns the resulting patches and
feed events. A failure while evaluating one asset is logged and skips only
that asset.
"""

import logging
from typing import List, Set

from .models import Asset, EventType, GameEvent, PlayerState, Severity
from .patches import AssetPatch, PlayerPatch, StageResult
from .pricing import apply_oracle_hack, apply_rug_initial, apply_whale_buyback
from .risk import (
    exit_scam_probability,
    freeze_probability,
    oracle_hack_probability,
    rug_probability,
    whale_buyback_probability,
)
from .rng import SeededRNG
from .tiers import can_exit_scam, can_rug

logger = logging.getLogger(__name__)

TICKS_PER_MINUTE = 60


def _roll(rng: SeededRNG, probability: float) -> bool:
    """Chance check that consumes no draw when the probability is zero."""
    return probability > 0 and rng.chance(probability)


def build_event(event_type: EventType, tick: int, day: int, message: str,
                severity: Severity, asset_id=None, **metadata) -> GameEvent:
    return GameEvent(
        id="",
        tick=tick,
        day=day,
        type=event_type,
        message=message,
        severity=severity,
        asset_id=asset_id,
        metadata=metadata,
    )


def process_tick_events(
    assets: List[Asset],
    player: PlayerState,
    rng: SeededRNG,
    tick: int,
    day: int,
    min_price: float,
    event_multiplier: float = 1.0,
) -> StageResult:
    """
    Roll every risk event for one tick.

    Evaluation order is fixed (rugs, exit scams, oracle hack, whale
    buybacks, freeze) so the draw sequence is reproducible.

    Args:
        assets: All assets in stable order
        player: Player snapshot
        rng: Game RNG
        tick: Absolute tick
        day: Current day
        min_price: Price floor
        event_multiplier: Rate multiplier (dev mode)

    Returns:
        StageResult with asset patches, a player patch and events
    """
    result = StageResult()
    struck: Set[str] = set()
    scrutiny = player.scrutiny
    player_touched = False

    # Rug pulls: tier-gated and only after a public warning
    for asset in assets:
        if asset.flagged or not asset.rug_warned or not can_rug(asset):
            continue
        try:
            if _roll(rng, rug_probability(asset) * event_multiplier):
                new_price, new_liquidity = apply_rug_initial(asset, rng, min_price)
                result.asset_patches.append(AssetPatch(
                    asset_id=asset.id,
                    price=new_price,
                    liquidity_usd=new_liquidity,
                    rugged=True,
                    flagged=True,
                    rug_start_tick=tick,
                ))
                struck.add(asset.id)
                drop = (1 - new_price / asset.price) * 100
                result.events.append(build_event(
                    EventType.RUG, tick, day,
                    f"RUG PULL INITIATED: {asset.symbol} crashed {drop:.1f}%! Price bleeding...",
                    Severity.DANGER, asset.id, oldPrice=asset.price, newPrice=new_price,
                ))
                logger.info(f"Rug pull on {asset.symbol} at tick {tick} ({drop:.1f}% drop)")
        except Exception:
            logger.exception(f"Rug evaluation failed for {asset.id}")

    # Exit scams: shitcoins only
    for asset in assets:
        if asset.id in struck or not can_exit_scam(asset):
            continue
        try:
            if _roll(rng, exit_scam_probability() * event_multiplier):
                result.asset_patches.append(AssetPatch(
                    asset_id=asset.id,
                    price=asset.price * 0.001,
                    liquidity_usd=0.0,
                    rugged=True,
                    flagged=True,
                    rug_start_tick=tick,
                ))
                struck.add(asset.id)
                scrutiny += rng.range(5, 15)
                player_touched = True
                result.events.append(build_event(
                    EventType.EXIT_SCAM, tick, day,
                    f"EXIT SCAM: {asset.symbol} devs vanished with all funds!",
                    Severity.DANGER, asset.id,
                ))
                logger.info(f"Exit scam on {asset.symbol} at tick {tick}")
        except Exception:
            logger.exception(f"Exit scam evaluation failed for {asset.id}")

    # Oracle hack: one global roll, one random victim
    if _roll(rng, oracle_hack_probability() * event_multiplier):
        victims = [a for a in assets if not a.rugged and a.id not in struck]
        if victims:
            victim = rng.pick(victims)
            try:
                new_price, direction = apply_oracle_hack(victim, rng, min_price)
                change = (new_price - victim.price) / victim.price * 100
                result.asset_patches.append(AssetPatch(asset_id=victim.id, price=new_price))
                result.events.append(build_event(
                    EventType.ORACLE_HACK, tick, day,
                    f"ORACLE HACK: {victim.symbol} {'spiked' if direction > 0 else 'crashed'} {abs(change):.0f}%!",
                    Severity.WARNING, victim.id, duration=rng.int(1, 3),
                ))
                logger.info(f"Oracle hack on {victim.symbol} at tick {tick} ({change:+.0f}%)")
            except Exception:
                logger.exception(f"Oracle hack failed for {victim.id}")

    # Whale buybacks
    for asset in assets:
        if asset.rugged or asset.id in struck:
            continue
        try:
            if _roll(rng, whale_buyback_probability(asset) * event_multiplier):
                new_price = apply_whale_buyback(asset, rng)
                change = (new_price - asset.price) / asset.price * 100
                result.asset_patches.append(AssetPatch(asset_id=asset.id, price=new_price))
                result.events.append(build_event(
                    EventType.WHALE_BUYBACK, tick, day,
                    f"WHALE ALERT: {asset.symbol} pumped {change:.0f}% from buyback!",
                    Severity.SUCCESS, asset.id,
                ))
                logger.info(f"Whale buyback on {asset.symbol} at tick {tick}")
        except Exception:
            logger.exception(f"Whale buyback evaluation failed for {asset.id}")

    # Account freeze
    freeze_patch = PlayerPatch()
    if _roll(rng, freeze_probability(player) * event_multiplier):
        freeze_pct = rng.range(0.1, 0.4)
        minutes = rng.int(3, 10)
        duration_ticks = minutes * TICKS_PER_MINUTE
        frozen = dict(player.frozen_units)
        for asset_id, units in player.holdings.items():
            frozen[asset_id] = min(units, max(frozen.get(asset_id, 0.0), units * freeze_pct))
        until = tick + duration_ticks
        if player.frozen_until_tick is not None:
            until = max(until, player.frozen_until_tick)
        freeze_patch.frozen_units = frozen
        freeze_patch.frozen_until_tick = until
        scrutiny = max(0.0, scrutiny - 10)
        player_touched = True
        result.events.append(build_event(
            EventType.FREEZE, tick, day,
            f"ACCOUNT FREEZE: {freeze_pct * 100:.0f}% of centralized holdings locked for {minutes} minutes!",
            Severity.DANGER, None, freezePct=freeze_pct, durationTicks=duration_ticks,
        ))
        logger.warning(f"Account freeze at tick {tick}: {freeze_pct:.0%} for {duration_ticks} ticks")

    if player_touched:
        freeze_patch.scrutiny = scrutiny
        result.patch_player(freeze_patch)

    return result
