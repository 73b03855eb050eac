"""
Opportunistic offers.

Two offer types are rolled once per day-advance, 10% each:

- Government bump: buys 20-60% of the player's largest position at 2-3x
  market price, in exchange for 10-25 scrutiny.
- Whale OTC: a whale on a liquid asset either sells to the player at
  85-95% of market or buys from the player at 105-120%.

The exact terms are fixed on the offer when generated. Acceptance executes
all of it or nothing.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from .actions import ActionResult, build_trade_patch, check_sellable, AMOUNT_EPSILON
from .errors import AssetNotFoundError, InsufficientCashError, InvalidActionError
from .models import Asset, Offer, OfferType, PlayerState, TradeSide
from .rng import SeededRNG

logger = logging.getLogger(__name__)

OFFER_DAILY_CHANCE = 0.1
GOV_BUMP_EXPIRY_DAYS = 5
WHALE_OTC_EXPIRY_DAYS = 3
WHALE_OTC_MIN_LIQUIDITY = 100_000


def largest_holding(player: PlayerState, assets: Mapping[str, Asset]) -> Optional[Tuple[Asset, float]]:
    """The live position with the highest USD value, as (asset, units)."""
    best = None
    best_value = 0.0
    for asset_id, units in player.holdings.items():
        asset = assets.get(asset_id)
        if asset is None or asset.rugged or units <= 0:
            continue
        value = units * asset.price
        if value > best_value:
            best, best_value = (asset, units), value
    return best


def generate_gov_bump_offer(
    day: int,
    player: PlayerState,
    assets: Mapping[str, Asset],
    rng: SeededRNG,
) -> Optional[Offer]:
    """Government offer for part of the player's largest holding."""
    target = largest_holding(player, assets)
    if target is None:
        return None
    asset, units_held = target

    buy_pct = rng.range(0.2, 0.6)
    multiplier = rng.range(2, 3)
    scrutiny = rng.range(10, 25)
    units = units_held * buy_pct
    payout = units * asset.price * multiplier

    return Offer(
        id=f"offer_{day}_gov",
        type=OfferType.GOV_BUMP,
        asset_id=asset.id,
        description=(
            f"Government wants to buy {buy_pct * 100:.0f}% of your {asset.symbol} "
            f"at {multiplier:.1f}x market price"
        ),
        action=f"Sell {units:.4f} {asset.symbol} for ${payout:,.2f}",
        cost=0.0,
        benefit=payout,
        units=units,
        player_buys=False,
        scrutiny_increase=scrutiny,
        consequence=f"+{scrutiny:.0f} scrutiny",
        created_day=day,
        expires_day=day + GOV_BUMP_EXPIRY_DAYS,
    )


def generate_whale_otc_offer(
    day: int,
    player: PlayerState,
    assets: List[Asset],
    rng: SeededRNG,
) -> Optional[Offer]:
    """Whale block trade on a random liquid asset."""
    candidates = [a for a in assets if not a.rugged and a.liquidity_usd > WHALE_OTC_MIN_LIQUIDITY]
    if not candidates:
        return None

    asset = rng.pick(candidates)
    player_buys = rng.chance(0.5)
    volume = rng.range(1000, 10000)

    if player_buys:
        multiplier = rng.range(0.85, 0.95)
        units = volume / asset.price
        cost = volume * multiplier
        return Offer(
            id=f"offer_{day}_whale",
            type=OfferType.WHALE_OTC,
            asset_id=asset.id,
            description=(
                f"Whale selling ${volume:,.0f} of {asset.symbol} at "
                f"{(1 - multiplier) * 100:.0f}% discount"
            ),
            action=f"Buy {units:.4f} {asset.symbol} for ${cost:,.2f}",
            cost=cost,
            benefit=0.0,
            units=units,
            player_buys=True,
            created_day=day,
            expires_day=day + WHALE_OTC_EXPIRY_DAYS,
        )

    multiplier = rng.range(1.05, 1.2)
    held = player.units_of(asset.id)
    if held <= 0:
        return None
    units = min(held * 0.5, volume / asset.price)
    payout = units * asset.price * multiplier
    return Offer(
        id=f"offer_{day}_whale",
        type=OfferType.WHALE_OTC,
        asset_id=asset.id,
        description=(
            f"Whale wants to buy {asset.symbol} at "
            f"{(multiplier - 1) * 100:.0f}% premium"
        ),
        action=f"Sell {units:.4f} {asset.symbol} for ${payout:,.2f}",
        cost=0.0,
        benefit=payout,
        units=units,
        player_buys=False,
        created_day=day,
        expires_day=day + WHALE_OTC_EXPIRY_DAYS,
    )


def roll_daily_offers(
    day: int,
    player: PlayerState,
    assets: List[Asset],
    rng: SeededRNG,
) -> List[Offer]:
    """Roll both offer types independently for the day."""
    offers = []
    by_id: Dict[str, Asset] = {a.id: a for a in assets}
    if rng.chance(OFFER_DAILY_CHANCE):
        offer = generate_gov_bump_offer(day, player, by_id, rng)
        if offer:
            offers.append(offer)
    if rng.chance(OFFER_DAILY_CHANCE):
        offer = generate_whale_otc_offer(day, player, assets, rng)
        if offer:
            offers.append(offer)
    return offers


def resolve_offer(
    offer: Offer,
    player: PlayerState,
    assets: Mapping[str, Asset],
    day: int,
    tick: int,
    trade_id: str,
) -> ActionResult:
    """
    Execute an accepted offer in full.

    Args:
        offer: Offer being accepted
        player: Player snapshot
        assets: Current assets by id
        day: Current day
        tick: Absolute tick
        trade_id: Id for the resulting ledger entry

    Returns:
        ActionResult with the player patch

    Raises:
        InvalidActionError: Offer has expired
        AssetNotFoundError: Offer asset no longer exists
        InsufficientCashError: Player cannot pay for a buy
        InsufficientUnitsError: Player no longer holds the units to sell
    """
    if offer.is_expired(day):
        raise InvalidActionError(f"Offer {offer.id} expired on day {offer.expires_day}")
    asset = assets.get(offer.asset_id)
    if asset is None:
        raise AssetNotFoundError(f"Offer asset {offer.asset_id} not found")

    if offer.player_buys:
        if offer.cost > player.cash_usd + AMOUNT_EPSILON:
            raise InsufficientCashError(
                f"Insufficient cash: have ${player.cash_usd:.2f}, need ${offer.cost:.2f}"
            )
        result = build_trade_patch(
            player, asset, TradeSide.BUY, offer.units, min(offer.cost, player.cash_usd), tick, trade_id
        )
    else:
        units = check_sellable(player, asset.id, offer.units)
        result = build_trade_patch(player, asset, TradeSide.SELL, units, offer.benefit, tick, trade_id)

    if offer.scrutiny_increase:
        result.player_patch.scrutiny = player.scrutiny + offer.scrutiny_increase
    result.message = f"Accepted offer: {offer.action}"
    return result


def prune_expired_offers(offers: List[Offer], day: int) -> Tuple[List[Offer], List[str]]:
    """Split offers into (still active, expired ids)."""
    active = [o for o in offers if not o.is_expired(day)]
    expired = [o.id for o in offers if o.is_expired(day)]
    return active, expired
