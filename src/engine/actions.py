"""
Player actions: trades, liquidity provision and market operations.

Each action validates everything before computing any effect, so a raised
InvariantViolation leaves the game untouched. On success the action returns
patches for the orchestrator to apply.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import (
    HoldingsFrozenError,
    InsufficientCashError,
    InsufficientUnitsError,
    InvalidActionError,
)
from .models import Asset, LPPosition, Operation, OperationType, PlayerState, Trade, TradeSide
from .patches import AssetPatch, PlayerPatch
from .portfolio import record_trade
from .pricing import apply_pump
from .risk import exposure_increase, scrutiny_increase
from .rng import SeededRNG

logger = logging.getLogger(__name__)

# Float tolerance when comparing requested amounts to balances
AMOUNT_EPSILON = 1e-9
MIN_LP_USD = 0.01
DEFAULT_WASH_DAYS = 3


class TradeType(Enum):
    BUY = "BUY"
    SELL = "SELL"


class LPActionType(Enum):
    PROVIDE_LP = "PROVIDE_LP"
    WITHDRAW_LP = "WITHDRAW_LP"


class OpType(Enum):
    PUMP = "PUMP"
    WASH = "WASH"
    AUDIT = "AUDIT"
    BRIBE = "BRIBE"


@dataclass
class TradeAction:
    """
    Buy by USD amount or sell by units.

    Attributes:
        type: BUY or SELL
        asset_id: Asset to trade
        usd: Cash to spend (BUY)
        units: Units to sell (SELL)
    """
    type: TradeType
    asset_id: str
    usd: Optional[float] = None
    units: Optional[float] = None


@dataclass
class LPAction:
    """
    Provide liquidity in USD or withdraw a percentage of it.

    Attributes:
        type: PROVIDE_LP or WITHDRAW_LP
        asset_id: Pool asset
        usd: Cash to deposit (PROVIDE_LP)
        percent: Share of the position to withdraw, 0-100 (WITHDRAW_LP)
    """
    type: LPActionType
    asset_id: str
    usd: Optional[float] = None
    percent: Optional[float] = None


@dataclass
class OpAction:
    """
    Market operation funded from cash.

    Attributes:
        type: PUMP, WASH, AUDIT or BRIBE
        budget: Cash spent on the operation
        asset_id: Target asset (not needed for BRIBE)
        duration: Active days for WASH (default 3)
        recipient: Who receives a bribe (minister, auditor, exchange)
    """
    type: OpType
    budget: float
    asset_id: Optional[str] = None
    duration: Optional[int] = None
    recipient: Optional[str] = None


@dataclass
class ActionResult:
    """
    Outcome of a successful player action.

    Attributes:
        player_patch: Player changes
        asset_patch: Asset changes, if any
        operation: Operation record for ops
        message: Human-readable summary
        trades: Ledger entries created
    """
    player_patch: PlayerPatch
    message: str
    asset_patch: Optional[AssetPatch] = None
    operation: Optional[Operation] = None
    trades: List[Trade] = field(default_factory=list)


def _require_positive(value: Optional[float], name: str) -> float:
    if value is None or not value > 0:
        raise InvalidActionError(f"{name} must be positive, got {value}")
    return float(value)


# =============================================================================
# TRADES
# =============================================================================

def build_trade_patch(
    player: PlayerState,
    asset: Asset,
    side: TradeSide,
    units: float,
    total_usd: float,
    tick: int,
    trade_id: str,
) -> ActionResult:
    """
    Patch for an already-validated exchange of units and cash.

    Used by market trades, limit-order fills and offer acceptance so every
    path books the ledger the same way.
    """
    trade = Trade(
        id=trade_id,
        tick=tick,
        side=side,
        asset_id=asset.id,
        asset_symbol=asset.symbol,
        units=units,
        price_per_unit=total_usd / units if units > 0 else asset.price,
        total_usd=total_usd,
    )
    booked, cost_basis, realized = record_trade(player, trade)

    holdings = dict(player.holdings)
    if side is TradeSide.BUY:
        cash = player.cash_usd - total_usd
        holdings[asset.id] = holdings.get(asset.id, 0.0) + units
        message = f"Bought {units:.4f} {asset.symbol} for ${total_usd:.2f}"
    else:
        cash = player.cash_usd + total_usd
        holdings[asset.id] = max(0.0, holdings.get(asset.id, 0.0) - units)
        message = f"Sold {units:.4f} {asset.symbol} for ${total_usd:.2f}"

    patch = PlayerPatch(
        cash_usd=cash,
        holdings=holdings,
        cost_basis=cost_basis,
        realized_pnl=realized,
        new_trades=[booked],
    )
    return ActionResult(player_patch=patch, message=message, trades=[booked])


def check_sellable(player: PlayerState, asset_id: str, units: float) -> float:
    """
    Validate that units can be sold and return the exact amount to sell.

    Raises:
        InsufficientUnitsError: More units than held
        HoldingsFrozenError: Enough units held, but some are frozen
    """
    held = player.units_of(asset_id)
    if units > held + AMOUNT_EPSILON:
        raise InsufficientUnitsError(f"Insufficient units: have {held:.6f}, need {units:.6f}")
    available = player.available_units(asset_id)
    if units > available + AMOUNT_EPSILON:
        raise HoldingsFrozenError(
            f"{held - available:.6f} units of {asset_id} are frozen; only {available:.6f} available"
        )
    return min(units, held)


def execute_trade(
    action: TradeAction,
    asset: Asset,
    player: PlayerState,
    tick: int = 0,
    trade_id: str = "trade_0",
) -> ActionResult:
    """
    Execute a market BUY or SELL at the current price.

    Args:
        action: Trade request
        asset: Asset being traded
        player: Player snapshot
        tick: Absolute tick of execution
        trade_id: Id for the ledger entry

    Returns:
        ActionResult with the player patch

    Raises:
        InvalidActionError: Non-positive amount or buying a rugged asset
        InsufficientCashError: BUY costs more than available cash
        InsufficientUnitsError: SELL exceeds held units
        HoldingsFrozenError: SELL touches frozen units
    """
    if action.asset_id != asset.id:
        raise InvalidActionError(f"Action targets {action.asset_id}, asset is {asset.id}")

    if action.type is TradeType.BUY:
        usd = _require_positive(action.usd, "usd")
        if asset.rugged:
            raise InvalidActionError(f"{asset.symbol} has been rugged and cannot be bought")
        if usd > player.cash_usd + AMOUNT_EPSILON:
            raise InsufficientCashError(f"Insufficient cash: have ${player.cash_usd:.2f}, need ${usd:.2f}")
        usd = min(usd, player.cash_usd)
        return build_trade_patch(player, asset, TradeSide.BUY, usd / asset.price, usd, tick, trade_id)

    if action.type is TradeType.SELL:
        units = check_sellable(player, asset.id, _require_positive(action.units, "units"))
        return build_trade_patch(player, asset, TradeSide.SELL, units, units * asset.price, tick, trade_id)

    raise InvalidActionError(f"Unknown trade type: {action.type}")


# =============================================================================
# LIQUIDITY
# =============================================================================

def execute_lp(
    action: LPAction,
    asset: Asset,
    player: PlayerState,
    tick: int = 0,
) -> ActionResult:
    """
    Provide or withdraw liquidity. LP positions count toward net worth at
    their deposited USD value.

    Raises:
        InvalidActionError: Bad amount, rugged pool, or no position to withdraw
        InsufficientCashError: Deposit exceeds available cash
    """
    if action.type is LPActionType.PROVIDE_LP:
        usd = _require_positive(action.usd, "usd")
        if asset.rugged:
            raise InvalidActionError(f"{asset.symbol} pool has been rugged")
        if usd > player.cash_usd + AMOUNT_EPSILON:
            raise InsufficientCashError(f"Insufficient cash: have ${player.cash_usd:.2f}, need ${usd:.2f}")
        usd = min(usd, player.cash_usd)
        position = LPPosition(
            asset_id=asset.id,
            usd_deposited=usd,
            units_deposited=usd / asset.price,
            deposited_at_tick=tick,
        )
        patch = PlayerPatch(
            cash_usd=player.cash_usd - usd,
            lp_positions=player.lp_positions + [position],
        )
        return ActionResult(player_patch=patch, message=f"Provided ${usd:.2f} liquidity to {asset.symbol}")

    if action.type is LPActionType.WITHDRAW_LP:
        percent = _require_positive(action.percent, "percent")
        if percent > 100:
            raise InvalidActionError(f"percent must be at most 100, got {percent}")
        positions = [lp for lp in player.lp_positions if lp.asset_id == asset.id]
        if not positions:
            raise InvalidActionError(f"No LP position found for {asset.symbol}")

        fraction = percent / 100
        withdrawn = 0.0
        remaining = []
        for lp in player.lp_positions:
            if lp.asset_id != asset.id:
                remaining.append(lp)
                continue
            withdrawn += lp.usd_deposited * fraction
            kept = LPPosition(
                asset_id=lp.asset_id,
                usd_deposited=lp.usd_deposited * (1 - fraction),
                units_deposited=lp.units_deposited * (1 - fraction),
                deposited_at_tick=lp.deposited_at_tick,
            )
            if kept.usd_deposited > MIN_LP_USD:
                remaining.append(kept)

        patch = PlayerPatch(cash_usd=player.cash_usd + withdrawn, lp_positions=remaining)
        return ActionResult(
            player_patch=patch,
            message=f"Withdrew {percent:.0f}% LP from {asset.symbol} (+${withdrawn:.2f})",
        )

    raise InvalidActionError(f"Unknown LP action: {action.type}")


# =============================================================================
# OPERATIONS
# =============================================================================

def execute_op(
    action: OpAction,
    tick: int,
    asset: Optional[Asset],
    player: PlayerState,
    rng: SeededRNG,
    day: int = 1,
    op_id: str = "op_0",
) -> ActionResult:
    """
    Launch a market operation.

    PUMP lifts the price immediately, WASH raises hype on each active day,
    AUDIT improves the audit score, BRIBE lowers scrutiny. Pump, wash and
    bribe leave a trail of scrutiny/exposure proportional to the budget.

    Args:
        action: Operation request
        tick: Absolute tick
        asset: Target asset (None allowed only for BRIBE)
        player: Player snapshot
        rng: Game RNG
        day: Current day (operation start)
        op_id: Id for the operation record

    Returns:
        ActionResult with the operation record

    Raises:
        InvalidActionError: Bad budget, missing or rugged target
        InsufficientCashError: Budget exceeds available cash
    """
    budget = _require_positive(action.budget, "budget")
    if budget > player.cash_usd + AMOUNT_EPSILON:
        raise InsufficientCashError(f"Insufficient cash: have ${player.cash_usd:.2f}, need ${budget:.2f}")
    if action.type is not OpType.BRIBE:
        if asset is None:
            raise InvalidActionError(f"{action.type.value} requires a target asset")
        if asset.rugged:
            raise InvalidActionError(f"{asset.symbol} has been rugged")
    cash = player.cash_usd - budget

    if action.type is OpType.PUMP:
        new_price = apply_pump(asset, budget, rng)
        patch = PlayerPatch(
            cash_usd=cash,
            exposure=player.exposure + exposure_increase(OperationType.PUMP, budget),
            scrutiny=player.scrutiny + scrutiny_increase(OperationType.PUMP, budget),
        )
        return ActionResult(
            player_patch=patch,
            asset_patch=AssetPatch(asset_id=asset.id, price=new_price),
            operation=Operation(op_id, OperationType.PUMP, asset.id, budget, day, 1),
            message=f"Pumped {asset.symbol} (+{(new_price / asset.price - 1) * 100:.1f}%)",
        )

    if action.type is OpType.WASH:
        duration = action.duration if action.duration is not None else DEFAULT_WASH_DAYS
        if duration < 1:
            raise InvalidActionError(f"duration must be at least 1 day, got {duration}")
        patch = PlayerPatch(
            cash_usd=cash,
            exposure=player.exposure + exposure_increase(OperationType.WASH, budget),
            scrutiny=player.scrutiny + scrutiny_increase(OperationType.WASH, budget),
        )
        return ActionResult(
            player_patch=patch,
            operation=Operation(op_id, OperationType.WASH, asset.id, budget, day, duration),
            message=f"Started wash trading {asset.symbol} for {duration} days",
        )

    if action.type is OpType.AUDIT:
        increase = rng.range(0.15, 0.35)
        return ActionResult(
            player_patch=PlayerPatch(cash_usd=cash),
            asset_patch=AssetPatch(asset_id=asset.id, audit_score=min(1.0, asset.audit_score + increase)),
            operation=Operation(op_id, OperationType.AUDIT, asset.id, budget, day, 1),
            message=f"Audited {asset.symbol} (+{increase * 100:.0f}% audit score)",
        )

    if action.type is OpType.BRIBE:
        decrease = rng.range(10, 25)
        scrutiny = max(0.0, player.scrutiny - decrease) + scrutiny_increase(OperationType.BRIBE, budget)
        recipient = action.recipient or "minister"
        return ActionResult(
            player_patch=PlayerPatch(cash_usd=cash, scrutiny=scrutiny),
            operation=Operation(op_id, OperationType.BRIBE, asset.id if asset else None, budget, day, 1),
            message=f"Bribed {recipient} (-{decrease:.0f} scrutiny)",
        )

    raise InvalidActionError(f"Unknown operation: {action.type}")
