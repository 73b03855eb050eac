"""
Player ledger bookkeeping and read-only selectors.

Cost basis uses the average-price method: buys raise total cost and units,
sells realize (proceeds - avg_price * units) and shrink the position at the
same average price.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import Asset, CostBasis, PlayerState, Trade, TradeSide

CLOSED_POSITION_EPSILON = 0.0001
LOW_RISK_MAX = 0.2
HIGH_RISK_MIN = 0.5
AUDITED_MIN_SCORE = 0.5


def record_trade(
    player: PlayerState,
    trade: Trade,
) -> Tuple[Trade, Dict[str, CostBasis], float]:
    """
    Book a trade against the player's cost basis.

    Args:
        player: Player before the trade
        trade: Executed trade (realized_pnl is filled in for sells)

    Returns:
        Tuple of (booked trade, new cost-basis map, new lifetime realized P&L)
    """
    cost_basis = dict(player.cost_basis)
    realized_total = player.realized_pnl

    if trade.side is TradeSide.BUY:
        current = cost_basis.get(trade.asset_id) or CostBasis(asset_id=trade.asset_id)
        total_units = current.total_units + trade.units
        total_cost = current.total_cost_usd + trade.total_usd
        cost_basis[trade.asset_id] = CostBasis(
            asset_id=trade.asset_id,
            total_units=total_units,
            total_cost_usd=total_cost,
            avg_price=total_cost / total_units if total_units > 0 else 0.0,
            trade_ids=current.trade_ids + [trade.id],
        )
        return trade, cost_basis, realized_total

    current = cost_basis.get(trade.asset_id)
    if current is None:
        return trade, cost_basis, realized_total

    realized = trade.total_usd - current.avg_price * trade.units
    trade = dataclasses.replace(trade, realized_pnl=realized)
    realized_total += realized

    remaining = current.total_units - trade.units
    if remaining <= CLOSED_POSITION_EPSILON:
        del cost_basis[trade.asset_id]
    else:
        cost_basis[trade.asset_id] = CostBasis(
            asset_id=trade.asset_id,
            total_units=remaining,
            total_cost_usd=current.avg_price * remaining,
            avg_price=current.avg_price,
            trade_ids=current.trade_ids + [trade.id],
        )
    return trade, cost_basis, realized_total


def compute_net_worth(player: PlayerState, prices: Mapping[str, float]) -> float:
    """Cash + holdings at current prices + LP deposits."""
    net_worth = player.cash_usd
    for asset_id, units in player.holdings.items():
        price = prices.get(asset_id)
        if price is not None and units > 0:
            net_worth += units * price
    for lp in player.lp_positions:
        net_worth += lp.usd_deposited
    return net_worth


# =============================================================================
# SELECTORS
# =============================================================================

@dataclass
class PortfolioEntry:
    """One row of the portfolio table."""
    asset_id: str
    symbol: str
    units: float
    value_usd: float
    pct_of_total: float
    avg_price: Optional[float] = None
    unrealized_pnl: Optional[float] = None
    frozen_units: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


def get_kpis(player: PlayerState) -> Dict[str, float]:
    return {
        "cash": player.cash_usd,
        "netWorth": player.net_worth_usd,
        "reputation": player.reputation,
        "influence": player.influence,
        "security": player.security,
        "scrutiny": player.scrutiny,
        "exposure": player.exposure,
        "realizedPnL": player.realized_pnl,
        "roi": get_roi(player),
    }


def get_portfolio_table(player: PlayerState, assets: Mapping[str, Asset]) -> List[PortfolioEntry]:
    """Held positions sorted by value, largest first."""
    entries = []
    for asset_id, units in player.holdings.items():
        asset = assets.get(asset_id)
        if units <= 0 or asset is None:
            continue
        value = units * asset.price
        basis = player.cost_basis.get(asset_id)
        entries.append(PortfolioEntry(
            asset_id=asset_id,
            symbol=asset.symbol,
            units=units,
            value_usd=value,
            pct_of_total=0.0,
            avg_price=basis.avg_price if basis else None,
            unrealized_pnl=value - basis.total_cost_usd if basis else None,
            frozen_units=player.frozen_units.get(asset_id, 0.0),
        ))

    total = sum(e.value_usd for e in entries)
    for entry in entries:
        entry.pct_of_total = entry.value_usd / total * 100 if total > 0 else 0.0
    return sorted(entries, key=lambda e: e.value_usd, reverse=True)


def get_filtered_assets(
    assets: List[Asset],
    search: Optional[str] = None,
    risk_level: str = "all",
    audited: Optional[bool] = None,
) -> List[Asset]:
    """
    Market list filtering.

    Args:
        assets: Assets in display order
        search: Case-insensitive substring of symbol or name
        risk_level: "all", "low" (<20% dev tokens), "medium" or "high" (>=50%)
        audited: True for audit score > 0.5, False for <= 0.5, None for both

    Returns:
        Matching assets in input order
    """
    if risk_level not in ("all", "low", "medium", "high"):
        raise ValueError(f"Unknown risk level: {risk_level}")

    filtered = list(assets)
    if search:
        needle = search.lower()
        filtered = [a for a in filtered if needle in a.symbol.lower() or needle in a.name.lower()]
    if audited is not None:
        filtered = [a for a in filtered if (a.audit_score > AUDITED_MIN_SCORE) == audited]
    if risk_level != "all":
        def matches(asset: Asset) -> bool:
            risk = asset.dev_tokens_pct / 100
            if risk_level == "low":
                return risk < LOW_RISK_MAX
            if risk_level == "medium":
                return LOW_RISK_MAX <= risk < HIGH_RISK_MIN
            return risk >= HIGH_RISK_MIN
        filtered = [a for a in filtered if matches(a)]
    return filtered


def reference_price(asset: Asset) -> float:
    """Price the daily change is measured against (today's open)."""
    history = asset.price_history
    if history.today:
        return history.today[0].open
    if history.m1.latest is not None:
        return history.m1.latest.close
    return asset.base_price


def get_top_movers(assets: List[Asset], n: int = 5) -> List[Tuple[Asset, float]]:
    """Largest absolute moves since the open, as (asset, percent change)."""
    moves = []
    for asset in assets:
        ref = reference_price(asset)
        if ref > 0:
            moves.append((asset, (asset.price - ref) / ref * 100))
    moves.sort(key=lambda m: abs(m[1]), reverse=True)
    return moves[:n]


def get_concentration(player: PlayerState, prices: Mapping[str, float]) -> Dict[str, float]:
    """Share of net worth held in each asset."""
    total = player.net_worth_usd
    if total <= 0:
        return {}
    return {
        asset_id: units * prices.get(asset_id, 0.0) / total
        for asset_id, units in player.holdings.items()
        if units > 0
    }


def get_unrealized_pnl(player: PlayerState, prices: Mapping[str, float]) -> float:
    pnl = 0.0
    for asset_id, basis in player.cost_basis.items():
        price = prices.get(asset_id)
        units = player.holdings.get(asset_id, 0.0)
        if price is not None and units > 0:
            pnl += units * price - basis.total_cost_usd
    return pnl


def get_total_pnl(player: PlayerState, prices: Mapping[str, float]) -> float:
    return player.realized_pnl + get_unrealized_pnl(player, prices)


def get_roi(player: PlayerState) -> float:
    """Percent change of net worth since onboarding."""
    if player.initial_net_worth == 0:
        return 0.0
    return (player.net_worth_usd - player.initial_net_worth) / player.initial_net_worth * 100


def get_win_loss_ratio(player: PlayerState) -> Dict[str, float]:
    sells = [t for t in player.trades if t.side is TradeSide.SELL and t.realized_pnl is not None]
    wins = sum(1 for t in sells if t.realized_pnl > 0)
    losses = sum(1 for t in sells if t.realized_pnl < 0)
    if losses > 0:
        ratio = wins / losses
    else:
        ratio = float("inf") if wins > 0 else 0.0
    return {"wins": wins, "losses": losses, "ratio": ratio}


def get_recent_trades(player: PlayerState, n: int = 10) -> List[Trade]:
    """Newest trades first."""
    if n <= 0:
        return []
    return list(reversed(player.trades[-n:]))


def get_best_worst_performers(
    player: PlayerState,
    assets: Mapping[str, Asset],
    n: int = 3,
) -> Dict[str, List[Dict[str, Any]]]:
    performers = []
    for asset_id, basis in player.cost_basis.items():
        asset = assets.get(asset_id)
        units = player.holdings.get(asset_id, 0.0)
        if asset is None or units <= 0 or basis.total_cost_usd <= 0:
            continue
        pnl = units * asset.price - basis.total_cost_usd
        performers.append({
            "assetId": asset_id,
            "symbol": asset.symbol,
            "pnl": pnl,
            "pnlPct": pnl / basis.total_cost_usd * 100,
        })
    performers.sort(key=lambda p: p["pnl"], reverse=True)
    return {"best": performers[:n], "worst": list(reversed(performers[-n:]))}
