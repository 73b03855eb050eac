"""
Data models for the simulation engine.

Defines the enums and dataclasses for assets, the player, and the transient
records (events, news, offers, operations, limit orders) the subsystems emit.
Every model round-trips through plain dicts for persistence.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .candles import PriceHistory


class MarketVibe(Enum):
    """Daily market-wide bias."""
    MOONSHOT = "moonshot"
    BLOODBATH = "bloodbath"
    MEMEFRENZY = "memefrenzy"
    RUGSEASON = "rugseason"
    WHALEWAR = "whalewar"
    NORMIE = "normie"


class AssetTier(Enum):
    """Coarse risk classification derived from liquidity and audit score."""
    BLUECHIP = "bluechip"
    MIDCAP = "midcap"
    SHITCOIN = "shitcoin"


class SimulationStatus(Enum):
    """Lifecycle state of the day loop."""
    BACKFILL = "backfill"
    BEGINNING_OF_DAY = "beginning-of-day"
    TRADING = "trading"
    END_OF_DAY = "end-of-day"


class Sentiment(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"

    @property
    def sign(self) -> int:
        """+1 bullish, -1 bearish, 0 neutral."""
        if self is Sentiment.BULLISH:
            return 1
        if self is Sentiment.BEARISH:
            return -1
        return 0


class EventType(Enum):
    RUG = "rug"
    EXIT_SCAM = "exit_scam"
    ORACLE_HACK = "oracle_hack"
    WHALE_BUYBACK = "whale_buyback"
    GOV_BUMP = "gov_bump"
    FREEZE = "freeze"
    TRADE = "trade"
    OP_COMPLETE = "op_complete"
    OFFER = "offer"
    LAUNCH = "launch"
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    DANGER = "danger"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"


class OfferType(Enum):
    GOV_BUMP = "gov_bump"
    WHALE_OTC = "whale_otc"


class OperationType(Enum):
    PUMP = "pump"
    WASH = "wash"
    AUDIT = "audit"
    BRIBE = "bribe"


class TradeSide(Enum):
    BUY = "buy"
    SELL = "sell"


class LimitOrderStatus(Enum):
    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"
    FAILED = "failed"


# =============================================================================
# MARKET
# =============================================================================

@dataclass
class Asset:
    """
    A tradable instrument.

    Attributes:
        id: Stable identifier
        symbol: Ticker symbol
        name: Display name
        base_price: Reference price the asset was listed at
        price: Current price (never below MIN_PRICE)
        liquidity_usd: Pool liquidity in USD
        dev_tokens_pct: Share of supply held by the developers (0-100)
        audit_score: Audit quality (0-1)
        social_hype: Social media attention (0-1)
        base_volatility: Daily volatility of the random walk
        volume: Static trading activity attribute (0-1)
        tier: Risk tier derived from liquidity and audit score
        rugged: Whether the asset has been rug pulled
        rug_warned: Whether a rug warning was published (rug precondition)
        rug_start_tick: Absolute tick of the rug, drives the bleed cadence
        flagged: Flagged by regulators or the community
        gov_favor_score: Government goodwill toward the asset (0-1)
        launch_day: Day the coin launched (None for seed assets)
        price_history: Candles at every display resolution
    """
    id: str
    symbol: str
    name: str
    base_price: float
    price: float
    liquidity_usd: float
    dev_tokens_pct: float
    audit_score: float
    social_hype: float
    base_volatility: float
    volume: float = 0.5
    tier: AssetTier = AssetTier.MIDCAP
    rugged: bool = False
    rug_warned: bool = False
    rug_start_tick: Optional[int] = None
    flagged: bool = False
    gov_favor_score: float = 0.5
    launch_day: Optional[int] = None
    price_history: PriceHistory = field(default_factory=PriceHistory)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "basePrice": self.base_price,
            "price": self.price,
            "liquidityUSD": self.liquidity_usd,
            "devTokensPct": self.dev_tokens_pct,
            "auditScore": self.audit_score,
            "socialHype": self.social_hype,
            "baseVolatility": self.base_volatility,
            "volume": self.volume,
            "tier": self.tier.value,
            "rugged": self.rugged,
            "rugWarned": self.rug_warned,
            "rugStartTick": self.rug_start_tick,
            "flagged": self.flagged,
            "govFavorScore": self.gov_favor_score,
            "launchDay": self.launch_day,
            "priceHistory": self.price_history.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], ticks_per_day: int = 1800) -> "Asset":
        price = float(data["price"])
        return cls(
            id=data["id"],
            symbol=data["symbol"],
            name=data.get("name", data["symbol"]),
            base_price=float(data.get("basePrice", price)),
            price=price,
            liquidity_usd=float(data.get("liquidityUSD", 0.0)),
            dev_tokens_pct=float(data.get("devTokensPct", 0.0)),
            audit_score=float(data.get("auditScore", 0.0)),
            social_hype=float(data.get("socialHype", 0.0)),
            base_volatility=float(data.get("baseVolatility", 0.05)),
            volume=float(data.get("volume", 0.5)),
            tier=AssetTier(data.get("tier", AssetTier.MIDCAP.value)),
            rugged=bool(data.get("rugged", False)),
            rug_warned=bool(data.get("rugWarned", False)),
            rug_start_tick=data.get("rugStartTick"),
            flagged=bool(data.get("flagged", False)),
            gov_favor_score=float(data.get("govFavorScore", 0.5)),
            launch_day=data.get("launchDay"),
            price_history=PriceHistory.from_dict(data.get("priceHistory"), ticks_per_day),
        )


# =============================================================================
# PLAYER
# =============================================================================

@dataclass
class LPPosition:
    """
    Liquidity-pool deposit.

    Attributes:
        asset_id: Pool asset
        usd_deposited: USD value currently deposited
        units_deposited: Asset units deposited
        deposited_at_tick: Absolute tick of the deposit
    """
    asset_id: str
    usd_deposited: float
    units_deposited: float
    deposited_at_tick: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assetId": self.asset_id,
            "usdDeposited": self.usd_deposited,
            "unitsDeposited": self.units_deposited,
            "depositedAtTick": self.deposited_at_tick,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LPPosition":
        return cls(
            asset_id=data["assetId"],
            usd_deposited=float(data["usdDeposited"]),
            units_deposited=float(data.get("unitsDeposited", 0.0)),
            deposited_at_tick=int(data.get("depositedAtTick", 0)),
        )


@dataclass
class Trade:
    """
    Ledger entry for one executed buy or sell.

    Attributes:
        id: Deterministic trade id
        tick: Absolute tick of execution
        side: BUY or SELL
        asset_id: Traded asset
        asset_symbol: Symbol at execution time
        units: Units exchanged
        price_per_unit: Execution price
        total_usd: Cash exchanged
        realized_pnl: Profit/loss realized (sells only)
    """
    id: str
    tick: int
    side: TradeSide
    asset_id: str
    asset_symbol: str
    units: float
    price_per_unit: float
    total_usd: float
    realized_pnl: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tick": self.tick,
            "type": self.side.value,
            "assetId": self.asset_id,
            "assetSymbol": self.asset_symbol,
            "units": self.units,
            "pricePerUnit": self.price_per_unit,
            "totalUSD": self.total_usd,
            "realizedPnL": self.realized_pnl,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trade":
        return cls(
            id=data["id"],
            tick=int(data.get("tick", 0)),
            side=TradeSide(data["type"]),
            asset_id=data["assetId"],
            asset_symbol=data.get("assetSymbol", ""),
            units=float(data["units"]),
            price_per_unit=float(data["pricePerUnit"]),
            total_usd=float(data["totalUSD"]),
            realized_pnl=data.get("realizedPnL"),
        )


@dataclass
class CostBasis:
    """Average-cost position tracking for one asset."""
    asset_id: str
    total_units: float = 0.0
    total_cost_usd: float = 0.0
    avg_price: float = 0.0
    trade_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assetId": self.asset_id,
            "totalUnits": self.total_units,
            "totalCostUSD": self.total_cost_usd,
            "avgPrice": self.avg_price,
            "trades": list(self.trade_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CostBasis":
        return cls(
            asset_id=data["assetId"],
            total_units=float(data.get("totalUnits", 0.0)),
            total_cost_usd=float(data.get("totalCostUSD", 0.0)),
            avg_price=float(data.get("avgPrice", 0.0)),
            trade_ids=list(data.get("trades", [])),
        )


@dataclass
class PlayerState:
    """
    The single player's account.

    net_worth_usd is derived (cash + holdings x price + LP value) and is
    recomputed by the orchestrator; it is never written independently.

    Attributes:
        cash_usd: Spendable cash
        net_worth_usd: Last computed net worth
        reputation: Public reputation (0-100)
        influence: Political influence, raises gov-bump odds
        security: Operational security, lowers freeze odds
        scrutiny: Regulator attention, raises freeze odds
        exposure: Public exposure of shady operations
        holdings: asset_id -> units held
        frozen_units: asset_id -> units locked by a freeze
        frozen_until_tick: Absolute tick when the freeze lapses
        lp_positions: Liquidity-pool deposits
        blacklisted: Whether the player is blacklisted
        trades: Trade ledger, oldest first
        cost_basis: asset_id -> average-cost tracking
        realized_pnl: Lifetime realized profit/loss
        initial_net_worth: Net worth at onboarding (ROI baseline)
        net_worth_history: Bounded (tick, value) samples for charts
    """
    cash_usd: float = 10000.0
    net_worth_usd: float = 10000.0
    reputation: float = 50.0
    influence: float = 0.0
    security: float = 5.0
    scrutiny: float = 0.0
    exposure: float = 0.0
    holdings: Dict[str, float] = field(default_factory=dict)
    frozen_units: Dict[str, float] = field(default_factory=dict)
    frozen_until_tick: Optional[int] = None
    lp_positions: List[LPPosition] = field(default_factory=list)
    blacklisted: bool = False
    trades: List[Trade] = field(default_factory=list)
    cost_basis: Dict[str, CostBasis] = field(default_factory=dict)
    realized_pnl: float = 0.0
    initial_net_worth: float = 10000.0
    net_worth_history: List[Dict[str, float]] = field(default_factory=list)

    def units_of(self, asset_id: str) -> float:
        return self.holdings.get(asset_id, 0.0)

    def available_units(self, asset_id: str) -> float:
        """Units that are held and not locked by a freeze."""
        return max(0.0, self.units_of(asset_id) - self.frozen_units.get(asset_id, 0.0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cashUSD": self.cash_usd,
            "netWorthUSD": self.net_worth_usd,
            "reputation": self.reputation,
            "influence": self.influence,
            "security": self.security,
            "scrutiny": self.scrutiny,
            "exposure": self.exposure,
            "holdings": dict(self.holdings),
            "frozenUnits": dict(self.frozen_units),
            "frozenUntilTick": self.frozen_until_tick,
            "lpPositions": [lp.to_dict() for lp in self.lp_positions],
            "blacklisted": self.blacklisted,
            "trades": [t.to_dict() for t in self.trades],
            "costBasis": {k: v.to_dict() for k, v in self.cost_basis.items()},
            "realizedPnL": self.realized_pnl,
            "initialNetWorth": self.initial_net_worth,
            "netWorthHistory": [dict(p) for p in self.net_worth_history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        cash = float(data.get("cashUSD", 10000.0))
        return cls(
            cash_usd=cash,
            net_worth_usd=float(data.get("netWorthUSD", cash)),
            reputation=float(data.get("reputation", 50.0)),
            influence=float(data.get("influence", 0.0)),
            security=float(data.get("security", 5.0)),
            scrutiny=float(data.get("scrutiny", 0.0)),
            exposure=float(data.get("exposure", 0.0)),
            holdings={k: float(v) for k, v in data.get("holdings", {}).items()},
            frozen_units={k: float(v) for k, v in data.get("frozenUnits", {}).items()},
            frozen_until_tick=data.get("frozenUntilTick"),
            lp_positions=[LPPosition.from_dict(lp) for lp in data.get("lpPositions", [])],
            blacklisted=bool(data.get("blacklisted", False)),
            trades=[Trade.from_dict(t) for t in data.get("trades", [])],
            cost_basis={k: CostBasis.from_dict(v) for k, v in data.get("costBasis", {}).items()},
            realized_pnl=float(data.get("realizedPnL", 0.0)),
            initial_net_worth=float(data.get("initialNetWorth", cash)),
            net_worth_history=[dict(p) for p in data.get("netWorthHistory", [])],
        )


# =============================================================================
# TRANSIENT RECORDS
# =============================================================================

@dataclass
class GameEvent:
    """
    Feed entry emitted by the risk, offer and operation subsystems.

    Attributes:
        id: Deterministic event id
        tick: Absolute tick the event happened at
        day: Day the event happened on
        type: Event classification
        message: Human-readable description
        severity: Display severity
        asset_id: Affected asset, if any
        metadata: Extra event details
    """
    id: str
    tick: int
    day: int
    type: EventType
    message: str
    severity: Severity = Severity.INFO
    asset_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tick": self.tick,
            "day": self.day,
            "type": self.type.value,
            "message": self.message,
            "severity": self.severity.value,
            "assetId": self.asset_id,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        return cls(
            id=data["id"],
            tick=int(data.get("tick", 0)),
            day=int(data.get("day", 0)),
            type=EventType(data["type"]),
            message=data.get("message", ""),
            severity=Severity(data.get("severity", Severity.INFO.value)),
            asset_id=data.get("assetId"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class NewsArticle:
    """
    A daily news item tagged to one asset.

    Attributes:
        id: Deterministic article id
        day: Day of publication
        asset_id: Subject asset
        asset_symbol: Subject symbol at publication
        headline: Rendered headline
        sentiment: Direction of the story
        weight: Importance 0-100, selects the impact band
        category: Template category
        is_fake: Fabricated story, candidate for debunking
        debunked_day: Day the story was debunked
        impact_realized: Whether the article moved price or hype
        hype_impact: Hype delta actually applied at publication
    """
    id: str
    day: int
    asset_id: str
    asset_symbol: str
    headline: str
    sentiment: Sentiment
    weight: float
    category: str = "general"
    is_fake: bool = False
    debunked_day: Optional[int] = None
    impact_realized: bool = False
    hype_impact: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day,
            "assetId": self.asset_id,
            "assetSymbol": self.asset_symbol,
            "headline": self.headline,
            "sentiment": self.sentiment.value,
            "weight": self.weight,
            "category": self.category,
            "isFake": self.is_fake,
            "debunkedDay": self.debunked_day,
            "impactRealized": self.impact_realized,
            "hypeImpact": self.hype_impact,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsArticle":
        return cls(
            id=data["id"],
            day=int(data["day"]),
            asset_id=data["assetId"],
            asset_symbol=data.get("assetSymbol", ""),
            headline=data.get("headline", ""),
            sentiment=Sentiment(data.get("sentiment", Sentiment.NEUTRAL.value)),
            weight=float(data.get("weight", 0)),
            category=data.get("category", "general"),
            is_fake=bool(data.get("isFake", False)),
            debunked_day=data.get("debunkedDay"),
            impact_realized=bool(data.get("impactRealized", False)),
            hype_impact=float(data.get("hypeImpact", 0.0)),
        )


@dataclass
class Offer:
    """
    An opportunistic deal presented to the player.

    The executable terms are stored on the offer so acceptance replays them
    exactly.

    Attributes:
        id: Deterministic offer id
        type: GOV_BUMP or WHALE_OTC
        asset_id: Subject asset
        description: Human-readable pitch
        action: Short action label
        cost: USD the player pays on acceptance (0 if none)
        benefit: USD the player receives on acceptance (0 if none)
        units: Units the player gives (sell) or receives (buy)
        player_buys: True when the player receives units
        scrutiny_increase: Scrutiny added on acceptance
        consequence: Human-readable downside
        created_day: Day the offer appeared
        expires_day: Last day the offer can be accepted
    """
    id: str
    type: OfferType
    asset_id: str
    description: str
    action: str
    cost: float
    benefit: float
    units: float
    player_buys: bool = False
    scrutiny_increase: float = 0.0
    consequence: Optional[str] = None
    created_day: int = 1
    expires_day: int = 1

    def is_expired(self, day: int) -> bool:
        return day > self.expires_day

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "assetId": self.asset_id,
            "description": self.description,
            "action": self.action,
            "cost": self.cost,
            "benefit": self.benefit,
            "units": self.units,
            "playerBuys": self.player_buys,
            "scrutinyIncrease": self.scrutiny_increase,
            "consequence": self.consequence,
            "createdDay": self.created_day,
            "expiresDay": self.expires_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Offer":
        return cls(
            id=data["id"],
            type=OfferType(data["type"]),
            asset_id=data["assetId"],
            description=data.get("description", ""),
            action=data.get("action", ""),
            cost=float(data.get("cost", 0.0)),
            benefit=float(data.get("benefit", 0.0)),
            units=float(data.get("units", 0.0)),
            player_buys=bool(data.get("playerBuys", False)),
            scrutiny_increase=float(data.get("scrutinyIncrease", 0.0)),
            consequence=data.get("consequence"),
            created_day=int(data.get("createdDay", 1)),
            expires_day=int(data.get("expiresDay", 1)),
        )


@dataclass
class Operation:
    """
    A player market operation spanning one or more days.

    Attributes:
        id: Deterministic operation id
        type: PUMP, WASH, AUDIT or BRIBE
        asset_id: Target asset (None for bribes)
        cost: Budget spent
        start_day: Day the operation was launched
        duration_days: Days the operation stays active
    """
    id: str
    type: OperationType
    asset_id: Optional[str]
    cost: float
    start_day: int
    duration_days: int = 1

    def is_active(self, day: int) -> bool:
        elapsed = day - self.start_day
        return 0 <= elapsed < self.duration_days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "assetId": self.asset_id,
            "cost": self.cost,
            "startDay": self.start_day,
            "durationDays": self.duration_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Operation":
        return cls(
            id=data["id"],
            type=OperationType(data["type"]),
            asset_id=data.get("assetId"),
            cost=float(data.get("cost", 0.0)),
            start_day=int(data.get("startDay", 1)),
            duration_days=int(data.get("durationDays", 1)),
        )


@dataclass
class LimitOrder:
    """
    Conditional order checked every tick.

    Buy orders spend ``amount`` USD once price <= trigger; sell orders sell
    ``amount`` units once price >= trigger.

    Attributes:
        id: Deterministic order id
        side: BUY or SELL
        asset_id: Target asset
        trigger_price: Price threshold
        amount: USD for buys, units for sells
        status: PENDING, FILLED, CANCELLED or FAILED
        created_tick: Absolute tick the order was placed
        filled_tick: Absolute tick the order filled
        filled_price: Execution price
        failure_reason: Why a triggered order could not execute
    """
    id: str
    side: TradeSide
    asset_id: str
    trigger_price: float
    amount: float
    status: LimitOrderStatus = LimitOrderStatus.PENDING
    created_tick: int = 0
    filled_tick: Optional[int] = None
    filled_price: Optional[float] = None
    failure_reason: Optional[str] = None

    def is_triggered(self, price: float) -> bool:
        if self.side is TradeSide.BUY:
            return price <= self.trigger_price
        return price >= self.trigger_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "side": self.side.value,
            "assetId": self.asset_id,
            "triggerPrice": self.trigger_price,
            "amount": self.amount,
            "status": self.status.value,
            "createdTick": self.created_tick,
            "filledTick": self.filled_tick,
            "filledPrice": self.filled_price,
            "failureReason": self.failure_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LimitOrder":
        return cls(
            id=data["id"],
            side=TradeSide(data["side"]),
            asset_id=data["assetId"],
            trigger_price=float(data["triggerPrice"]),
            amount=float(data["amount"]),
            status=LimitOrderStatus(data.get("status", LimitOrderStatus.PENDING.value)),
            created_tick=int(data.get("createdTick", 0)),
            filled_tick=data.get("filledTick"),
            filled_price=data.get("filledPrice"),
            failure_reason=data.get("failureReason"),
        )
