"""
Deterministic market simulation engine.

This module provides:
- Seeded RNG shared by every subsystem
- Tick/day orchestration (Game)
- Price, volume and risk-event models
- News, offers and coin launches
- Multi-resolution candle history
- Player actions and portfolio selectors
"""

from .rng import SeededRNG, hash_seed
from .candles import PriceCandle, PriceHistory, ResolutionWindow, aggregate
from .models import (
    Asset,
    AssetTier,
    GameEvent,
    LimitOrder,
    MarketVibe,
    NewsArticle,
    Offer,
    Operation,
    PlayerState,
    SimulationStatus,
    Trade,
    TradeSide,
)
from .actions import LPAction, LPActionType, OpAction, OpType, TradeAction, TradeType
from .errors import (
    AssetNotFoundError,
    HoldingsFrozenError,
    InsufficientCashError,
    InsufficientUnitsError,
    InvalidActionError,
    InvalidStateTransition,
    InvariantViolation,
    SimulationError,
)
from .state import GameState
from .game import Game

__all__ = [
    # Orchestration
    "Game",
    "GameState",
    "SeededRNG",
    "hash_seed",
    # Candles
    "PriceCandle",
    "PriceHistory",
    "ResolutionWindow",
    "aggregate",
    # Models
    "Asset",
    "AssetTier",
    "GameEvent",
    "LimitOrder",
    "MarketVibe",
    "NewsArticle",
    "Offer",
    "Operation",
    "PlayerState",
    "SimulationStatus",
    "Trade",
    "TradeSide",
    # Actions
    "TradeAction",
    "TradeType",
    "LPAction",
    "LPActionType",
    "OpAction",
    "OpType",
    # Errors
    "SimulationError",
    "InvariantViolation",
    "InsufficientCashError",
    "InsufficientUnitsError",
    "HoldingsFrozenError",
    "InvalidActionError",
    "AssetNotFoundError",
    "InvalidStateTransition",
]
