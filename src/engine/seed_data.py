"""Static seed list of starting assets and news templates."""

from typing import Any, Dict, List

from .candles import PriceHistory
from .models import Asset
from .tiers import classify_tier

SEED_ASSETS: List[Dict[str, Any]] = [
    {"id": "btc", "symbol": "BTC", "name": "Bitcoin", "price": 50000.0, "liquidity_usd": 1_000_000_000,
     "dev_tokens_pct": 5, "audit_score": 0.90, "social_hype": 0.30, "base_volatility": 0.02, "volume": 0.60,
     "gov_favor_score": 0.6},
    {"id": "eth", "symbol": "ETH", "name": "Ethereum", "price": 3000.0, "liquidity_usd": 500_000_000,
     "dev_tokens_pct": 8, "audit_score": 0.85, "social_hype": 0.40, "base_volatility": 0.03, "volume": 0.60,
     "gov_favor_score": 0.6},
    {"id": "sol", "symbol": "SOL", "name": "Solana", "price": 150.0, "liquidity_usd": 80_000_000,
     "dev_tokens_pct": 12, "audit_score": 0.75, "social_hype": 0.50, "base_volatility": 0.05, "volume": 0.55,
     "gov_favor_score": 0.5},
    {"id": "usdt", "symbol": "USDT", "name": "Tether", "price": 1.0, "liquidity_usd": 900_000_000,
     "dev_tokens_pct": 10, "audit_score": 0.72, "social_hype": 0.10, "base_volatility": 0.002, "volume": 0.50,
     "gov_favor_score": 0.4},
    {"id": "link", "symbol": "LINK", "name": "Chainlink", "price": 14.0, "liquidity_usd": 20_000_000,
     "dev_tokens_pct": 15, "audit_score": 0.65, "social_hype": 0.35, "base_volatility": 0.04, "volume": 0.45,
     "gov_favor_score": 0.5},
    {"id": "doge", "symbol": "DOGE", "name": "Dogecoin", "price": 0.08, "liquidity_usd": 10_000_000,
     "dev_tokens_pct": 25, "audit_score": 0.60, "social_hype": 0.70, "base_volatility": 0.06, "volume": 0.70,
     "gov_favor_score": 0.4},
    {"id": "ape", "symbol": "APE", "name": "ApeCoin", "price": 1.2, "liquidity_usd": 3_000_000,
     "dev_tokens_pct": 30, "audit_score": 0.50, "social_hype": 0.45, "base_volatility": 0.07, "volume": 0.50,
     "gov_favor_score": 0.3},
    {"id": "pepe", "symbol": "PEPE", "name": "Pepe", "price": 0.0000012, "liquidity_usd": 900_000,
     "dev_tokens_pct": 40, "audit_score": 0.45, "social_hype": 0.80, "base_volatility": 0.10, "volume": 0.75,
     "gov_favor_score": 0.2},
    {"id": "shib", "symbol": "SHIB", "name": "Shiba Inu", "price": 0.00001, "liquidity_usd": 200_000,
     "dev_tokens_pct": 45, "audit_score": 0.30, "social_hype": 0.80, "base_volatility": 0.09, "volume": 0.70,
     "gov_favor_score": 0.2},
    {"id": "bonk", "symbol": "BONK", "name": "Bonk", "price": 0.00002, "liquidity_usd": 400_000,
     "dev_tokens_pct": 50, "audit_score": 0.35, "social_hype": 0.75, "base_volatility": 0.11, "volume": 0.70,
     "gov_favor_score": 0.1},
    {"id": "wojak", "symbol": "WOJAK", "name": "Wojak", "price": 0.0005, "liquidity_usd": 300_000,
     "dev_tokens_pct": 55, "audit_score": 0.25, "social_hype": 0.65, "base_volatility": 0.10, "volume": 0.60,
     "gov_favor_score": 0.1},
    {"id": "safemoon", "symbol": "SAFEMOON", "name": "SafeMoon", "price": 0.0003, "liquidity_usd": 150_000,
     "dev_tokens_pct": 60, "audit_score": 0.15, "social_hype": 0.60, "base_volatility": 0.12, "volume": 0.50,
     "gov_favor_score": 0.1},
]


NEWS_TEMPLATES: List[Dict[str, Any]] = [
    # High weight (61-100): moves price directly
    {"id": "etf_approval", "template": "Regulators approve spot {SYMBOL} ETF in surprise late-night vote",
     "sentiment": "bullish", "weight": 90, "category": "regulation"},
    {"id": "exchange_listing", "template": "Top-3 exchange announces {SYMBOL} listing next week",
     "sentiment": "bullish", "weight": 75, "category": "listing"},
    {"id": "partnership", "template": "{SYMBOL} inks partnership with a payment giant nobody can name",
     "sentiment": "bullish", "weight": 65, "category": "partnership"},
    {"id": "hack", "template": "{SYMBOL} bridge exploited, attacker leaves a polite thank-you note",
     "sentiment": "bearish", "weight": 85, "category": "security"},
    {"id": "sec_lawsuit", "template": "SEC files lawsuit calling {SYMBOL} an 'unregistered vibe'",
     "sentiment": "bearish", "weight": 80, "category": "regulation"},
    {"id": "delisting", "template": "Major exchange quietly delists {SYMBOL} on a Friday evening",
     "sentiment": "bearish", "weight": 70, "category": "listing"},
    # Medium weight (31-60): moves hype
    {"id": "influencer_shill", "template": "Influencer with 2M followers calls {SYMBOL} 'generational'",
     "sentiment": "bullish", "weight": 55, "category": "social"},
    {"id": "whale_accumulation", "template": "On-chain sleuths spot whales accumulating {SYMBOL}",
     "sentiment": "bullish", "weight": 50, "category": "onchain"},
    {"id": "roadmap", "template": "{SYMBOL} team publishes roadmap with seventeen new buzzwords",
     "sentiment": "bullish", "weight": 40, "category": "development"},
    {"id": "dev_exodus", "template": "Core {SYMBOL} developers 'step back to spend time with family'",
     "sentiment": "bearish", "weight": 55, "category": "development"},
    {"id": "fud_thread", "template": "Viral thread claims {SYMBOL} tokenomics 'don't add up'",
     "sentiment": "bearish", "weight": 45, "category": "social"},
    {"id": "outage", "template": "{SYMBOL} network halts for six hours, team blames 'cosmic rays'",
     "sentiment": "bearish", "weight": 60, "category": "security"},
    {"id": "conference", "template": "{SYMBOL} founder to keynote crypto conference in Dubai",
     "sentiment": "neutral", "weight": 35, "category": "event"},
    # Low weight (0-30): small hype nudges
    {"id": "meme_trend", "template": "{SYMBOL} memes trending on crypto twitter",
     "sentiment": "bullish", "weight": 25, "category": "social"},
    {"id": "nft_drop", "template": "{SYMBOL} community launches commemorative NFT collection",
     "sentiment": "bullish", "weight": 20, "category": "community"},
    {"id": "merch", "template": "{SYMBOL} hoodies spotted at a Miami nightclub",
     "sentiment": "bullish", "weight": 10, "category": "community"},
    {"id": "minor_bug", "template": "Minor wallet bug reported by {SYMBOL} users, fix 'coming soon'",
     "sentiment": "bearish", "weight": 20, "category": "development"},
    {"id": "ceo_tweet", "template": "{SYMBOL} CEO posts cryptic tweet, deletes it ten minutes later",
     "sentiment": "bearish", "weight": 15, "category": "social"},
    {"id": "analyst_note", "template": "Analysts 'cautiously neutral' on {SYMBOL} heading into the weekend",
     "sentiment": "neutral", "weight": 25, "category": "analysis"},
    {"id": "governance_vote", "template": "{SYMBOL} DAO vote on logo color reaches quorum",
     "sentiment": "neutral", "weight": 10, "category": "governance"},
]

RUG_WARNING_TEMPLATES: List[str] = [
    "On-chain analysts flag suspicious {SYMBOL} dev wallet movements",
    "{SYMBOL} liquidity lock expires soon, community nervous",
    "Anonymous auditor warns {SYMBOL} contract has a hidden mint function",
    "{SYMBOL} team wallets moving tokens to exchanges",
]


def build_seed_assets(ticks_per_day: int = 1800) -> List[Asset]:
    """Fresh Asset instances for a new game, tiers classified."""
    assets = []
    for entry in SEED_ASSETS:
        assets.append(Asset(
            id=entry["id"],
            symbol=entry["symbol"],
            name=entry["name"],
            base_price=entry["price"],
            price=entry["price"],
            liquidity_usd=float(entry["liquidity_usd"]),
            dev_tokens_pct=float(entry["dev_tokens_pct"]),
            audit_score=entry["audit_score"],
            social_hype=entry["social_hype"],
            base_volatility=entry["base_volatility"],
            volume=entry["volume"],
            tier=classify_tier(entry["liquidity_usd"], entry["audit_score"]),
            gov_favor_score=entry["gov_favor_score"],
            price_history=PriceHistory(ticks_per_day),
        ))
    return assets
