"""
Deterministic fallback text generator.

Used whenever the text service is unavailable or returns something unusable.
Every output is derived from the request seed with a Park-Miller generator,
so the same seed always yields the same comment pack or post.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

MODULUS = 2147483647
MULTIPLIER = 16807

HANDLES = [
    "@OnChainOwl",
    "@AirdropAndy",
    "@BagHolderMax",
    "@SidewaysSam",
    "@WhaleWatcher",
    "@AuditNerd",
    "@YieldFarmer",
    "@RugDoctor",
]

POST_TEMPLATES = [
    "{ASSET} looking bullish. Chart setup is clean 📈",
    "{ASSET} about to moon. Don't say I didn't warn you 🚀",
    "Just bought more {ASSET}. This one's different 💎",
    "{ASSET} holders eating good tonight 🍽️",
    "If {ASSET} breaks resistance, we're heading to Mars 🌕",
]

# (text, emoji) per comment bucket
COMMENT_TEMPLATES = {
    "positive": [
        ("Called it early. {ASSET} printing.", "🚀"),
        ("Entry was clean. Respect.", None),
        ("Up {RET%}% in {DAYS} days. Legend.", "💎"),
    ],
    "negative": [
        ("This aged like milk. -{RET%}%", "🔻"),
        ("Lucky guess. Show entries next time.", None),
        ("{ASSET} dumped. What happened?", "🧻"),
    ],
    "neutral": [
        ("Dead coin vibes. Wake me when it moves.", "😴"),
        ("Sideways city. {DAYS} days of nothing.", None),
        ("{ASSET} doing {ASSET} things.", "🤷"),
    ],
    "verdict": [
        ("Horizon hit. Net {RET%}% vs your call.", None),
        ("{DAYS} days later: {ASSET} at {RET%}%", "📊"),
    ],
}

SHILL_WORDS = ("moon", "🚀")
FUD_WORDS = ("dump", "📉")
MEME_WORDS = ("😂", "lol")
BULLISH_WORDS = ("bull", "moon", "🚀", "pump")
BEARISH_WORDS = ("bear", "dump", "crash", "🔻", "📉", "sell", "rip")

DEFAULT_HORIZON_DAYS = 3
MAX_TARGETS = 3


def seeded_random(seed: str) -> Callable[[], float]:
    """
    Park-Miller generator keyed by a string.

    The initial value is the sum of the seed's character codes modulo
    2^31 - 1 (zero is replaced by one).
    """
    value = 0
    for ch in seed:
        value = (value + ord(ch)) % MODULUS
    if value == 0:
        value = 1
    state = [value]

    def next_value() -> float:
        state[0] = (state[0] * MULTIPLIER) % MODULUS
        return (state[0] - 1) / (MODULUS - 1)

    return next_value


def _pick(items: Sequence[Any], rng: Callable[[], float]) -> Any:
    return items[min(len(items) - 1, int(rng() * len(items)))]


def _contains_any(text: str, words: Sequence[str]) -> bool:
    return any(word in text for word in words)


def classify_text(text: str) -> Dict[str, str]:
    """Keyword classification into a post category and sentiment."""
    lower = text.lower()
    if _contains_any(lower, SHILL_WORDS):
        category = "shill"
    elif _contains_any(lower, FUD_WORDS):
        category = "fud"
    elif _contains_any(lower, MEME_WORDS):
        category = "meme"
    else:
        category = "analysis"

    if _contains_any(lower, BULLISH_WORDS):
        sentiment = "bullish"
    elif _contains_any(lower, BEARISH_WORDS):
        sentiment = "bearish"
    else:
        sentiment = "neutral"
    return {"category": category, "sentiment": sentiment}


def generate_fallback_comment_pack(text: str, mentions: List[str], seed: str) -> Dict[str, Any]:
    """
    Classification and comment pack without the text service.

    Args:
        text: Post text
        mentions: Asset symbols mentioned in the post
        seed: Request seed

    Returns:
        Dict with category, sentiment, targets, horizonDays, commentPack and
        qualityHints
    """
    rng = seeded_random(seed)
    comment_pack = {
        bucket: [
            {"handle": _pick(HANDLES, rng), "text": comment, "emoji": emoji}
            for comment, emoji in templates
        ]
        for bucket, templates in COMMENT_TEMPLATES.items()
    }
    return {
        **classify_text(text),
        "targets": list(mentions[:MAX_TARGETS]),
        "horizonDays": DEFAULT_HORIZON_DAYS,
        "commentPack": comment_pack,
        "qualityHints": {
            "engagement": 0.5 + rng() * 0.3,
            "authenticity": 0.5 + rng() * 0.3,
        },
    }


def generate_fallback_post(assets: Optional[List[str]], seed: str) -> Dict[str, Any]:
    """A templated shill post about the first asset (BTC if none given)."""
    rng = seeded_random(seed)
    target = assets[0] if assets else "BTC"
    content = _pick(POST_TEMPLATES, rng).replace("{ASSET}", target)
    direction = "long" if rng() > 0.5 else None
    return {
        "mode": "shill",
        "content": content,
        "targets": [target],
        "direction": direction,
        "timeframeDays": DEFAULT_HORIZON_DAYS,
        "hashtags": ["WAGMI", target],
        "quality": {
            "engagement": 0.5 + rng() * 0.3,
            "authenticity": 0.5 + rng() * 0.3,
        },
    }


def generate_fallback_improvement(current_text: str) -> Dict[str, str]:
    """Without the service the post is returned unchanged."""
    return {"content": current_text}
