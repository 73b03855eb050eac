"""
Social post classification and composition.

Each function tries the text service once and validates the reply; any
failure (no key, transport error, malformed JSON, missing fields) returns
the deterministic fallback for the same seed instead.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .client import AIServiceError, TextServiceClient
from .fallback import (
    generate_fallback_comment_pack,
    generate_fallback_improvement,
    generate_fallback_post,
)

logger = logging.getLogger(__name__)

APP_NAME = "HypeWire"

IMPROVE_PROMPT = """You are playing a satirical crypto trading game called "Crypto Wars" where you manage a social media influencer on a platform called "HypeWire".

Your job: Improve this crypto post to be more engaging and entertaining while staying true to the game's satirical tone.

Rules:
- Keep it under 160 characters
- Be punchy, satirical, and entertaining
- If the post is incomplete, complete it with a creative crypto-related reason
- Non-toxic but edgy

Original post: "{text}"

Return ONLY the improved post text. No explanations, no JSON, no quotes."""

_default_client: Optional[TextServiceClient] = None


def get_client() -> TextServiceClient:
    """Shared client configured from the environment."""
    global _default_client
    if _default_client is None:
        _default_client = TextServiceClient()
    return _default_client


def _request_json(client: TextServiceClient, request: Dict[str, Any]) -> Dict[str, Any]:
    text = client.complete(json.dumps(request))
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        raise AIServiceError(f"Reply is not valid JSON: {e}") from e
    if not isinstance(result, dict):
        raise AIServiceError("Reply is not a JSON object")
    return result


def classify_and_pack(
    text: str,
    mentions: List[str],
    seed: str,
    client: Optional[TextServiceClient] = None,
) -> Dict[str, Any]:
    """
    Classify a post and produce its reply comment pack.

    Args:
        text: Post text
        mentions: Asset symbols mentioned
        seed: Request seed (keys the fallback)
        client: Text service client (defaults to the shared one)

    Returns:
        Dict with category, sentiment, targets, horizonDays, commentPack and
        qualityHints
    """
    client = client or get_client()
    if not client.is_available:
        logger.info("Text service unavailable, using fallback for classification")
        return generate_fallback_comment_pack(text, mentions, seed)

    request = {"task": "classify_and_pack", "app": APP_NAME, "text": text, "mentions": mentions, "seed": seed}
    try:
        result = _request_json(client, request)
        if not result.get("category") or not result.get("sentiment") or not result.get("commentPack"):
            raise AIServiceError("Invalid classification structure")
        return result
    except AIServiceError as e:
        logger.error(f"Classification failed, using fallback: {e}")
        return generate_fallback_comment_pack(text, mentions, seed)


def compose_post(
    mode_hint: str = "short",
    assets: Optional[List[str]] = None,
    direction: Optional[str] = None,
    timeframe_days: int = 3,
    seed: str = "",
    client: Optional[TextServiceClient] = None,
) -> Dict[str, Any]:
    """Generate a post; falls back to a templated shill post."""
    assets = list(assets or [])
    client = client or get_client()
    if not client.is_available:
        logger.info("Text service unavailable, using fallback for composition")
        return generate_fallback_post(assets, seed)

    request = {
        "task": "compose_post",
        "app": APP_NAME,
        "modeHint": mode_hint,
        "assets": assets,
        "direction": direction,
        "timeframeDays": timeframe_days,
        "seed": seed,
    }
    try:
        result = _request_json(client, request)
        if not result.get("content"):
            raise AIServiceError("Invalid composition structure")
        return result
    except AIServiceError as e:
        logger.error(f"Composition failed, using fallback: {e}")
        return generate_fallback_post(assets, seed)


def improve_post(
    current_text: str,
    seed: str,
    client: Optional[TextServiceClient] = None,
) -> Dict[str, str]:
    """Punch up a post; returns the original text when nothing better comes back."""
    client = client or get_client()
    if not client.is_available:
        return generate_fallback_improvement(current_text)

    try:
        improved = client.complete(IMPROVE_PROMPT.format(text=current_text), system=None).strip()
    except AIServiceError as e:
        logger.error(f"Improvement failed, returning original: {e}")
        return generate_fallback_improvement(current_text)

    if not improved or improved == current_text:
        logger.info("Text service returned unchanged or empty text")
        return generate_fallback_improvement(current_text)
    return {"content": improved}
