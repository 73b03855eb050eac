"""
HTTP client for the external text-generation service.

Posts a messages-style JSON request and returns the first text block of the
reply. Transport errors and 5xx responses are retried with exponential
backoff; everything else surfaces as AIServiceError so callers can fall back
to the seeded templates.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    RetryError,
)

from ..config import (
    AI_API_KEY,
    AI_API_URL,
    AI_MAX_RETRIES,
    AI_MAX_TOKENS,
    AI_MODEL,
    AI_TEMPERATURE,
    AI_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

API_VERSION = "2023-06-01"
RETRY_MIN_WAIT = 0.5  # seconds
RETRY_MAX_WAIT = 4.0  # seconds

SYSTEM_PROMPT = (
    "You are the voice of HypeWire, a satirical crypto social network. "
    "Be punchy, non-toxic, authentic. Posts <=160 chars unless analysis format. "
    "Output JSON only matching the provided schema. No markdown, no explanations."
)


class AIServiceError(Exception):
    """The text service is unavailable or returned an unusable reply."""
    pass


class _RetryableError(AIServiceError):
    """Transient failure worth another attempt."""
    pass


class TextServiceClient:
    """
    Client for a messages-style text generation API.

    Attributes:
        api_key: Service key; empty means unavailable
        api_url: Messages endpoint
        model: Model name sent with every request
        timeout: Per-request timeout in seconds
        max_retries: Attempts per request
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = AI_API_URL,
        model: str = AI_MODEL,
        max_tokens: int = AI_MAX_TOKENS,
        temperature: float = AI_TEMPERATURE,
        timeout: float = AI_TIMEOUT_SECONDS,
        max_retries: int = AI_MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = AI_API_KEY if api_key is None else api_key
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("AI_API_KEY not set. Text features will use fallback templates.")

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.api_url, json=payload, headers=self._headers(), timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise _RetryableError(f"Transport error: {e}") from e
        except requests.RequestException as e:
            raise AIServiceError(f"Request failed: {e}") from e

        if response.status_code >= 500 or response.status_code == 429:
            raise _RetryableError(f"Service returned {response.status_code}")
        if response.status_code != 200:
            raise AIServiceError(f"Service returned {response.status_code}: {response.text[:200]}")
        try:
            return response.json()
        except ValueError as e:
            raise AIServiceError(f"Reply is not JSON: {e}") from e

    def complete(self, user_content: str, system: Optional[str] = SYSTEM_PROMPT) -> str:
        """
        Send one user message and return the reply text.

        Args:
            user_content: Message content
            system: System prompt, or None to omit it

        Returns:
            Text of the first content block

        Raises:
            AIServiceError: Unavailable, failed after retries, or malformed reply
        """
        if not self.is_available:
            raise AIServiceError("Text service unavailable: no API key configured")

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": user_content}],
        }
        if system:
            payload["system"] = system

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=RETRY_MIN_WAIT, max=RETRY_MAX_WAIT),
            retry=retry_if_exception_type(_RetryableError),
        )
        def _post_with_retry() -> Dict[str, Any]:
            return self._post(payload)

        try:
            reply = _post_with_retry()
        except RetryError as e:
            logger.error(f"Text service failed after {self.max_retries} attempts: {e}")
            raise AIServiceError(f"Text service failed after {self.max_retries} attempts") from e

        if not isinstance(reply, dict):
            raise AIServiceError("Reply is not a JSON object")
        blocks: List[Dict[str, Any]] = reply.get("content") or []
        if not isinstance(blocks, list) or not blocks or not isinstance(blocks[0], dict):
            raise AIServiceError("Unexpected response structure from text service")
        if blocks[0].get("type") != "text" or not isinstance(blocks[0].get("text"), str):
            raise AIServiceError("Unexpected response type from text service")
        return blocks[0]["text"]
