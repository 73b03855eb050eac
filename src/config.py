"""Configuration management for the Crypto Wars simulation core."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Data directory
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Save file storage (one JSON document per profile)
SAVE_DIR = Path(os.getenv("SAVE_DIR", str(DATA_DIR / "saves")))
SAVE_DIR.mkdir(parents=True, exist_ok=True)

# =============================================================================
# SIMULATION CLOCK
# =============================================================================

# Simulated ticks per trading day (one per real second of the window)
TICKS_PER_DAY = int(os.getenv("TICKS_PER_DAY", "1800"))

# Real-time length of the trading window before end-of-day (seconds)
DAY_DURATION_SECONDS = float(os.getenv("DAY_DURATION_SECONDS", "1800"))

# Rugged assets lose value every N ticks after the rug
RUG_BLEED_INTERVAL_TICKS = int(os.getenv("RUG_BLEED_INTERVAL_TICKS", "30"))

# =============================================================================
# MARKET
# =============================================================================

# Hard floor for every asset price
MIN_PRICE = float(os.getenv("MIN_PRICE", "0.00001"))

# Dev mode multiplies every risk-event probability
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
DEV_MODE_EVENT_MULTIPLIER = float(os.getenv("DEV_MODE_EVENT_MULTIPLIER", "5"))

# =============================================================================
# PLAYER
# =============================================================================

STARTING_CASH_USD = float(os.getenv("STARTING_CASH_USD", "10000"))
STARTING_REPUTATION = float(os.getenv("STARTING_REPUTATION", "50"))
STARTING_SECURITY = float(os.getenv("STARTING_SECURITY", "5"))

# =============================================================================
# FEEDS & RETENTION
# =============================================================================

MAX_FEED_SIZE = int(os.getenv("MAX_FEED_SIZE", "50"))
MAX_ARTICLES = int(os.getenv("MAX_ARTICLES", "200"))
NEWS_RETENTION_DAYS = int(os.getenv("NEWS_RETENTION_DAYS", "200"))
MAX_NET_WORTH_HISTORY = int(os.getenv("MAX_NET_WORTH_HISTORY", "1000"))

# =============================================================================
# AI TEXT SERVICE
# =============================================================================

# Empty key means the service is unavailable and the seeded fallback is used
AI_API_KEY = os.getenv("AI_API_KEY", "")
AI_API_URL = os.getenv("AI_API_URL", "https://api.anthropic.com/v1/messages")
AI_MODEL = os.getenv("AI_MODEL", "claude-3-5-sonnet-20241022")
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "2000"))
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "15"))
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "3"))

# =============================================================================
# HTTP API
# =============================================================================

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "3001"))
