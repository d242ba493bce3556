"""Load .env and expose settings. Copy .env.example to .env and fill in values."""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_scrapfly_api_key() -> str | None:
    """ScrapFly API key. When set, WG-Gesucht is rendered through Scrapfly instead of local Playwright."""
    return os.environ.get("SCRAPFLY_API_KEY") or None


def get_db_path() -> str:
    """SQLite file for the fallback listings store."""
    return os.environ.get("LISTINGS_DB_PATH") or "data/listings.db"


def get_cache_ttl_seconds() -> float:
    """How long a search result stays in the query cache (default: 5 minutes)."""
    return _get_float("CACHE_TTL_SECONDS", 300.0)


def get_http_timeout() -> float:
    return _get_float("HTTP_TIMEOUT", 15.0)


def get_http_retries() -> int:
    return _get_int("HTTP_RETRIES", 3)


def get_http_retry_delay() -> float:
    """Base delay in seconds between fetch retries."""
    return _get_float("HTTP_RETRY_DELAY", 1.0)


def get_render_timeout() -> float:
    """Navigation timeout in seconds for the headless browser."""
    return _get_float("RENDER_TIMEOUT", 30.0)


def get_default_city() -> str:
    return os.environ.get("DEFAULT_CITY") or "Berlin"


def get_log_level() -> str:
    return (os.environ.get("LOG_LEVEL") or "INFO").upper()


def setup_logging() -> None:
    """Call once at app startup."""
    logging.basicConfig(level=get_log_level(), format=LOG_FORMAT)
