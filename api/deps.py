# api/deps.py
import config
import db
from scrapers.base import Fetcher
from scrapers.browser import make_renderer
from search.aggregator import Aggregator, default_sources
from search.cache import QueryCache

# Single aggregator (and HTTP client, cache) for the process
_fetcher: Fetcher | None = None
_aggregator: Aggregator | None = None


def get_aggregator() -> Aggregator:
    """FastAPI dependency returning the process-wide Aggregator, built on first use."""
    global _fetcher, _aggregator
    if _aggregator is None:
        _fetcher = Fetcher(
            timeout=config.get_http_timeout(),
            retries=config.get_http_retries(),
            retry_delay=config.get_http_retry_delay(),
        )
        _aggregator = Aggregator(
            default_sources(_fetcher, make_renderer()),
            store=db.ListingStore(config.get_db_path()),
            cache=QueryCache(ttl=config.get_cache_ttl_seconds()),
            default_city=config.get_default_city(),
        )
    return _aggregator


async def close_aggregator() -> None:
    global _fetcher, _aggregator
    if _fetcher is not None:
        await _fetcher.close()
    _fetcher = None
    _aggregator = None
