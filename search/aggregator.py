"""
Search across all sources: scrape concurrently, persist, filter, dedupe, sort, cache.

When the live pipeline fails as a whole (every source raised, or something unexpected broke),
the answer comes from the fallback store instead, filtered and sorted the same way.
"""

import asyncio
import json
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Mapping

from models import Listing, ListingFilters
from scrapers.scraper import SCRAPERS
from search.cache import QueryCache
from search.filters import apply_filters, parse_filters

logger = logging.getLogger(__name__)

ScrapeFn = Callable[[ListingFilters], Awaitable[list[Listing]]]


class PipelineError(Exception):
    """No live results could be produced."""


class SearchError(Exception):
    """Both the live pipeline and the fallback store failed."""


def cache_key(query: Mapping[str, Any]) -> str:
    return json.dumps(dict(query), ensure_ascii=False, default=str)


def default_sources(fetcher, renderer=None) -> dict[str, ScrapeFn]:
    """All registered scrapers, bound to a shared fetcher and renderer."""
    return {source_id: partial(scrape, fetcher=fetcher, renderer=renderer) for source_id, scrape in SCRAPERS.items()}


class Aggregator:
    """
    Args:
        sources: source id -> async scrape function taking ListingFilters.
        store: Fallback store with upsert_many(listings) and find_by_city_like(pattern); optional.
        cache: QueryCache for final results (default: 5 minutes).
        default_city: City used when the query has none.
    """

    def __init__(
        self,
        sources: Mapping[str, ScrapeFn],
        store=None,
        cache: QueryCache | None = None,
        default_city: str = "Berlin",
    ):
        self.sources = dict(sources)
        self.store = store
        self.cache = cache if cache is not None else QueryCache()
        self.default_city = default_city

    async def scrape_all(self, filters: ListingFilters) -> list[Listing]:
        """Run every source concurrently; a failing source is logged and skipped."""
        names = list(self.sources)
        outcomes = await asyncio.gather(
            *(self.sources[name](filters) for name in names),
            return_exceptions=True,
        )
        results: list[Listing] = []
        failed = 0
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                failed += 1
                logger.error("[%s] Source failed: %s", name, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            logger.info("[%s] %d results", name, len(outcome))
            results.extend(outcome)
        if names and failed == len(names):
            raise PipelineError(f"All {failed} sources failed")
        return results

    async def persist(self, listings: list[Listing]) -> None:
        """Best-effort write-through; errors are logged, never raised."""
        if self.store is None or not listings:
            return
        try:
            await asyncio.to_thread(self.store.upsert_many, listings)
        except Exception:
            logger.exception("Failed to persist %d listings", len(listings))

    async def fallback(self, filters: ListingFilters, error: Exception) -> list[Listing]:
        if self.store is None:
            raise SearchError(f"Search failed and no fallback store is configured: {error}") from error
        try:
            stored = await asyncio.to_thread(self.store.find_by_city_like, filters.city)
        except Exception as e:
            logger.exception("Fallback store query failed for city=%s", filters.city)
            raise SearchError(f"Search failed ({error}); fallback store failed ({e})") from e
        results = apply_filters(stored, filters)
        logger.info("Serving %d listings for city=%s from the fallback store", len(results), filters.city)
        return results

    async def search(self, query: Mapping[str, Any]) -> list[Listing]:
        """Raw query parameters -> filtered, deduplicated, sorted listings. Raises SearchError."""
        filters = parse_filters(query, default_city=self.default_city)
        key = cache_key(query)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Cache hit for %s", key)
            return list(cached)

        logger.info("Starting search for city: %s", filters.city)
        try:
            results = await self.scrape_all(filters)
            logger.info("Total results before filtering: %d", len(results))
            await self.persist(results)
            final = apply_filters(results, filters)
        except Exception as e:
            logger.error("Search pipeline failed for city=%s: %s", filters.city, e)
            return await self.fallback(filters, e)

        logger.info("Final unique results: %d (filtered out %d)", len(final), len(results) - len(final))
        self.cache.set(key, final)
        return list(final)
