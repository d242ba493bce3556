"""Tests for the search aggregator: concurrency, caching, persistence and store fallback."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from models import ListingFilters
from scrapers.base import Fetcher, TransientError
from search.aggregator import Aggregator, PipelineError, SearchError, cache_key, default_sources
from search.cache import QueryCache


class StubSource:
    """Async scrape function returning fixed listings (or raising) and counting calls."""

    def __init__(self, listings=None, error: Exception | None = None):
        self.listings = listings or []
        self.error = error
        self.calls = 0
        self.filters = []

    async def __call__(self, filters):
        self.calls += 1
        self.filters.append(filters)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return list(self.listings)


class MemoryStore:
    def __init__(self, records=None, fail_upsert: bool = False, fail_find: bool = False):
        self.records = list(records or [])
        self.fail_upsert = fail_upsert
        self.fail_find = fail_find
        self.find_calls: list[str] = []

    def upsert_many(self, listings) -> None:
        if self.fail_upsert:
            raise OSError("disk full")
        by_url = {listing.url: listing for listing in self.records}
        by_url.update({listing.url: listing for listing in listings})
        self.records = list(by_url.values())

    def find_by_city_like(self, pattern: str):
        self.find_calls.append(pattern)
        if self.fail_find:
            raise OSError("database is locked")
        return [listing for listing in self.records if pattern.lower() in listing.city.lower()]


def search(aggregator: Aggregator, query: dict):
    return asyncio.run(aggregator.search(query))


def test_concatenates_all_sources(make_listing, clock) -> None:
    a = StubSource([make_listing("https://a/1", price=900), make_listing("https://a/2", price=700)])
    b = StubSource([make_listing("https://b/1", price=800)])
    aggregator = Aggregator({"a": a, "b": b}, cache=QueryCache(clock=clock))

    result = search(aggregator, {"city": "Berlin", "sort": "priceAsc"})
    assert [listing.url for listing in result] == ["https://a/2", "https://b/1", "https://a/1"]
    assert a.filters[0].city == "Berlin"


def test_default_city(clock) -> None:
    a = StubSource()
    aggregator = Aggregator({"a": a}, cache=QueryCache(clock=clock), default_city="Dresden")
    search(aggregator, {})
    assert a.filters[0].city == "Dresden"


def test_partial_failure_keeps_other_sources(make_listing, clock) -> None:
    ok_one = StubSource([make_listing("https://a/1"), make_listing("https://a/2")])
    broken = StubSource(error=RuntimeError("boom"))
    ok_two = StubSource([make_listing("https://c/1")])
    store = MemoryStore()
    aggregator = Aggregator({"a": ok_one, "b": broken, "c": ok_two}, store=store, cache=QueryCache(clock=clock))

    result = search(aggregator, {"city": "Berlin"})
    assert len(result) == 3
    assert store.find_calls == []


def test_duplicate_urls_keep_first_source(make_listing, clock) -> None:
    a = StubSource([make_listing("https://x/1", source="Immowelt")])
    b = StubSource([make_listing("https://x/1", source="Kleinanzeigen")])
    aggregator = Aggregator({"a": a, "b": b}, cache=QueryCache(clock=clock))
    result = search(aggregator, {"city": "Berlin"})
    assert [listing.source for listing in result] == ["Immowelt"]


def test_cached_result_within_ttl(make_listing, clock) -> None:
    a = StubSource([make_listing("https://a/1")])
    aggregator = Aggregator({"a": a}, cache=QueryCache(ttl=300, clock=clock))
    query = {"city": "Berlin", "maxPrice": "1000"}

    first = search(aggregator, query)
    clock.advance(120)
    second = search(aggregator, dict(query))
    assert a.calls == 1
    assert second == first

    second.clear()
    assert search(aggregator, query) == first

    clock.advance(300)
    search(aggregator, query)
    assert a.calls == 2


def test_different_queries_are_cached_separately(clock) -> None:
    a = StubSource()
    aggregator = Aggregator({"a": a}, cache=QueryCache(clock=clock))
    search(aggregator, {"city": "Berlin"})
    search(aggregator, {"city": "Hamburg"})
    assert a.calls == 2
    assert cache_key({"city": "Berlin"}) != cache_key({"city": "Hamburg"})


def test_results_are_persisted(make_listing, clock) -> None:
    store = MemoryStore()
    a = StubSource([make_listing("https://a/1", price=2000), make_listing("https://a/2", price=500)])
    aggregator = Aggregator({"a": a}, store=store, cache=QueryCache(clock=clock))

    result = search(aggregator, {"city": "Berlin", "maxPrice": "1000"})
    assert [listing.url for listing in result] == ["https://a/2"]
    assert {listing.url for listing in store.records} == {"https://a/1", "https://a/2"}


def test_persistence_failure_is_logged_not_raised(make_listing, clock, caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryStore(fail_upsert=True)
    a = StubSource([make_listing("https://a/1")])
    aggregator = Aggregator({"a": a}, store=store, cache=QueryCache(clock=clock))

    with caplog.at_level(logging.ERROR, logger="search.aggregator"):
        result = search(aggregator, {"city": "Berlin"})
    assert [listing.url for listing in result] == ["https://a/1"]
    assert "Failed to persist" in caplog.text


def test_all_sources_failing_serves_the_store(make_listing, clock) -> None:
    records = [
        make_listing("https://s/1", city="Berlin", price=600),
        make_listing("https://s/2", city="berlin", price=1500),
        make_listing("https://s/3", city="Berlin-Mitte", price=900),
        make_listing("https://s/4", city="Hamburg", price=700),
    ]
    store = MemoryStore(records)
    sources = {name: StubSource(error=RuntimeError(name)) for name in ("a", "b", "c")}
    aggregator = Aggregator(sources, store=store, cache=QueryCache(clock=clock))

    result = search(aggregator, {"city": "Berlin", "sort": "priceAsc"})
    assert [listing.url for listing in result] == ["https://s/1", "https://s/3", "https://s/2"]
    assert store.find_calls == ["Berlin"]

    filtered = search(aggregator, {"city": "Berlin", "maxPrice": "1000"})
    assert {listing.url for listing in filtered} == {"https://s/1", "https://s/3"}


def test_fallback_results_are_not_cached(make_listing, clock) -> None:
    store = MemoryStore([make_listing("https://s/1")])
    broken = StubSource(error=RuntimeError("down"))
    aggregator = Aggregator({"a": broken}, store=store, cache=QueryCache(clock=clock))
    search(aggregator, {"city": "Berlin"})
    search(aggregator, {"city": "Berlin"})
    assert broken.calls == 2


def test_empty_sources_are_not_a_failure(clock) -> None:
    store = MemoryStore()
    aggregator = Aggregator({"a": StubSource(), "b": StubSource()}, store=store, cache=QueryCache(clock=clock))
    assert search(aggregator, {"city": "Berlin"}) == []
    assert store.find_calls == []


def test_store_failure_raises_search_error(clock) -> None:
    store = MemoryStore(fail_find=True)
    aggregator = Aggregator({"a": StubSource(error=RuntimeError("down"))}, store=store, cache=QueryCache(clock=clock))
    with pytest.raises(SearchError):
        search(aggregator, {"city": "Berlin"})


def test_no_store_raises_search_error(clock) -> None:
    aggregator = Aggregator({"a": StubSource(error=RuntimeError("down"))}, cache=QueryCache(clock=clock))
    with pytest.raises(SearchError):
        search(aggregator, {"city": "Berlin"})


def test_scrape_all_raises_when_every_source_fails() -> None:
    aggregator = Aggregator({"a": StubSource(error=ValueError("x")), "b": StubSource(error=OSError("y"))})
    with pytest.raises(PipelineError):
        asyncio.run(aggregator.scrape_all(ListingFilters()))


@pytest.mark.parametrize("status", [503, 403, 404])
def test_unreachable_sites_serve_the_store(make_listing, clock, status: int) -> None:
    records = [make_listing(f"https://s/{i}", city="Berlin", price=500 + i) for i in range(3)]
    store = MemoryStore(records)
    requests: list[httpx.Request] = []
    cache = QueryCache(clock=clock)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status)

    async def no_sleep(seconds: float) -> None:
        pass

    async def main():
        async with Fetcher(retries=1, transport=httpx.MockTransport(handler), sleep=no_sleep) as fetcher:
            aggregator = Aggregator(default_sources(fetcher), store=store, cache=cache)
            return await aggregator.search({"city": "Berlin", "sort": "priceAsc"})

    result = asyncio.run(main())
    assert [listing.url for listing in result] == ["https://s/0", "https://s/1", "https://s/2"]
    assert store.find_calls == ["Berlin"]
    assert len(cache) == 0
    assert {request.url.host for request in requests} == {
        "www.immowelt.de",
        "www.kleinanzeigen.de",
        "www.wg-gesucht.de",
    }


def test_one_unreachable_site_is_a_partial_failure(make_listing, clock) -> None:
    store = MemoryStore([make_listing("https://s/0")])
    listing = make_listing("https://a/1")

    async def fetch_failure(filters):
        raise TransientError("HTTP 503", "https://www.immowelt.de/liste/berlin", 503)

    aggregator = Aggregator(
        {"immowelt": fetch_failure, "other": StubSource([listing])},
        store=store,
        cache=QueryCache(clock=clock),
    )
    assert [item.url for item in search(aggregator, {"city": "Berlin"})] == ["https://a/1"]
    assert store.find_calls == []
