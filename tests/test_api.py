"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.deps import get_aggregator
from api.main import app
from search.aggregator import Aggregator
from search.cache import QueryCache


def source_returning(listings):
    async def scrape(filters):
        return list(listings)

    return scrape


async def failing_source(filters):
    raise RuntimeError("site down")


@pytest.fixture
def client_for():
    def _client(aggregator: Aggregator) -> TestClient:
        app.dependency_overrides[get_aggregator] = lambda: aggregator
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def test_health(client_for) -> None:
    client = client_for(Aggregator({}))
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_search_returns_camel_case_listings(client_for, make_listing) -> None:
    listings = [
        make_listing("https://a/1", price=1200, pets_allowed=True),
        make_listing("https://a/2", price=600),
        make_listing("https://a/3", price=1800),
    ]
    client = client_for(Aggregator({"a": source_returning(listings)}, cache=QueryCache()))

    response = client.get("/api/search", params={"city": "Berlin", "maxPrice": "1500", "sort": "priceAsc"})
    assert response.status_code == 200
    body = response.json()
    assert [item["url"] for item in body] == ["https://a/2", "https://a/1"]
    assert body[1]["petsAllowed"] is True
    assert "pets_allowed" not in body[1]
    assert body[0]["city"] == "Berlin"
    assert body[0]["date"].startswith("2024-03-15T12:00:00")


def test_search_failure_returns_error_body(client_for) -> None:
    client = client_for(Aggregator({"a": failing_source}, cache=QueryCache()))
    response = client.get("/api/search", params={"city": "Berlin"})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Search failed"
    assert "All 1 sources failed" in body["message"]
