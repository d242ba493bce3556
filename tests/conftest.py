"""Shared fixtures: a fixed clock and a Listing factory."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models import Listing

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_listing():
    def _make(url: str = "https://www.immowelt.de/expose/1", **overrides) -> Listing:
        data = {
            "source": "Immowelt",
            "title": "Schöne Wohnung",
            "price": 900,
            "rooms": 2,
            "city": "Berlin",
            "area": 60,
            "url": url,
            "date": NOW,
        }
        data.update(overrides)
        return Listing(**data)

    return _make


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
