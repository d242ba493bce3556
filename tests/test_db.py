"""Tests for the SQLite fallback store."""

from __future__ import annotations

import sqlite3
from datetime import timedelta

import pytest

import db


def test_init_creates_listings_table(tmp_path) -> None:
    path = tmp_path / "nested" / "listings.db"
    db.init_db(path)
    assert "listings" in db.get_table_names(path)


def test_round_trip_keeps_fields(tmp_path, make_listing) -> None:
    store = db.ListingStore(tmp_path / "listings.db")
    listing = make_listing(
        "https://www.wg-gesucht.de/wohnungen-in-Berlin-Mitte.1.html",
        source="WG-Gesucht",
        balcony=True,
        keller=True,
        floor="EG",
        image="https://img.wg-gesucht.de/a.jpg",
        address="Torstraße 1",
    )
    store.upsert_many([listing])

    [stored] = store.find_by_city_like("Berlin")
    assert stored.model_dump() == listing.model_dump()


def test_upsert_updates_and_keeps_created_at(tmp_path, make_listing) -> None:
    path = tmp_path / "listings.db"
    store = db.ListingStore(path)
    store.upsert_many([make_listing("https://a/1", title="Alt", price=700)])

    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "UPDATE listings SET created_at = '2020-01-01 00:00:00', updated_at = '2020-01-01 00:00:00' WHERE url = ?",
            ("https://a/1",),
        )
        conn.commit()
    finally:
        conn.close()

    store.upsert_many([make_listing("https://a/1", title="Neu", price=750)])

    [stored] = store.find_by_city_like("berlin")
    assert stored.title == "Neu"
    assert stored.price == 750

    conn = sqlite3.connect(path)
    try:
        created_at, updated_at = conn.execute(
            "SELECT created_at, updated_at FROM listings WHERE url = ?", ("https://a/1",)
        ).fetchone()
    finally:
        conn.close()
    assert created_at == "2020-01-01 00:00:00"
    assert updated_at != "2020-01-01 00:00:00"


def test_find_by_city_is_case_insensitive_substring(tmp_path, make_listing, now) -> None:
    store = db.ListingStore(tmp_path / "listings.db")
    store.upsert_many(
        [
            make_listing("https://a/1", city="Berlin", date=now - timedelta(days=1)),
            make_listing("https://a/2", city="BERLIN", date=now),
            make_listing("https://a/3", city="Hamburg"),
        ]
    )
    result = store.find_by_city_like("berlin")
    assert [listing.url for listing in result] == ["https://a/2", "https://a/1"]
    assert store.find_by_city_like("München") == []


def test_find_with_limit(tmp_path, make_listing) -> None:
    path = tmp_path / "listings.db"
    store = db.ListingStore(path)
    store.upsert_many([make_listing(f"https://a/{i}") for i in range(5)])
    assert len(db.find_listings_by_city(path, "Berlin", limit=2)) == 2


def test_find_by_city_folds_umlauts_and_eszett(tmp_path, make_listing) -> None:
    store = db.ListingStore(tmp_path / "listings.db")
    store.upsert_many(
        [
            make_listing("https://a/1", city="MÜNCHEN"),
            make_listing("https://a/2", city="Straße am See"),
        ]
    )
    assert [listing.url for listing in store.find_by_city_like("münchen")] == ["https://a/1"]
    assert [listing.url for listing in store.find_by_city_like("mü")] == ["https://a/1"]
    assert [listing.url for listing in store.find_by_city_like("STRASSE")] == ["https://a/2"]


@pytest.mark.parametrize("pattern", ["%", "_", "Ber_in", "\\"])
def test_find_by_city_treats_wildcards_literally(tmp_path, make_listing, pattern: str) -> None:
    store = db.ListingStore(tmp_path / "listings.db")
    store.upsert_many([make_listing("https://a/1", city="Berlin")])
    assert store.find_by_city_like(pattern) == []


def test_find_by_city_matches_literal_percent(tmp_path, make_listing) -> None:
    store = db.ListingStore(tmp_path / "listings.db")
    store.upsert_many([make_listing("https://a/1", city="Berlin"), make_listing("https://a/2", city="Berlin 100%")])
    assert [listing.url for listing in store.find_by_city_like("100%")] == ["https://a/2"]


@pytest.mark.parametrize(
    "text,expected",
    [("berlin", "%berlin%"), ("100%", "%100\\%%"), ("a_b", "%a\\_b%"), ("c:\\x", "%c:\\\\x%")],
)
def test_like_contains_escapes_wildcards(text: str, expected: str) -> None:
    assert db.like_contains(text) == expected
