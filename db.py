"""
SQLite fallback store for scraped listings, keyed by url.
Every live search upserts its results here; searches fall back to it when no source answers.
"""

import json
import sqlite3
from pathlib import Path

from models import Listing


SCHEMA = """
CREATE TABLE IF NOT EXISTS listings (
    url TEXT PRIMARY KEY,
    source TEXT NOT NULL,
    title TEXT NOT NULL,
    price INTEGER NOT NULL DEFAULT 0,
    rooms INTEGER NOT NULL DEFAULT 0,
    city TEXT NOT NULL,
    area INTEGER NOT NULL DEFAULT 0,
    amenities TEXT NOT NULL DEFAULT '{}',
    date TEXT NOT NULL,
    image TEXT,
    address TEXT,
    description TEXT,
    floor TEXT,
    bedrooms INTEGER,
    bathrooms INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_listings_city ON listings (city);
"""

AMENITY_FIELDS = ("furnished", "pets_allowed", "balcony", "parking", "kitchen", "garden", "lift", "garage", "keller")

COLUMNS = (
    "url",
    "source",
    "title",
    "price",
    "rooms",
    "city",
    "area",
    "amenities",
    "date",
    "image",
    "address",
    "description",
    "floor",
    "bedrooms",
    "bathrooms",
)


DEFAULT_DB_PATH: str | Path = "data/listings.db"


def _get_conn(db_path: str | Path):
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(path))


def init_db(db_path: str | Path = DEFAULT_DB_PATH) -> None:
    """Create DB file and the listings table if they don't exist."""
    conn = _get_conn(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


def get_table_names(db_path: str | Path = DEFAULT_DB_PATH) -> list[str]:
    """Return list of table names in the database."""
    conn = _get_conn(db_path)
    try:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def listing_to_row(listing: Listing) -> tuple:
    amenities = {name: getattr(listing, name) for name in AMENITY_FIELDS}
    return (
        listing.url,
        listing.source,
        listing.title,
        listing.price,
        listing.rooms,
        listing.city,
        listing.area,
        json.dumps(amenities),
        listing.date.isoformat(),
        listing.image,
        listing.address,
        listing.description,
        listing.floor,
        listing.bedrooms,
        listing.bathrooms,
    )


def row_to_listing(row: tuple) -> Listing:
    """Convert a DB row (COLUMNS order, without created_at/updated_at) to a Listing."""
    data = dict(zip(COLUMNS, row))
    amenities = json.loads(data.pop("amenities") or "{}")
    return Listing(**data, **{name: bool(amenities.get(name)) for name in AMENITY_FIELDS})


def upsert_listings(conn: sqlite3.Connection, listings: list[Listing]) -> None:
    """Insert or replace by url. created_at keeps the first insert time; updated_at is refreshed."""
    placeholders = ", ".join("?" for _ in COLUMNS)
    updates = ", ".join(f"{col} = excluded.{col}" for col in COLUMNS if col != "url")
    conn.executemany(
        f"""
        INSERT INTO listings ({", ".join(COLUMNS)})
        VALUES ({placeholders})
        ON CONFLICT(url) DO UPDATE SET {updates}, updated_at = datetime('now')
        """,
        [listing_to_row(listing) for listing in listings],
    )


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def like_contains(text: str) -> str:
    """LIKE pattern matching text as a literal substring (escape character is a backslash)."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def find_listings_by_city(
    db_path: str | Path = DEFAULT_DB_PATH,
    pattern: str = "",
    limit: int | None = None,
) -> list[Listing]:
    """Listings whose city contains pattern (Unicode case-insensitive, taken literally), newest first."""
    conn = _get_conn(db_path)
    try:
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        sql = f"""
        SELECT {", ".join(COLUMNS)}
        FROM listings
        WHERE casefold(city) LIKE ? ESCAPE '\\'
        ORDER BY date DESC
        """
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        cur = conn.execute(sql, (like_contains(pattern.strip().casefold()),))
        return [row_to_listing(row) for row in cur.fetchall()]
    finally:
        conn.close()


class ListingStore:
    """Fallback store used by the aggregator. Opens a connection per call, so it is safe across threads."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = db_path
        init_db(db_path)

    def upsert_many(self, listings: list[Listing]) -> None:
        conn = _get_conn(self.db_path)
        try:
            upsert_listings(conn, listings)
            conn.commit()
        finally:
            conn.close()

    def find_by_city_like(self, pattern: str) -> list[Listing]:
        return find_listings_by_city(self.db_path, pattern)
