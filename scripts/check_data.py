#!/usr/bin/env python3
"""
Inspect the fallback listings store: per-source summary, or the stored listings themselves.

Run from project root:
  python scripts/check_data.py                          # counts and median rent per source
  python scripts/check_data.py --show --city Bremen     # stored listings for a city, newest first
  python scripts/check_data.py --show --limit 5 --json  # raw JSON (camelCase, as the API returns it)
"""

import argparse
import json
import statistics
import sys
from collections import defaultdict
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import config  # noqa: E402
import db  # noqa: E402
from models import AMENITIES  # noqa: E402


def print_summary(listings) -> None:
    by_source = defaultdict(list)
    for listing in listings:
        by_source[listing.source].append(listing)

    print(f"{len(listings)} stored listing(s)\n")
    for source, items in sorted(by_source.items()):
        prices = [item.price for item in items if item.price]
        median = f"{statistics.median(prices):.0f} €" if prices else "-"
        cities = len({item.city.lower() for item in items})
        print(f"  {source:<14} {len(items):>5} listing(s)  {cities:>3} city(ies)  median rent {median}")


def print_listing(listing) -> None:
    flags = [name for name in AMENITIES if getattr(listing, name)]
    print("-" * 60)
    print(f"  [{listing.source}] {listing.title[:70]}")
    print(f"  {listing.url}")
    print(f"  {listing.city}  {listing.price or '-'} €  {listing.rooms or '-'} Zi  {listing.area or '-'} m²  floor {listing.floor or '-'}")
    print(f"  amenities: {', '.join(flags) or '-'}")
    print(f"  date: {listing.date.isoformat()}")


def main():
    parser = argparse.ArgumentParser(description="View the fallback listings store")
    parser.add_argument("--city", default="", help="Only listings whose city contains this text")
    parser.add_argument("--show", action="store_true", help="Print the listings instead of a summary")
    parser.add_argument("--limit", type=int, default=None, help="Max listings to show")
    parser.add_argument("--json", action="store_true", help="With --show: print JSON")
    args = parser.parse_args()

    db_path = Path(config.get_db_path())
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path
    if not db_path.exists():
        print(f"No database at {db_path}. Run scripts/search_listings.py first.")
        sys.exit(1)
    if "listings" not in db.get_table_names(db_path):
        print(f"{db_path} has no listings table.")
        sys.exit(1)

    listings = db.find_listings_by_city(db_path, args.city, limit=args.limit if args.show else None)
    if not args.show:
        print_summary(listings)
        return
    if args.json:
        print(json.dumps([listing.model_dump(mode="json", by_alias=True) for listing in listings], ensure_ascii=False, indent=2))
        return
    for listing in listings:
        print_listing(listing)
    print(f"\n{len(listings)} listing(s)")


if __name__ == "__main__":
    main()
