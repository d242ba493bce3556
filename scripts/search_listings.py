"""
Search all supported sites for one city, save results to the fallback store and print them.
Optionally export to JSON with -o.

Usage:
  python scripts/search_listings.py [CITY]
  python scripts/search_listings.py Bremen --max-price 900 --rooms 2
  python scripts/search_listings.py Berlin --sort priceAsc -o data/berlin.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import config  # noqa: E402
import db  # noqa: E402
from models import SortOrder  # noqa: E402
from scrapers.base import Fetcher  # noqa: E402
from scrapers.browser import make_renderer  # noqa: E402
from search.aggregator import Aggregator, SearchError, default_sources  # noqa: E402


def build_query(args) -> dict[str, str]:
    query = {"city": args.city, "sort": args.sort}
    for name, value in (
        ("minPrice", args.min_price),
        ("maxPrice", args.max_price),
        ("rooms", args.rooms),
        ("minArea", args.min_area),
        ("maxArea", args.max_area),
    ):
        if value is not None:
            query[name] = str(value)
    for source in args.source or []:
        query[source] = "true"
    return query


async def main():
    parser = argparse.ArgumentParser(description="Search rental listings across supported sites")
    parser.add_argument("city", nargs="?", default=config.get_default_city(), help="City to search (default: Berlin)")
    parser.add_argument("--min-price", type=int, default=None)
    parser.add_argument("--max-price", type=int, default=None)
    parser.add_argument("--rooms", type=int, default=None, help="Minimum number of rooms")
    parser.add_argument("--min-area", type=int, default=None)
    parser.add_argument("--max-area", type=int, default=None)
    parser.add_argument("--sort", default=SortOrder.NEWEST.value, choices=[s.value for s in SortOrder])
    parser.add_argument(
        "--source",
        action="append",
        choices=["immowelt", "kleinanzeigen", "wgGesucht"],
        help="Only this source (repeatable; default: all)",
    )
    parser.add_argument("-o", "--output", default=None, help="Optional: also write JSON to this path")
    args = parser.parse_args()

    config.setup_logging()
    store = db.ListingStore(config.get_db_path())

    async with Fetcher(
        timeout=config.get_http_timeout(),
        retries=config.get_http_retries(),
        retry_delay=config.get_http_retry_delay(),
    ) as fetcher:
        aggregator = Aggregator(default_sources(fetcher, make_renderer()), store=store)
        try:
            listings = await aggregator.search(build_query(args))
        except SearchError as e:
            print(f"Search failed: {e}", file=sys.stderr)
            sys.exit(1)

    for listing in listings:
        print(f"[{listing.source}] {listing.price:>5} € {listing.rooms} Zi {listing.area:>4} m²  {listing.title[:60]}  {listing.url}", flush=True)
    print(f"{len(listings)} listings for {args.city} (saved to {config.get_db_path()})")

    if args.output:
        out_path = Path(args.output).resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump([l.model_dump(mode="json", by_alias=True) for l in listings], f, ensure_ascii=False, indent=2)
        print(f"Also wrote JSON to {out_path}")


if __name__ == "__main__":
    asyncio.run(main())
