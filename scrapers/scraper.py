"""
One scrape function per source: build the search URL from filters, fetch it, extract listings.

Usage:
  from scrapers.base import Fetcher
  from scrapers.browser import make_renderer
  from scrapers.scraper import scrape_immowelt, scrape_wg_gesucht

  async with Fetcher() as fetcher:
      listings = await scrape_immowelt(ListingFilters(city="Bremen"), fetcher)
      listings += await scrape_wg_gesucht(ListingFilters(city="Bremen"), fetcher, make_renderer())

A fetch error is logged and re-raised so the aggregator can count the source as failed;
extraction itself never raises.
"""

import logging
from urllib.parse import urlencode

from models import Listing, ListingFilters
from scrapers.base import FetchError
from scrapers.cities import get_wg_city_id, normalize_city_name
from scrapers.extractor import extract_listings
from scrapers.sites import IMMOWELT, KLEINANZEIGEN, WG_GESUCHT

logger = logging.getLogger(__name__)

# Immowelt equipment filter codes (eq=...)
IMMOWELT_EQUIPMENT = {
    "balcony": 1,
    "garden": 2,
    "kitchen": 3,
    "lift": 4,
    "parking": 5,
}

# Kleinanzeigen cities whose search lives under a location-coded URL.
KLEINANZEIGEN_SPECIAL_URLS = {
    "trier": "https://www.kleinanzeigen.de/s-wohnung-mieten/trier/c203l5432",
}


def build_immowelt_url(filters: ListingFilters) -> str:
    slug = normalize_city_name(filters.city)
    params: list[tuple[str, object]] = []
    if filters.min_price:
        params.append(("pmi", filters.min_price))
    if filters.max_price:
        params.append(("pma", filters.max_price))
    if filters.min_area:
        params.append(("ami", filters.min_area))
    if filters.max_area:
        params.append(("ama", filters.max_area))
    if filters.rooms:
        params.append(("r", filters.rooms))
    for amenity, code in IMMOWELT_EQUIPMENT.items():
        if getattr(filters, amenity):
            params.append(("eq", code))
    params.append(("sort", "createdDate"))
    return f"{IMMOWELT['base_url']}/liste/{slug}/wohnungen/mieten?{urlencode(params)}"


def build_kleinanzeigen_url(filters: ListingFilters) -> str:
    slug = normalize_city_name(filters.city)
    if slug in KLEINANZEIGEN_SPECIAL_URLS:
        return KLEINANZEIGEN_SPECIAL_URLS[slug]
    return f"{KLEINANZEIGEN['base_url']}/s-wohnungen/{slug}/c203"


def build_wg_gesucht_url(filters: ListingFilters) -> str:
    """wg-zimmer-in-{slug}.{city_id}.0.1.0.html; the id segment is dropped for unknown cities."""
    slug = normalize_city_name(filters.city)
    city_id = get_wg_city_id(filters.city)
    params: list[tuple[str, object]] = [
        ("category", 0),
        ("rent_type", 0),
        ("sort_order", 0),
        ("noDeact", 1),
    ]
    if city_id:
        params.append(("city_id", city_id))
    if filters.min_price:
        params.append(("rent_price_min", filters.min_price))
    if filters.max_price:
        params.append(("rent_price_max", filters.max_price))
    if filters.rooms:
        params.append(("room_nr", filters.rooms))
    if filters.min_area:
        params.append(("flat_size_min", filters.min_area))
    if filters.max_area:
        params.append(("flat_size_max", filters.max_area))
    page = f"wg-zimmer-in-{slug}.{city_id}.0.1.0.html" if city_id else f"wg-zimmer-in-{slug}.0.1.0.html"
    return f"{WG_GESUCHT['base_url']}/{page}?{urlencode(params)}"


async def scrape_site(site: dict, url: str, filters: ListingFilters, client) -> list[Listing]:
    """Fetch url with client (Fetcher or renderer) and extract listings for site. Raises FetchError."""
    name = site["name"]
    logger.info("[%s] Fetching: %s", name, url)
    try:
        html = await client.fetch(url, headers={"Referer": site["base_url"] + "/"})
    except FetchError as e:
        logger.error("[%s] Fetch error (status %s): %s", name, e.status_code, e)
        raise
    return extract_listings(html, site, filters.city)


async def scrape_immowelt(filters: ListingFilters, fetcher, renderer=None) -> list[Listing]:
    return await scrape_site(IMMOWELT, build_immowelt_url(filters), filters, fetcher)


async def scrape_kleinanzeigen(filters: ListingFilters, fetcher, renderer=None) -> list[Listing]:
    return await scrape_site(KLEINANZEIGEN, build_kleinanzeigen_url(filters), filters, fetcher)


async def scrape_wg_gesucht(filters: ListingFilters, fetcher, renderer=None) -> list[Listing]:
    """WG-Gesucht only renders listings with scripts enabled, so it goes through the headless renderer."""
    return await scrape_site(WG_GESUCHT, build_wg_gesucht_url(filters), filters, renderer or fetcher)


SCRAPERS = {
    IMMOWELT["id"]: scrape_immowelt,
    KLEINANZEIGEN["id"]: scrape_kleinanzeigen,
    WG_GESUCHT["id"]: scrape_wg_gesucht,
}
