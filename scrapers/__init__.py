"""Scrapers: fetch search pages (HTTP or headless browser) and extract listings."""

from scrapers.base import BlockedError, Fetcher, FetchError, NotFoundError, RenderError, TransientError
from scrapers.cities import get_wg_city_id, normalize_city_name
from scrapers.extractor import extract_listings
from scrapers.scraper import (
    SCRAPERS,
    build_immowelt_url,
    build_kleinanzeigen_url,
    build_wg_gesucht_url,
    scrape_immowelt,
    scrape_kleinanzeigen,
    scrape_wg_gesucht,
)
from scrapers.sites import SITES, SITES_BY_ID

__all__ = [
    "BlockedError",
    "FetchError",
    "Fetcher",
    "NotFoundError",
    "RenderError",
    "SCRAPERS",
    "SITES",
    "SITES_BY_ID",
    "TransientError",
    "build_immowelt_url",
    "build_kleinanzeigen_url",
    "build_wg_gesucht_url",
    "extract_listings",
    "get_wg_city_id",
    "normalize_city_name",
    "scrape_immowelt",
    "scrape_kleinanzeigen",
    "scrape_wg_gesucht",
]
