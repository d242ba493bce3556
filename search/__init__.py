"""Aggregated search: concurrent scraping, filtering, sorting, caching and store fallback."""

from search.aggregator import Aggregator, PipelineError, SearchError, default_sources
from search.cache import QueryCache
from search.filters import apply_filters, dedupe_listings, filter_listings, parse_filters, sort_listings

__all__ = [
    "Aggregator",
    "PipelineError",
    "QueryCache",
    "SearchError",
    "apply_filters",
    "dedupe_listings",
    "default_sources",
    "filter_listings",
    "parse_filters",
    "sort_listings",
]
