"""
Query parsing, filtering, de-duplication and sorting of listings.

Numeric bounds only apply when the listing value is known: a price of 0 means "not parsed"
and passes every price bound. Amenity flags are keyword guesses made while scraping, so
filtering on them trades recall for precision.
"""

import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from models import AMENITIES, Listing, ListingFilters, SortOrder, Source

TRUE_VALUES = ("true", "1", "yes", "on")

# Query flag name -> source, e.g. ?immowelt=true&wgGesucht=true
SOURCE_FLAGS = {
    "immowelt": Source.IMMOWELT,
    "kleinanzeigen": Source.KLEINANZEIGEN,
    "wgGesucht": Source.WG_GESUCHT,
}

GROUND_FLOOR = ("0", "eg", "erdgeschoss", "ground")
TOP_FLOORS = ("dachgeschoss", "penthouse")


def _first(value):
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_number(value) -> int | None:
    """Leading integer of a query value ("850", "850€"); None when there is none."""
    value = _first(value)
    if value is None:
        return None
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else None


def parse_bool(value) -> bool:
    value = _first(value)
    return str(value).strip().lower() in TRUE_VALUES if value is not None else False


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def parse_filters(query: Mapping[str, Any], default_city: str = "Berlin") -> ListingFilters:
    """Raw query parameters (camelCase) -> ListingFilters. Unknown or malformed values are ignored."""
    city = (_first(query.get("city")) or "").strip() or default_city

    sort = _first(query.get("sort"))
    try:
        sort_order = SortOrder(sort) if sort else SortOrder.NEWEST
    except ValueError:
        sort_order = SortOrder.NEWEST

    selected = [source for flag, source in SOURCE_FLAGS.items() if flag in query and _first(query[flag]) not in ("false", "0")]

    floor = (_first(query.get("floor")) or "").strip() or None

    return ListingFilters(
        city=city,
        min_price=parse_number(query.get("minPrice")),
        max_price=parse_number(query.get("maxPrice")),
        rooms=parse_number(query.get("rooms")),
        max_rooms=parse_number(query.get("maxRooms")),
        min_area=parse_number(query.get("minArea")),
        max_area=parse_number(query.get("maxArea")),
        bedrooms=parse_number(query.get("bedrooms")),
        bathrooms=parse_number(query.get("bathrooms")),
        floor=floor,
        sort=sort_order,
        sources=selected or None,
        **{amenity: parse_bool(query.get(_camel(amenity))) for amenity in AMENITIES},
    )


def floor_matches(floor: str | None, wanted: str | None) -> bool:
    """
    "0"/"EG"            ground floor only (EG, Erdgeschoss, 0)
    "3+"                numeric floor >= 3
    "dachgeschoss"      substring match, same for "penthouse"
    anything else       substring match
    Listings without a floor never match an active floor filter.
    """
    if not wanted:
        return True
    if not floor:
        return False
    floor_l = floor.strip().lower()
    wanted_l = wanted.strip().lower()
    if wanted_l in GROUND_FLOOR:
        return floor_l in GROUND_FLOOR
    if m := re.fullmatch(r"(\d+)\+", wanted_l):
        number = re.match(r"(\d+)", floor_l)
        return number is not None and int(number.group(1)) >= int(m.group(1))
    if wanted_l in TOP_FLOORS:
        return wanted_l in floor_l
    return wanted_l in floor_l


def _outside(value: int | None, low: int | None, high: int | None) -> bool:
    if not value:
        return False
    if low is not None and value < low:
        return True
    if high is not None and value > high:
        return True
    return False


def matches(listing: Listing, filters: ListingFilters) -> bool:
    if _outside(listing.price, filters.min_price, filters.max_price):
        return False
    if _outside(listing.rooms, filters.rooms, filters.max_rooms):
        return False
    if _outside(listing.area, filters.min_area, filters.max_area):
        return False
    if _outside(listing.bedrooms, filters.bedrooms, None):
        return False
    if _outside(listing.bathrooms, filters.bathrooms, None):
        return False

    for amenity in AMENITIES:
        if getattr(filters, amenity) and not getattr(listing, amenity):
            return False

    if not floor_matches(listing.floor, filters.floor):
        return False

    if filters.sources and listing.source not in {s.value for s in filters.sources}:
        return False
    return True


def filter_listings(listings: Iterable[Listing], filters: ListingFilters) -> list[Listing]:
    return [listing for listing in listings if matches(listing, filters)]


def dedupe_listings(listings: Iterable[Listing]) -> list[Listing]:
    """Keep the first listing per url."""
    seen: set[str] = set()
    out: list[Listing] = []
    for listing in listings:
        if listing.url in seen:
            continue
        seen.add(listing.url)
        out.append(listing)
    return out


def _date_key(listing: Listing) -> datetime:
    date = listing.date
    return date if date.tzinfo else date.replace(tzinfo=timezone.utc)


def sort_listings(listings: Iterable[Listing], sort: SortOrder | str = SortOrder.NEWEST) -> list[Listing]:
    """Stable sort. Unknown orders fall back to newest first."""
    try:
        sort = SortOrder(sort)
    except ValueError:
        sort = SortOrder.NEWEST
    items = list(listings)
    if sort == SortOrder.PRICE_ASC:
        return sorted(items, key=lambda l: l.price)
    if sort == SortOrder.PRICE_DESC:
        return sorted(items, key=lambda l: l.price, reverse=True)
    if sort == SortOrder.AREA_ASC:
        return sorted(items, key=lambda l: l.area or 0)
    if sort == SortOrder.AREA_DESC:
        return sorted(items, key=lambda l: l.area or 0, reverse=True)
    return sorted(items, key=_date_key, reverse=True)


def apply_filters(listings: Iterable[Listing], filters: ListingFilters) -> list[Listing]:
    """Filter, keep the first listing per url (in input order), then sort."""
    return sort_listings(dedupe_listings(filter_listings(listings, filters)), filters.sort)
