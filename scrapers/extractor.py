"""
Turn a search-results page into Listings using a site's ruleset (see scrapers/sites.py).

Never raises: a broken card is skipped, a broken page gives an empty list. Both are logged.
"""

import logging
from datetime import datetime

from bs4 import BeautifulSoup

from models import Listing, utcnow
from scrapers.content import absolute_url, element_text, sanitize_image_url
from scrapers.links import find_container, find_nearby_image, parse_listing_links
from scrapers.rules import (
    AREA_PATTERNS,
    FLOOR_PATTERNS,
    PRICE_EURO_DOTTED,
    ROOM_PATTERNS,
    detect_amenities,
    first_value,
    parse_listing_date,
)

logger = logging.getLogger(__name__)

MAX_RESULTS = 50
DEFAULT_TITLE = "Wohnung"


def _is_link_selector(selector: str) -> bool:
    return selector.startswith("a[href")


def _cards_for(soup, selector: str) -> list:
    """Elements matched by selector; for link selectors, their (distinct) parents are the cards."""
    matched = soup.select(selector)
    if not _is_link_selector(selector):
        return matched
    cards, seen = [], set()
    for el in matched:
        parent = el.parent
        if parent is not None and id(parent) not in seen:
            seen.add(id(parent))
            cards.append(parent)
    return cards


def build_listing(
    site: dict,
    city: str,
    now: datetime,
    *,
    title: str | None,
    price: int | None,
    rooms: int | None,
    area: int | None,
    href: str | None,
    image: str | None,
    text: str,
    date_text: str | None = None,
    floor: str | None = None,
    address: str | None = None,
    description: str | None = None,
) -> Listing | None:
    """Apply the acceptance rule ((title or price) and url) and normalize into a Listing."""
    url = absolute_url(href, site["base_url"])
    price = price or 0
    if not url or not (title or price > 0):
        return None
    return Listing(
        source=site["source"].value,
        title=title or DEFAULT_TITLE,
        price=price,
        rooms=rooms or 0,
        city=city,
        area=area or 0,
        url=url,
        date=parse_listing_date(date_text, now) or now,
        image=sanitize_image_url(image, site["base_url"]),
        floor=floor,
        address=address,
        description=description,
        **detect_amenities(text),
    )


def card_to_listing(card, site: dict, city: str, now: datetime) -> Listing | None:
    text = element_text(card)
    return build_listing(
        site,
        city,
        now,
        title=first_value(site["title_rules"], card, text),
        price=first_value(site["price_rules"], card, text),
        rooms=first_value(site["rooms_rules"], card, text),
        area=first_value(site["area_rules"], card, text),
        href=first_value(site["link_rules"], card, text),
        image=first_value(site["image_rules"], card, text),
        text=text,
        date_text=first_value(site["date_rules"], card, text),
        floor=first_value(site["floor_rules"], card, text),
        address=first_value(site["address_rules"], card, text),
        description=first_value(site["description_rules"], card, text),
    )


def extract_from_cards(soup, site: dict, city: str, now: datetime) -> list[Listing]:
    """Try container selectors in order; the first one whose cards give usable listings wins."""
    name = site["name"]
    found_items = False
    for selector in site["container_selectors"]:
        cards = _cards_for(soup, selector)
        if not cards:
            continue
        found_items = True
        logger.info("[%s] Found %d items with selector: %s", name, len(cards), selector)

        results: list[Listing] = []
        for card in cards:
            if any(cls in (card.get("class") or []) for cls in site["skip_classes"]):
                continue
            try:
                listing = card_to_listing(card, site, city, now)
            except Exception as e:
                logger.debug("[%s] Error parsing item: %s", name, e)
                continue
            if listing is not None:
                results.append(listing)
        if results:
            return results

    if found_items:
        logger.warning("[%s] Found items but couldn't extract data", name)
    else:
        logger.info("[%s] No items found with any selector", name)
    return []


def extract_from_links(soup, site: dict, city: str, now: datetime) -> list[Listing]:
    """Fallback: rebuild listings from links to detail pages and their surrounding containers."""
    name = site["name"]
    links = parse_listing_links(soup, site["base_url"], site["link_pattern"])
    logger.info("[%s] Found %d links to properties, parsing them directly", name, len(links))

    results: list[Listing] = []
    for link, url in links:
        try:
            container = find_container(link)
            text = element_text(container)
            title = element_text(link)
            listing = build_listing(
                site,
                city,
                now,
                title=title,
                price=PRICE_EURO_DOTTED.search(text),
                rooms=first_value(ROOM_PATTERNS, container, text),
                area=first_value(AREA_PATTERNS, container, text),
                href=url,
                image=find_nearby_image(soup, link, container, site),
                text=text,
                floor=first_value(FLOOR_PATTERNS, container, text),
            )
        except Exception as e:
            logger.debug("[%s] Error parsing link %s: %s", name, url, e)
            continue
        if listing is not None:
            results.append(listing)
    return results


def extract_listings(html: str, site: dict, city: str, *, now: datetime | None = None, limit: int = MAX_RESULTS) -> list[Listing]:
    """
    Extract up to `limit` listings from a search-results page.

    Args:
        html: Page HTML (raw or browser-rendered).
        site: Ruleset from scrapers.sites.
        city: City as requested; copied into every listing.
        now: Scrape time, used as listing date when the page shows none.
    """
    now = now or utcnow()
    name = site["name"]
    if not html or not html.strip():
        logger.warning("[%s] Empty page", name)
        return []
    try:
        soup = BeautifulSoup(html, "html.parser")
        results = extract_from_cards(soup, site, city, now)
        if not results:
            results = extract_from_links(soup, site, city, now)
    except Exception:
        logger.exception("[%s] Failed to parse page (HTML length %d)", name, len(html))
        return []
    logger.info("[%s] Found %d results", name, len(results))
    return results[:limit]

