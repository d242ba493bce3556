"""
Link fallback: when no listing card selector works (usually after a site redesign), find every
link to a detail page and rebuild each listing from the nearest enclosing container.
Less precise than the card rules, but survives markup changes.
"""

import logging
import re

from scrapers.content import absolute_url, element_text, image_src, sanitize_image_url

logger = logging.getLogger(__name__)

CONTAINER_HINTS = (
    'div[class*="estate"], div[class*="Estate"], article, li, section, div[class*="item"]',
    "div, article, li, section",
)
MIN_CONTAINER_TEXT = 50
MAX_FALLBACK_LINKS = 20


def parse_listing_links(soup, base_url: str, link_pattern: str, limit: int = MAX_FALLBACK_LINKS) -> list:
    """
    Find all <a href> matching link_pattern. Returns (anchor, absolute_url) pairs, deduped by url,
    at most `limit`.
    """
    pattern = re.compile(link_pattern)
    seen: set[str] = set()
    out = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not pattern.search(href):
            continue
        full = absolute_url(href, base_url)
        if not full or full in seen:
            continue
        seen.add(full)
        out.append((a, full))
        if len(out) >= limit:
            break
    return out


def find_container(link):
    """Nearest ancestor that looks like a listing card; widened once when it holds too little text."""
    ancestors = [parent for parent in link.parents if parent.name != "[document]"]
    container = None
    for hint in CONTAINER_HINTS:
        container = next((parent for parent in ancestors if parent.css.match(hint)), None)
        if container is not None:
            break
    if container is None:
        container = link.parent
    widened = container.parent
    if len(element_text(container)) < MIN_CONTAINER_TEXT and widened is not None and widened.name != "[document]":
        container = widened
    return container


def _first_image(scope, base_url: str) -> str | None:
    if scope is None:
        return None
    for img in scope.find_all("img"):
        image = sanitize_image_url(image_src(img), base_url)
        if image:
            return image
    return None


def find_nearby_image(soup, link, container, site: dict) -> str | None:
    """
    Look for an image in widening circles: the container, its parent, the link's siblings,
    then an element carrying the listing id (data-estate-id / data-id).
    """
    base_url = site["base_url"]
    parent = container.parent if container.parent is not None and container.parent.name != "[document]" else None
    for scope in (container, parent):
        image = _first_image(scope, base_url)
        if image:
            return image

    if link.parent is not None:
        for sibling in [*link.parent.find_next_siblings(), *link.parent.find_previous_siblings()]:
            image = _first_image(sibling, base_url)
            if image:
                return image

    id_match = re.search(site["id_pattern"], link.get("href", "")) if site.get("id_pattern") else None
    if id_match:
        listing_id = id_match.group(1)
        for el in soup.find_all(attrs={"data-estate-id": listing_id}) + soup.find_all(attrs={"data-id": listing_id}):
            image = _first_image(el, base_url)
            if image:
                return image
    return None
