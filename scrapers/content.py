"""
Text and URL helpers for scraped markup: normalized element text, image sources, absolute URLs.
"""

import re
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

IMAGE_ATTRS = ("data-src", "data-lazy", "data-original", "src")
PLACEHOLDER_MARKERS = ("placeholder", "logo", "icon")


def element_text(el) -> str:
    """Plain text of an element with whitespace runs collapsed to single spaces."""
    if el is None:
        return ""
    text = el.get_text(separator=" ", strip=True)
    return re.sub(r"\s+", " ", text).strip()


def page_title(html: str | None) -> str | None:
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    return soup.title.get_text(strip=True) if soup.title else None


def image_src(img) -> str | None:
    """Lazy-load attributes first, then src."""
    for attr in IMAGE_ATTRS:
        value = (img.get(attr) or "").strip()
        if value:
            return value
    return None


def absolute_url(href: str | None, base_url: str) -> str | None:
    """Resolve href against the site origin. Returns None for empty, anchor or javascript: links."""
    href = (href or "").strip()
    if not href or href.startswith("#") or href.startswith("javascript:"):
        return None
    full = urljoin(base_url.rstrip("/") + "/", href)
    if not full.startswith(("http://", "https://")):
        return None
    return full


def sanitize_image_url(src: str | None, base_url: str) -> str | None:
    """
    Clean an image URL taken from markup or inline CSS: strip quotes/parens,
    add https: to protocol-relative URLs, resolve paths. Placeholder, logo and icon file names give None.
    """
    if not src:
        return None
    s = src.strip()
    if m := re.search(r"url\((.*?)\)", s):
        s = m.group(1)
    s = re.sub(r"""[)'" ]+$""", "", s)
    s = re.sub(r"""^[('" ]+""", "", s)
    if not s or s.startswith("data:"):
        return None
    file_name = urlparse(s).path.rsplit("/", 1)[-1].lower()
    if any(marker in file_name for marker in PLACEHOLDER_MARKERS):
        return None
    if s.startswith("//"):
        return f"https:{s}"
    return absolute_url(s, base_url)
