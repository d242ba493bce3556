"""
Supported listing websites, each described as a declarative extraction ruleset.

Each site: id, source, name, base_url, render (needs a headless browser), container_selectors,
skip_classes, per-field rule lists (title, price, rooms, area, link, image, date, floor, address,
description), link_pattern / id_pattern for the link fallback. Rules run in order; first value wins.
When a site changes its markup, update the selectors here.
"""

from models import Source
from scrapers.rules import (
    AREA_PATTERNS,
    DATE_DOTTED,
    FLOOR_PATTERNS,
    ONLINE_SINCE,
    PRICE_EURO_DOTTED,
    PRICE_PATTERNS,
    ROOM_PATTERNS,
    AnchorHref,
    AnyLinkText,
    ScopedPattern,
    Select,
    SelectAttr,
    SelectImage,
    SiblingImage,
    parse_price,
)

IMMOWELT = {
    "id": "immowelt",
    "source": Source.IMMOWELT,
    "name": "Immowelt",
    "base_url": "https://www.immowelt.de",
    "render": False,
    "container_selectors": [
        "[data-estate-id]",
        ".EstateItem-1c115",
        ".estate-item",
        "article[data-estate-id]",
        ".estate",
        '[class*="EstateItem"]',
        '[class*="estate"]',
        "div[data-estate-id]",
        'a[href*="/immobilie/"]',
    ],
    "skip_classes": (),
    "title_rules": [
        *(
            Select(sel, min_length=6)
            for sel in (
                "h2 a",
                "h3 a",
                "h2",
                "h3",
                '[data-qa="estate-title"]',
                ".estate-title a",
                ".estate-title",
                'a[href*="/immobilie/"]',
                '[class*="title"]',
            )
        ),
        AnyLinkText(),
    ],
    "price_rules": [
        *PRICE_PATTERNS,
        *(Select(sel, parse=parse_price) for sel in ('[class*="price"]', '[class*="Price"]', "[data-price]", ".key-facts")),
    ],
    "rooms_rules": [*ROOM_PATTERNS],
    "area_rules": [*AREA_PATTERNS],
    "link_rules": [
        *(SelectAttr(sel) for sel in ('a[href*="/immobilie/"]', 'a[href*="/expose/"]', "h2 a", "h3 a", ".estate-title a")),
        AnchorHref(r"/(?:immobilie|expose)/"),
    ],
    "image_rules": [
        *(
            SelectImage(sel)
            for sel in (
                "img[data-src]",
                "img[data-lazy]",
                "img[data-original]",
                "picture img",
                '[class*="image"] img',
                '[class*="Image"] img',
                "img[src]",
            )
        ),
        SiblingImage(),
    ],
    "date_rules": [],
    "floor_rules": [*FLOOR_PATTERNS],
    "address_rules": [Select('[data-qa="estate-location"]'), Select('[class*="location"]')],
    "description_rules": [],
    "link_pattern": r"/(?:immobilie|expose)/",
    "id_pattern": r"/(?:immobilie|expose)/([\w-]+)",
}

KLEINANZEIGEN = {
    "id": "kleinanzeigen",
    "source": Source.KLEINANZEIGEN,
    "name": "Kleinanzeigen",
    "base_url": "https://www.kleinanzeigen.de",
    "render": False,
    "container_selectors": [
        "[data-adid]",
        ".ad-listitem",
        "article[data-adid]",
        ".aditem",
        '[id^="ad-"]',
    ],
    "skip_classes": (),
    "title_rules": [
        *(
            Select(sel)
            for sel in (
                ".aditem-main h2 a",
                "h2 a",
                "h3 a",
                ".ellipsis a",
                'a[href*="/s-anzeige/"]',
                ".aditem-main--top--left a",
                '[class*="title"] a',
            )
        ),
        AnyLinkText(),
    ],
    "price_rules": [
        *(
            Select(sel, parse=parse_price)
            for sel in (".aditem-main .aditem-price", ".aditem-price", ".aditem-details strong", '[class*="price"]')
        ),
        PRICE_EURO_DOTTED,
    ],
    "rooms_rules": [*ROOM_PATTERNS],
    "area_rules": [*AREA_PATTERNS],
    "link_rules": [
        *(SelectAttr(sel) for sel in ('a[href*="/s-anzeige/"]', 'a[href*="/anzeige/"]', ".aditem-main a", "h2 a", "h3 a")),
        AnchorHref(),
    ],
    "image_rules": [
        SelectAttr("img[data-src]", ("data-src",)),
        SelectAttr("img[data-lazy]", ("data-lazy",)),
        SelectAttr("img", ("src",)),
        SelectAttr("[data-imgsrc]", ("data-imgsrc",)),
    ],
    "date_rules": [Select(".aditem-main--top--right"), DATE_DOTTED],
    "floor_rules": [*FLOOR_PATTERNS],
    "address_rules": [Select(".aditem-main--top--left")],
    "description_rules": [Select(".aditem-main--middle--description")],
    "link_pattern": r"/s-anzeige/",
    "id_pattern": r"/s-anzeige/[^/]+/(\d+)",
}

WG_GESUCHT = {
    "id": "wgGesucht",
    "source": Source.WG_GESUCHT,
    "name": "WG-Gesucht",
    "base_url": "https://www.wg-gesucht.de",
    "render": True,
    "container_selectors": [".offer_list_item"],
    "skip_classes": ("display-none",),
    "title_rules": [
        Select("h3 a"),
        Select(".truncate_title a"),
        Select(".list-details-link"),
        Select("h3"),
        Select(".truncate_title"),
    ],
    "price_rules": [
        *(Select(sel, parse=parse_price) for sel in (".detailansicht b", ".col-xs-3 b", "[data-price]", ".middle b")),
        *PRICE_PATTERNS,
    ],
    "rooms_rules": [
        *(ScopedPattern(".detail_size, .col-xs-3", pattern) for pattern in ROOM_PATTERNS),
        *ROOM_PATTERNS,
    ],
    "area_rules": [
        *(ScopedPattern(".detail_size, .col-xs-3", pattern) for pattern in AREA_PATTERNS),
        *AREA_PATTERNS,
    ],
    "link_rules": [
        SelectAttr("a.detailansicht"),
        SelectAttr("a.list-details-link"),
        AnchorHref(r"-in-[^/]+\.\d+\.html"),
    ],
    "image_rules": [
        SelectAttr(".card_image img", ("src", "data-src")),
        SelectAttr(".card_image a", ("style",)),
    ],
    "date_rules": [ONLINE_SINCE],
    "floor_rules": [*FLOOR_PATTERNS],
    "address_rules": [Select(".col-xs-11 span")],
    "description_rules": [],
    "link_pattern": r"/(?:wohnungen|wg-zimmer|1-zimmer-wohnungen|haeuser)-in-[^/]+\.\d{4,}\.html",
    "id_pattern": r"\.(\d{4,})\.html",
}

SITES = [IMMOWELT, KLEINANZEIGEN, WG_GESUCHT]

SITES_BY_ID = {site["id"]: site for site in SITES}
