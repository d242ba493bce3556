"""
Field rules for listing extraction.

A rule is a callable `(card, text) -> value | None`, where `card` is the BeautifulSoup
element of one listing and `text` its whitespace-normalized full text. Sites list rules
per field in priority order (see scrapers/sites.py); the first rule that yields a value wins.

Regex rules over the card text are module-level TextPattern objects so each can be
tested on its own.
"""

import re
from datetime import datetime, timedelta, timezone

from scrapers.content import element_text, image_src


def digits_to_int(text: str | None) -> int:
    digits = re.sub(r"\D", "", text or "")
    return int(digits) if digits else 0


def round_half_up(value: float) -> int:
    return int(value + 0.5)


def _decimal(raw: str) -> float:
    return float(raw.replace(",", "."))


class TextPattern:
    """A named regex applied to free text. search() returns the converted first group or None."""

    def __init__(self, name: str, pattern: str, convert=None, flags: int = 0):
        self.name = name
        self.regex = re.compile(pattern, flags)
        self.convert = convert

    def search(self, text: str | None):
        if not text:
            return None
        match = self.regex.search(text)
        if not match:
            return None
        raw = match.group(1) if match.groups() else match.group(0)
        return self.convert(raw) if self.convert else raw

    def __call__(self, card, text):
        return self.search(text)

    def __repr__(self) -> str:
        return f"TextPattern({self.name!r})"


# ---------- Price ----------

PRICE_EURO_DOTTED = TextPattern(
    "price_euro_dotted",
    r"(?<![\d.,])(\d{1,3}(?:\.\d{3})+|\d+)(?:,\d{1,2})?\s*€",
    digits_to_int,
)
PRICE_EURO_SPACED = TextPattern(
    "price_euro_spaced",
    r"(?<![\d.,])(\d{1,3}(?:\s\d{3})+)(?:,\d{1,2})?\s*€",
    digits_to_int,
)
PRICE_EURO_PREFIX = TextPattern("price_euro_prefix", r"€\s*(\d{1,3}(?:\.\d{3})+|\d+)", digits_to_int)
PRICE_EUR_WORD = TextPattern(
    "price_eur_word",
    r"(?<![\d.,])(\d{1,3}(?:\.\d{3})+|\d+)(?:,\d{1,2})?\s*EUR\b",
    digits_to_int,
)

PRICE_PATTERNS = (PRICE_EURO_DOTTED, PRICE_EURO_SPACED, PRICE_EURO_PREFIX, PRICE_EUR_WORD)


def parse_price(text: str | None) -> int:
    """'1.250,00 €' -> 1250. Falls back to all digits in text when no euro amount is found."""
    for pattern in PRICE_PATTERNS:
        value = pattern.search(text)
        if value:
            return value
    return digits_to_int(text)


# ---------- Rooms / area ----------

ROOMS_ZIMMER = TextPattern(
    "rooms_zimmer", r"(\d+(?:[,.]\d+)?)[\s-]*Zimmer", lambda raw: round_half_up(_decimal(raw)), re.IGNORECASE
)
ROOMS_ZKB = TextPattern("rooms_zkb", r"(\d+(?:[,.]\d+)?)\s*ZKB", lambda raw: round_half_up(_decimal(raw)), re.IGNORECASE)
AREA_SQM = TextPattern("area_sqm", r"(\d+)(?:[,.]\d+)?\s*m²", int, re.IGNORECASE)
AREA_QM = TextPattern("area_qm", r"(\d+)(?:[,.]\d+)?\s*qm\b", int, re.IGNORECASE)

ROOM_PATTERNS = (ROOMS_ZIMMER, ROOMS_ZKB)
AREA_PATTERNS = (AREA_SQM, AREA_QM)


# ---------- Floor ----------

FLOOR_NUMBERED = TextPattern(
    "floor_numbered", r"(\d+)\.\s*(?:OG\b|Obergeschoss|Etage|Stock)", lambda raw: str(int(raw)), re.IGNORECASE
)
FLOOR_GROUND = TextPattern("floor_ground", r"\b(?:EG|Erdgeschoss)\b", lambda raw: "EG")
FLOOR_ATTIC = TextPattern("floor_attic", r"\b(?:Dachgeschoss|DG\b)", lambda raw: "Dachgeschoss")
FLOOR_PENTHOUSE = TextPattern("floor_penthouse", r"\bPenthouse\b", lambda raw: "Penthouse", re.IGNORECASE)

FLOOR_PATTERNS = (FLOOR_NUMBERED, FLOOR_GROUND, FLOOR_ATTIC, FLOOR_PENTHOUSE)


# ---------- Date ----------

ONLINE_SINCE = TextPattern(
    "online_since",
    r"Online:\s*(\d+\s*(?:Minuten?|Stunden?|Tagen?|Tage)|\d{1,2}\.\d{1,2}\.\d{4})",
)
DATE_DOTTED = TextPattern("date_dotted", r"(\d{1,2}\.\d{1,2}\.\d{4})")

_MINUTES_AGO = re.compile(r"(\d+)\s*Minuten?", re.IGNORECASE)
_HOURS_AGO = re.compile(r"(\d+)\s*Stunden?", re.IGNORECASE)
_DAYS_AGO = re.compile(r"(\d+)\s*Tag(?:e|en)?\b", re.IGNORECASE)
_DOTTED_DATE = re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{4})")


def parse_listing_date(text: str | None, now: datetime) -> datetime | None:
    """
    Parse the listing dates German sites show: "Heute, 10:12", "Gestern", "vor 3 Stunden",
    "2 Tagen", "14.03.2024". Returns None when nothing matches.
    """
    if not text:
        return None
    lower = text.lower()
    if "heute" in lower or "today" in lower:
        return now
    if "gestern" in lower or "yesterday" in lower:
        return now - timedelta(days=1)
    if m := _MINUTES_AGO.search(text):
        return now - timedelta(minutes=int(m.group(1)))
    if m := _HOURS_AGO.search(text):
        return now - timedelta(hours=int(m.group(1)))
    if m := _DAYS_AGO.search(text):
        return now - timedelta(days=int(m.group(1)))
    if m := _DOTTED_DATE.search(text):
        day, month, year = (int(g) for g in m.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


# ---------- Amenities ----------

AMENITY_KEYWORDS = {
    "balcony": ("balkon", "terrasse", "loggia"),
    "kitchen": ("einbauküche", "ebk", "küche"),
    "garden": ("garten",),
    "lift": ("aufzug", "fahrstuhl", "lift"),
    "furnished": ("möbliert",),
    "parking": ("stellplatz", "garage", "parkplatz"),
    "pets_allowed": ("haustier",),
    "garage": ("garage",),
    "keller": ("keller",),
}


def detect_amenities(text: str | None) -> dict[str, bool]:
    """Keyword guesses, one flag per amenity. Cheap and noisy: 'kein Balkon' still sets balcony."""
    lower = (text or "").lower()
    return {name: any(word in lower for word in words) for name, words in AMENITY_KEYWORDS.items()}


# ---------- Selector rules ----------


class Select:
    """Text of the first element matching selector, optionally parsed. Skips texts shorter than min_length."""

    def __init__(self, selector: str, parse=None, min_length: int = 1):
        self.selector = selector
        self.parse = parse
        self.min_length = min_length

    def __call__(self, card, text):
        el = card.select_one(self.selector)
        if el is None:
            return None
        value = element_text(el)
        if len(value) < self.min_length:
            return None
        return self.parse(value) if self.parse else value


class SelectAttr:
    """First non-empty attribute (in order) of the first element matching selector."""

    def __init__(self, selector: str, attrs=("href",)):
        self.selector = selector
        self.attrs = attrs

    def __call__(self, card, text):
        el = card.select_one(self.selector)
        if el is None:
            return None
        for attr in self.attrs:
            value = (el.get(attr) or "").strip()
            if value:
                return value
        return None


class SelectImage:
    """Image source (data-src, data-lazy, data-original, src) of the first img matching selector."""

    def __init__(self, selector: str = "img"):
        self.selector = selector

    def __call__(self, card, text):
        img = card.select_one(self.selector)
        return image_src(img) if img is not None else None


class ScopedPattern:
    """Run a TextPattern against the joined text of all elements matching selector."""

    def __init__(self, selector: str, pattern: TextPattern):
        self.selector = selector
        self.pattern = pattern

    def __call__(self, card, text):
        scoped = " ".join(element_text(el) for el in card.select(self.selector))
        return self.pattern.search(scoped)


class AnyLinkText:
    """Text of the first link whose text length is within bounds. Last-resort title rule."""

    def __init__(self, min_length: int = 11, max_length: int = 199):
        self.min_length = min_length
        self.max_length = max_length

    def __call__(self, card, text):
        for a in card.find_all("a"):
            link_text = element_text(a)
            if self.min_length <= len(link_text) <= self.max_length:
                return link_text
        return None


class AnchorHref:
    """href of the first link matching pattern (any link when pattern is None)."""

    def __init__(self, pattern: str | None = None):
        self.regex = re.compile(pattern) if pattern else None

    def __call__(self, card, text):
        for a in card.find_all("a", href=True):
            href = a["href"].strip()
            if href and (self.regex is None or self.regex.search(href)):
                return href
        return None


class SiblingImage:
    """First image found in the card's sibling elements."""

    def __call__(self, card, text):
        for sibling in [*card.find_next_siblings(), *card.find_previous_siblings()]:
            img = sibling if sibling.name == "img" else sibling.find("img")
            src = image_src(img) if img is not None else None
            if src:
                return src
        return None


def first_value(rules, card, text):
    """Evaluate rules in order and return the first truthy value, or None."""
    for rule in rules:
        value = rule(card, text)
        if value:
            return value
    return None
