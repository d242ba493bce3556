"""
City name -> URL slug, and city name -> WG-Gesucht numeric city id.
"""

import logging
import re

logger = logging.getLogger(__name__)

# English (and other) exonyms that do not transliterate to the German slug.
CITY_SLUG_EXCEPTIONS = {
    "munich": "muenchen",
    "cologne": "koeln",
    "nuremberg": "nuernberg",
    "hanover": "hannover",
    "vienna": "wien",
    "zurich": "zuerich",
    "geneva": "genf",
    "prague": "prag",
}

UMLAUTS = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}

# City ids used in WG-Gesucht search URLs. Several spellings per city.
WG_CITY_IDS = {
    "Aachen": "1",
    "Augsburg": "2",
    "Berlin": "8",
    "Bielefeld": "10",
    "Bochum": "11",
    "Bonn": "13",
    "Bremen": "14",
    "Braunschweig": "15",
    "Chemnitz": "20",
    "Darmstadt": "24",
    "Dresden": "27",
    "Duisburg": "29",
    "Dortmund": "33",
    "Düsseldorf": "38",
    "Duesseldorf": "38",
    "Erfurt": "39",
    "Essen": "40",
    "Frankfurt": "41",
    "Frankfurt am Main": "41",
    "Freiburg": "43",
    "Freiburg im Breisgau": "43",
    "Gelsenkirchen": "46",
    "Halle": "53",
    "Hamburg": "55",
    "Hannover": "57",
    "Hanover": "57",
    "Heidelberg": "59",
    "Karlsruhe": "68",
    "Kassel": "69",
    "Kiel": "71",
    "Köln": "73",
    "Koeln": "73",
    "Cologne": "73",
    "Leverkusen": "76",
    "Leipzig": "77",
    "Lübeck": "78",
    "Magdeburg": "79",
    "Mainz": "80",
    "Mannheim": "81",
    "München": "90",
    "Muenchen": "90",
    "Munich": "90",
    "Münster": "91",
    "Muenster": "91",
    "Nürnberg": "96",
    "Nuernberg": "96",
    "Nuremberg": "96",
    "Oberhausen": "98",
    "Oldenburg": "100",
    "Osnabrück": "102",
    "Paderborn": "103",
    "Potsdam": "107",
    "Regensburg": "109",
    "Rostock": "113",
    "Saarbrücken": "116",
    "Stuttgart": "124",
    "Trier": "126",
    "Wiesbaden": "136",
    "Würzburg": "141",
    "Wuerzburg": "141",
}


def transliterate(text: str) -> str:
    """Replace German umlauts and ß with their ASCII spellings (ä -> ae, ß -> ss)."""
    for char, replacement in UMLAUTS.items():
        text = text.replace(char, replacement)
    return text


def normalize_city_name(city: str) -> str:
    """
    Turn a free-text city name into the slug used in search URLs.

    "Munich" -> "muenchen", "Frankfurt am Main" -> "frankfurt-am-main".
    Unknown cities pass through transliterated; never raises.
    """
    normalized = city.strip().lower()
    if normalized in CITY_SLUG_EXCEPTIONS:
        return CITY_SLUG_EXCEPTIONS[normalized]
    normalized = transliterate(normalized)
    return re.sub(r"\s+", "-", normalized)


def _city_key(city: str) -> str:
    return re.sub(r"\s+", "-", transliterate(city.strip().lower()))


_WG_CITY_IDS_BY_KEY = {_city_key(name): city_id for name, city_id in WG_CITY_IDS.items()}


def get_wg_city_id(city: str) -> str | None:
    """
    Resolve the WG-Gesucht city id. Lookup ignores case and umlaut spelling
    (München == Muenchen == MÜNCHEN). A purely numeric input is taken as an id.
    Returns None for unknown cities; the caller then searches without an id.
    """
    key = _city_key(city)
    if key in _WG_CITY_IDS_BY_KEY:
        return _WG_CITY_IDS_BY_KEY[key]
    if re.fullmatch(r"\d+", city.strip()):
        return city.strip()
    logger.warning("WG-Gesucht city id not found for %r; add it to WG_CITY_IDS or pass the id directly", city)
    return None
