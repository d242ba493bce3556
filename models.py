"""
Listing record and search filters shared by scrapers, the aggregator and the API.
JSON uses camelCase keys (petsAllowed, minPrice, ...); Python code uses snake_case.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


AMENITIES = (
    "furnished",
    "pets_allowed",
    "balcony",
    "parking",
    "kitchen",
    "garden",
    "lift",
    "garage",
    "keller",
)


class Source(str, Enum):
    IMMOWELT = "Immowelt"
    KLEINANZEIGEN = "Kleinanzeigen"
    WG_GESUCHT = "WG-Gesucht"


class SortOrder(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"
    AREA_ASC = "areaAsc"
    AREA_DESC = "areaDesc"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Listing(BaseModel):
    """One normalized rental listing. price/rooms/area use 0 for "not parsed"."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: str
    title: str
    price: int = Field(default=0, ge=0, description="Monthly rent in EUR")
    rooms: int = Field(default=0, ge=0)
    city: str
    area: int = Field(default=0, ge=0, description="Living space in m²")

    furnished: bool = False
    pets_allowed: bool = False
    balcony: bool = False
    parking: bool = False
    kitchen: bool = False
    garden: bool = False
    lift: bool = False
    garage: bool = False
    keller: bool = False

    url: str = Field(min_length=1, description="Absolute listing URL, unique per listing")
    date: datetime = Field(default_factory=utcnow)
    image: str | None = None

    address: str | None = None
    description: str | None = None
    floor: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None


class ListingFilters(BaseModel):
    """Sparse search criteria. None / False means "no constraint"."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    city: str = "Berlin"
    min_price: int | None = None
    max_price: int | None = None
    rooms: int | None = Field(default=None, description="Minimum room count")
    max_rooms: int | None = None
    min_area: int | None = None
    max_area: int | None = None
    bedrooms: int | None = Field(default=None, description="Minimum bedrooms")
    bathrooms: int | None = Field(default=None, description="Minimum bathrooms")
    floor: str | None = None
    sort: SortOrder = SortOrder.NEWEST

    furnished: bool = False
    pets_allowed: bool = False
    balcony: bool = False
    parking: bool = False
    kitchen: bool = False
    garden: bool = False
    lift: bool = False
    garage: bool = False
    keller: bool = False

    sources: list[Source] | None = Field(default=None, description="Allow-list; None means all sources")
