"""Candidate, hotel and flight schemas produced by provider adapters."""

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field

Category = Literal["dining", "culture", "attraction", "nature", "nightlife", "shopping"]
CATEGORIES: tuple[str, ...] = get_args(Category)


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Enrichment(BaseModel):
    highlights: list[str] = []
    best_time: str | None = None
    insider_tip: str | None = None


class Candidate(BaseModel):
    """A venue or activity that may be scheduled into a day plan."""
    name: str = Field(min_length=1)
    category: Category
    description: str = ""
    estimated_cost: float | None = Field(None, ge=0)
    confidence: float = Field(0.5, ge=0, le=1)
    mention_count: int = Field(0, ge=0)
    source_tags: list[str] = []
    coordinates: Coordinates | None = None
    address: str | None = None
    rating: float | None = None
    enrichment: Enrichment | None = None


class Hotel(BaseModel):
    hotel_name: str = Field(min_length=1)
    hotel_chain: str | None = None
    star_rating: float | None = None
    user_rating: float | None = None
    address: str | None = None
    coordinates: Coordinates | None = None
    nightly_rate: float = Field(ge=0)
    total_rate: float = Field(ge=0)
    currency: str = "USD"
    room_type: str | None = None
    amenities: list[str] = []
    source: str


class FlightOption(BaseModel):
    airline_code: str
    airline_name: str
    flight_numbers: str
    origin_airport: str
    destination_airport: str
    departure_time: datetime | None = None
    arrival_time: datetime | None = None
    duration_minutes: int = 0
    stops: int = 0
    price: float = Field(ge=0)
    currency: str = "USD"
    cabin_class: str = "economy"
    source: str


# Interest tags a traveler picks → candidate categories they map onto
INTEREST_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "food": ("dining",),
    "dining": ("dining",),
    "culture": ("culture", "attraction"),
    "history": ("culture", "attraction"),
    "art": ("culture",),
    "adventure": ("nature", "attraction"),
    "nature": ("nature",),
    "outdoors": ("nature",),
    "relaxation": ("nature", "attraction"),
    "nightlife": ("nightlife",),
    "shopping": ("shopping",),
    "sightseeing": ("attraction",),
    "attraction": ("attraction",),
}


def categories_for_interests(interests) -> list[str]:
    """Ordered, de-duplicated categories for a set of interest tags."""
    seen: list[str] = []
    for tag in interests:
        for cat in INTEREST_CATEGORY_MAP.get(tag.lower(), ()):
            if cat not in seen:
                seen.append(cat)
    return seen
