"""Google Places client — venue candidates via text search, one query per category."""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from tripsmith.config import settings
from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.candidate import Candidate, Coordinates, categories_for_interests
from tripsmith.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

CATEGORY_QUERIES = {
    "dining": "best local restaurants",
    "culture": "museums and galleries",
    "attraction": "top attractions and landmarks",
    "nature": "parks and gardens",
    "nightlife": "bars and live music",
    "shopping": "markets and local shops",
}

# Google place type → candidate category, checked in listed order
TYPE_CATEGORIES = {
    "restaurant": "dining",
    "cafe": "dining",
    "bakery": "dining",
    "food": "dining",
    "bar": "nightlife",
    "night_club": "nightlife",
    "museum": "culture",
    "art_gallery": "culture",
    "church": "culture",
    "place_of_worship": "culture",
    "park": "nature",
    "natural_feature": "nature",
    "zoo": "nature",
    "shopping_mall": "shopping",
    "store": "shopping",
    "tourist_attraction": "attraction",
}

# price_level 0-4 → rough per-person cost (USD)
PRICE_LEVEL_COST = {0: 0.0, 1: 15.0, 2: 35.0, 3: 70.0, 4: 120.0}


class GooglePlacesClient:
    """Adapter for the Google Places text search API."""

    name = "google_places"

    def __init__(self):
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.google_places_base_url,
                timeout=15.0,
            )
        return self._client

    async def search(self, criteria: SearchCriteria) -> list[Candidate]:
        """Run one text search per requested category, concurrently."""
        if not settings.google_places_api_key:
            raise ProviderUnavailable(self.name, "API key not configured")

        categories = categories_for_interests(criteria.categories) or list(CATEGORY_QUERIES)
        results = await asyncio.gather(
            *(self._text_search(criteria.destination, cat) for cat in categories),
            return_exceptions=True,
        )

        candidates: list[Candidate] = []
        failures = 0
        for cat, result in zip(categories, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning(f"Places search for {cat} in {criteria.destination} failed: {result}")
                continue
            candidates.extend(result)

        if failures == len(categories):
            raise ProviderError(self.name, f"every category search failed for {criteria.destination}")
        return candidates

    async def _text_search(self, destination: str, category: str) -> list[Candidate]:
        client = await self._get_client()
        try:
            resp = await client.get(
                "/textsearch/json",
                params={
                    "query": f"{CATEGORY_QUERIES[category]} in {destination}",
                    "key": settings.google_places_api_key,
                },
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"textsearch returned {e.response.status_code}")
        except httpx.RequestError as e:
            raise ProviderUnavailable(self.name, f"textsearch unreachable: {e}")

        data = resp.json()
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise ProviderError(self.name, f"textsearch status {status}")

        return [
            c for c in (self._to_candidate(p, destination, category) for p in data.get("results", []))
            if c is not None
        ]

    def _to_candidate(self, place: dict, destination: str, search_category: str) -> Candidate | None:
        if not place.get("name"):
            return None

        types = place.get("types", [])
        category = search_category
        for t in types:
            mapped = TYPE_CATEGORIES.get(t)
            if mapped:
                # Search category wins unless the place type is unambiguous dining/nightlife
                if mapped in ("dining", "nightlife") or search_category == "attraction":
                    category = mapped
                break

        rating = place.get("rating")
        reviews = place.get("user_ratings_total") or 0
        price_level = place.get("price_level")

        location = (place.get("geometry") or {}).get("location") or {}
        try:
            coords = None
            if location.get("lat") is not None and location.get("lng") is not None:
                coords = Coordinates(lat=location["lat"], lng=location["lng"])
            return Candidate(
                name=place["name"].strip(),
                category=category,
                description=self._describe(place, destination, category),
                estimated_cost=PRICE_LEVEL_COST.get(price_level) if price_level is not None else None,
                confidence=self._confidence(rating, reviews),
                source_tags=[self.name],
                coordinates=coords,
                address=place.get("formatted_address") or place.get("vicinity"),
                rating=rating,
            )
        except (TypeError, ValueError, ValidationError) as e:
            logger.debug(f"Dropping malformed place {place.get('name')!r}: {e}")
            return None

    @staticmethod
    def _confidence(rating: float | None, reviews: int) -> float:
        """Blend rating and review volume into a 0-1 confidence."""
        if not rating:
            return 0.4
        volume = min(reviews, 2000) / 2000
        return round(min(1.0, (rating / 5.0) * 0.7 + volume * 0.3), 3)

    @staticmethod
    def _describe(place: dict, destination: str, category: str) -> str:
        rating = f"{place['rating']}/5 stars" if place.get("rating") else "Not yet rated"
        reviews = place.get("user_ratings_total")
        review_text = f" from {reviews} reviews" if reviews else ""
        return f"A popular {category} spot in {destination}. {rating}{review_text}."

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


google_places_client = GooglePlacesClient()
