"""Amadeus API client — adapter for flight offers and hotel offers with OAuth2 and rate limiting."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import ValidationError

from tripsmith.config import settings
from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.candidate import Coordinates, FlightOption, Hotel
from tripsmith.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

CABIN_MAP = {
    "ECONOMY": "economy",
    "PREMIUM_ECONOMY": "premium_economy",
    "BUSINESS": "business",
    "FIRST": "first",
}

AIRLINE_NAMES = {
    "AA": "American Airlines", "DL": "Delta Air Lines", "UA": "United Airlines",
    "B6": "JetBlue Airways", "AC": "Air Canada", "BA": "British Airways",
    "LH": "Lufthansa", "AF": "Air France", "KL": "KLM", "IB": "Iberia",
    "VY": "Vueling", "AZ": "ITA Airways", "LX": "Swiss", "EK": "Emirates",
    "QR": "Qatar Airways", "SQ": "Singapore Airlines", "CX": "Cathay Pacific",
    "NH": "ANA", "JL": "Japan Airlines", "TG": "Thai Airways", "GA": "Garuda Indonesia",
    "QF": "Qantas", "AM": "Aeromexico", "VS": "Virgin Atlantic", "TP": "TAP Air Portugal",
}

# IATA city codes for common destinations; anything else goes through the locations API
CITY_CODES = {
    "paris": "PAR", "tokyo": "TYO", "barcelona": "BCN", "new york": "NYC",
    "london": "LON", "dubai": "DXB", "bali": "DPS", "rome": "ROM",
    "amsterdam": "AMS", "bangkok": "BKK", "sydney": "SYD", "cancun": "CUN",
    "madrid": "MAD", "lisbon": "LIS", "berlin": "BER", "toronto": "YTO",
}


class AmadeusClient:
    """Adapter for Amadeus Self-Service API."""

    name = "amadeus"

    def __init__(self):
        self._token: str | None = None
        self._token_expires: datetime | None = None
        self._semaphore = asyncio.Semaphore(10)  # 10 req/s rate limit
        self._client: httpx.AsyncClient | None = None
        self._city_codes: dict[str, str] = dict(CITY_CODES)

    @property
    def configured(self) -> bool:
        return bool(settings.amadeus_client_id and settings.amadeus_client_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.amadeus_base_url,
                timeout=30.0,
            )
        return self._client

    async def _ensure_token(self):
        """Get or refresh OAuth2 token."""
        if self._token and self._token_expires and datetime.now(timezone.utc) < self._token_expires:
            return

        client = await self._get_client()
        for attempt in range(3):
            try:
                resp = await client.post(
                    "/v1/security/oauth2/token",
                    data={
                        "grant_type": "client_credentials",
                        "client_id": settings.amadeus_client_id,
                        "client_secret": settings.amadeus_client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                resp.raise_for_status()
                data = resp.json()
                self._token = data["access_token"]
                self._token_expires = datetime.now(timezone.utc) + timedelta(
                    seconds=data.get("expires_in", 1799) - 60
                )
                logger.info("Amadeus token refreshed")
                return
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429 and attempt < 2:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise ProviderUnavailable(self.name, f"token request failed: {e.response.status_code}")
            except httpx.RequestError as e:
                if attempt < 2:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise ProviderUnavailable(self.name, f"token request error: {e}")

    async def _get(self, path: str, params: dict) -> dict:
        """Authorized GET with retry on 429 and transport errors."""
        if not self.configured:
            raise ProviderUnavailable(self.name, "credentials not configured")

        async with self._semaphore:
            await self._ensure_token()
            client = await self._get_client()

            for attempt in range(3):
                try:
                    resp = await client.get(
                        path,
                        params=params,
                        headers={"Authorization": f"Bearer {self._token}"},
                    )
                    if resp.status_code == 429 and attempt < 2:
                        await asyncio.sleep(2 ** attempt)
                        continue
                    resp.raise_for_status()
                    return resp.json()
                except httpx.HTTPStatusError as e:
                    logger.error(f"Amadeus {path} error: {e.response.status_code}")
                    raise ProviderError(self.name, f"{path} returned {e.response.status_code}")
                except httpx.RequestError as e:
                    logger.error(f"Amadeus request error: {e}")
                    if attempt == 2:
                        raise ProviderUnavailable(self.name, f"{path} unreachable: {e}")
                    await asyncio.sleep(2 ** attempt)

        raise ProviderError(self.name, f"{path} rate limited")

    async def resolve_city_code(self, destination: str) -> str:
        """Map a destination name to an IATA city code."""
        raw = destination.strip()
        if len(raw) == 3 and raw.isalpha():
            return raw.upper()

        lowered = raw.lower()
        for city, code in self._city_codes.items():
            if city in lowered:
                return code

        data = await self._get(
            "/v1/reference-data/locations",
            {"subType": "CITY", "keyword": raw.split(",")[0][:30], "page[limit]": 1},
        )
        locations = data.get("data", [])
        if not locations or not locations[0].get("iataCode"):
            raise ProviderError(self.name, f"no city code for {destination!r}")
        code = locations[0]["iataCode"]
        self._city_codes[lowered] = code
        return code

    # --- Flights ---

    async def search_flight_offers(self, criteria: SearchCriteria, max_results: int = 20) -> list[FlightOption]:
        """Round-trip offers for the whole party, origin → destination."""
        if not criteria.origin:
            raise ProviderError(self.name, "flight search needs an origin")

        origin = await self.resolve_city_code(criteria.origin)
        destination = await self.resolve_city_code(criteria.destination)
        data = await self._get(
            "/v2/shopping/flight-offers",
            {
                "originLocationCode": origin,
                "destinationLocationCode": destination,
                "departureDate": criteria.start_date.isoformat(),
                "returnDate": criteria.end_date.isoformat(),
                "adults": criteria.traveler_count,
                "max": max_results,
                "currencyCode": "USD",
            },
        )

        offers = []
        for raw in data.get("data", []):
            offer = self._parse_offer(raw)
            if offer is not None:
                offers.append(offer)
        return sorted(offers, key=lambda o: o.price)

    def _parse_offer(self, offer: dict) -> FlightOption | None:
        """Parse an Amadeus offer into a FlightOption; None if malformed."""
        itineraries = offer.get("itineraries") or [{}]
        itin = itineraries[0]
        segments = itin.get("segments", [])
        if not segments:
            return None

        first_seg = segments[0]
        last_seg = segments[-1]

        cabin = "economy"
        traveler_pricings = offer.get("travelerPricings", [])
        if traveler_pricings:
            fare_details = traveler_pricings[0].get("fareDetailsBySegment", [])
            if fare_details:
                cabin = CABIN_MAP.get(fare_details[0].get("cabin", "ECONOMY"), "economy")

        airline_code = first_seg.get("carrierCode", "")
        try:
            return FlightOption(
                airline_code=airline_code,
                airline_name=AIRLINE_NAMES.get(airline_code, airline_code),
                flight_numbers=", ".join(
                    f"{s.get('carrierCode', '')}{s.get('number', '')}" for s in segments
                ),
                origin_airport=first_seg["departure"]["iataCode"],
                destination_airport=last_seg["arrival"]["iataCode"],
                departure_time=first_seg["departure"].get("at"),
                arrival_time=last_seg["arrival"].get("at"),
                duration_minutes=self._parse_duration(itin.get("duration", "")),
                stops=len(segments) - 1,
                price=float(offer.get("price", {}).get("grandTotal", 0)),
                currency=offer.get("price", {}).get("currency", "USD"),
                cabin_class=cabin,
                source=self.name,
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.debug(f"Dropping malformed Amadeus offer: {e}")
            return None

    @staticmethod
    def _parse_duration(duration_str: str) -> int:
        """Parse ISO 8601 duration (PT2H30M) to minutes."""
        if not duration_str or not duration_str.startswith("PT"):
            return 0
        duration_str = duration_str[2:]
        hours = 0
        minutes = 0
        if "H" in duration_str:
            h_part, duration_str = duration_str.split("H")
            hours = int(h_part)
        if "M" in duration_str:
            m_part = duration_str.replace("M", "")
            if m_part:
                minutes = int(m_part)
        return hours * 60 + minutes

    # --- Hotels ---

    async def search_hotel_offers(self, criteria: SearchCriteria, max_hotels: int = 20) -> list[Hotel]:
        """City hotel list, then priced offers for the first ``max_hotels``."""
        city_code = await self.resolve_city_code(criteria.destination)
        listing = await self._get(
            "/v1/reference-data/locations/hotels/by-city",
            {"cityCode": city_code, "radius": 20, "radiusUnit": "KM"},
        )
        hotel_ids = [h["hotelId"] for h in listing.get("data", []) if h.get("hotelId")][:max_hotels]
        if not hotel_ids:
            return []

        data = await self._get(
            "/v3/shopping/hotel-offers",
            {
                "hotelIds": ",".join(hotel_ids),
                "checkInDate": criteria.start_date.isoformat(),
                "checkOutDate": criteria.end_date.isoformat(),
                "adults": criteria.traveler_count,
                "roomQuantity": 1,
                "currency": "USD",
            },
        )

        hotels = []
        for raw in data.get("data", []):
            hotel = self._parse_hotel(raw, criteria.nights)
            if hotel is None:
                continue
            if criteria.max_nightly_rate and hotel.nightly_rate > criteria.max_nightly_rate:
                continue
            hotels.append(hotel)
        return sorted(hotels, key=lambda h: h.nightly_rate)

    def _parse_hotel(self, raw: dict, nights: int) -> Hotel | None:
        info = raw.get("hotel", {})
        offers = raw.get("offers") or []
        if not info.get("name") or not offers:
            return None

        offer = offers[0]
        try:
            total = float(offer.get("price", {}).get("total", 0))
            coords = None
            if info.get("latitude") is not None and info.get("longitude") is not None:
                coords = Coordinates(lat=info["latitude"], lng=info["longitude"])
            return Hotel(
                hotel_name=info["name"].title(),
                hotel_chain=info.get("chainCode"),
                star_rating=float(info["rating"]) if info.get("rating") else None,
                coordinates=coords,
                nightly_rate=round(total / max(1, nights), 2),
                total_rate=round(total, 2),
                currency=offer.get("price", {}).get("currency", "USD"),
                room_type=(offer.get("room", {}).get("typeEstimated") or {}).get("category"),
                amenities=info.get("amenities", [])[:8],
                source=self.name,
            )
        except (TypeError, ValueError, ValidationError) as e:
            logger.debug(f"Dropping malformed Amadeus hotel: {e}")
            return None

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


class AmadeusFlights:
    """Flight-chain backend over the shared Amadeus client."""

    name = "amadeus"

    def __init__(self, client: AmadeusClient):
        self._client = client

    async def search(self, criteria: SearchCriteria) -> list[FlightOption]:
        return await self._client.search_flight_offers(criteria)


class AmadeusHotels:
    """Hotel-chain backend over the shared Amadeus client."""

    name = "amadeus"

    def __init__(self, client: AmadeusClient):
        self._client = client

    async def search(self, criteria: SearchCriteria) -> list[Hotel]:
        return await self._client.search_hotel_offers(criteria)


amadeus_client = AmadeusClient()
