"""Hotels.com client — RapidAPI adapter used as the secondary hotel source."""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from tripsmith.config import settings
from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.candidate import Coordinates, Hotel
from tripsmith.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)


class HotelsComClient:
    """Adapter for the Hotels.com RapidAPI feed."""

    name = "hotels_com"

    def __init__(self):
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.hotels_com_base_url,
                timeout=20.0,
                headers={
                    "X-RapidAPI-Key": settings.rapidapi_key,
                    "X-RapidAPI-Host": settings.hotels_com_host,
                },
            )
        return self._client

    async def _get(self, path: str, params: dict) -> dict:
        client = await self._get_client()
        for attempt in range(3):
            try:
                resp = await client.get(path, params=params)
                if resp.status_code == 429 and attempt < 2:
                    await asyncio.sleep(2 ** attempt)
                    continue
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                raise ProviderError(self.name, f"{path} returned {e.response.status_code}")
            except httpx.RequestError as e:
                if attempt == 2:
                    raise ProviderUnavailable(self.name, f"{path} unreachable: {e}")
                await asyncio.sleep(2 ** attempt)
        raise ProviderError(self.name, f"{path} rate limited")

    async def search(self, criteria: SearchCriteria) -> list[Hotel]:
        if not settings.rapidapi_key:
            raise ProviderUnavailable(self.name, "RapidAPI key not configured")

        destination_id = await self._destination_id(criteria.destination)
        data = await self._get(
            "/search",
            {
                "destinationId": destination_id,
                "checkIn": criteria.start_date.isoformat(),
                "checkOut": criteria.end_date.isoformat(),
                "adults": criteria.traveler_count,
                "rooms": 1,
                "locale": "en_US",
                "currency": "USD",
            },
        )
        results = (
            (data.get("data") or {}).get("body", {}).get("searchResults", {}).get("results", [])
        )

        hotels = []
        for raw in results[:15]:
            hotel = self._transform(raw, criteria.nights)
            if hotel is None:
                continue
            if criteria.max_nightly_rate and hotel.nightly_rate > criteria.max_nightly_rate:
                continue
            hotels.append(hotel)
        return sorted(hotels, key=lambda h: h.nightly_rate)

    async def _destination_id(self, destination: str) -> str:
        """Resolve a destination id via the suggest endpoint, preferring CITY entries."""
        data = await self._get("/suggest", {"query": destination, "locale": "en_US"})
        entries = data.get("data") or []
        if data.get("result") != "OK" or not entries:
            raise ProviderError(self.name, f"no destination id for {destination!r}")
        match = next((e for e in entries if e.get("type") == "CITY"), entries[0])
        dest_id = match.get("destinationId") or match.get("hotelId")
        if not dest_id:
            raise ProviderError(self.name, f"no destination id for {destination!r}")
        return str(dest_id)

    def _transform(self, raw: dict, nights: int) -> Hotel | None:
        price = (raw.get("ratePlan") or {}).get("price") or {}
        nightly = price.get("exactCurrent") or price.get("current")
        if not raw.get("name") or nightly is None:
            return None

        try:
            if isinstance(nightly, str):
                nightly = float(nightly.replace("$", "").replace(",", ""))
            coord = raw.get("coordinate") or {}
            coords = None
            if coord.get("lat") is not None and coord.get("lon") is not None:
                coords = Coordinates(lat=coord["lat"], lng=coord["lon"])
            return Hotel(
                hotel_name=raw["name"],
                star_rating=raw.get("starRating"),
                user_rating=(raw.get("guestReviews") or {}).get("rating"),
                address=self._format_address(raw.get("address")),
                coordinates=coords,
                nightly_rate=round(float(nightly), 2),
                total_rate=round(float(nightly) * nights, 2),
                currency=(price.get("info") or {}).get("currency", "USD"),
                source=self.name,
            )
        except (TypeError, ValueError, ValidationError) as e:
            logger.debug(f"Dropping malformed Hotels.com result: {e}")
            return None

    @staticmethod
    def _format_address(address: dict | None) -> str | None:
        if not address:
            return None
        parts = [
            address.get(k)
            for k in ("streetAddress", "locality", "region", "countryName")
            if address.get(k)
        ]
        return ", ".join(parts) or None

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


hotels_com_client = HotelsComClient()
