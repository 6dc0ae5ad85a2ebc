"""Static datasets — deterministic hotel and flight estimates used when every live source fails."""

import hashlib
import logging
import random
from datetime import datetime, timedelta, timezone

from tripsmith.schemas.candidate import FlightOption, Hotel
from tripsmith.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

HOTEL_CHAINS = [
    ("Marriott", ["Courtyard by Marriott", "Residence Inn", "Marriott Downtown"]),
    ("Hilton", ["Hilton Garden Inn", "Hampton Inn", "DoubleTree by Hilton"]),
    ("IHG", ["Holiday Inn Express", "Crowne Plaza", "InterContinental"]),
    ("Accor", ["Ibis Styles", "Novotel", "Mercure", "Pullman"]),
    ("Hyatt", ["Hyatt Place", "Hyatt Regency"]),
    ("Independent", ["City Center Hotel", "The Old Town Inn", "Urban Suites", "Park View Hotel"]),
]

NEIGHBORHOODS = [
    "Old Town", "City Center", "Waterfront", "Arts District",
    "Station Quarter", "Riverside", "Market District",
]

AMENITIES = ["wifi", "breakfast", "air_conditioning", "gym", "pool", "restaurant", "spa", "airport_shuttle"]

# Round-trip economy fare per traveler when no live search succeeds
STATIC_ROUND_TRIP_FARE = 648.0


def _rng(*parts: str) -> random.Random:
    seed_str = "_".join(parts)
    seed = int(hashlib.md5(seed_str.encode()).hexdigest()[:8], 16)
    return random.Random(seed)


def _estimate_base_rate(city: str) -> float:
    """Rough base nightly rate by city (USD)."""
    city_lower = city.lower()
    expensive = ["new york", "london", "tokyo", "paris", "dubai", "sydney", "amsterdam"]
    moderate = ["barcelona", "rome", "madrid", "lisbon", "berlin", "cancun"]
    budget = ["bali", "bangkok", "hanoi", "mexico city", "marrakech"]

    if any(c in city_lower for c in expensive):
        return 240
    if any(c in city_lower for c in moderate):
        return 170
    if any(c in city_lower for c in budget):
        return 80
    return 150


class StaticHotels:
    """Hotel chain fallback; same criteria always yields the same list."""

    name = "static_hotels"

    async def search(self, criteria: SearchCriteria) -> list[Hotel]:
        city = criteria.destination
        rng = _rng("hotel", city.lower(), criteria.start_date.isoformat(), criteria.end_date.isoformat())
        base_rate = _estimate_base_rate(city)
        nights = criteria.nights

        hotels = []
        used_names: set[str] = set()
        for _ in range(rng.randint(6, 10)):
            chain_name, hotel_names = rng.choice(HOTEL_CHAINS)
            hotel_name = f"{rng.choice(hotel_names)} {city}"
            if hotel_name in used_names:
                continue
            used_names.add(hotel_name)

            star = rng.choice([3.0, 3.5, 4.0, 4.5, 5.0])
            star_multiplier = {3.0: 0.7, 3.5: 0.85, 4.0: 1.0, 4.5: 1.25, 5.0: 1.6}[star]
            nightly = round(base_rate * star_multiplier * rng.uniform(0.85, 1.25), 2)
            if criteria.max_nightly_rate and nightly > criteria.max_nightly_rate:
                continue

            hotels.append(Hotel(
                hotel_name=hotel_name,
                hotel_chain=chain_name if chain_name != "Independent" else None,
                star_rating=star,
                user_rating=round(rng.uniform(3.4, 4.8), 1),
                address=f"{rng.randint(1, 199)} {rng.choice(NEIGHBORHOODS)}, {city}",
                nightly_rate=nightly,
                total_rate=round(nightly * nights, 2),
                room_type=rng.choice(["Standard Room", "Queen Room", "King Room", "Double Room"]),
                amenities=rng.sample(AMENITIES, rng.randint(3, 5)),
                source=self.name,
            ))

        return sorted(hotels, key=lambda h: h.nightly_rate)


class StaticFlights:
    """Flight chain fallback: a flat round-trip estimate for the party."""

    name = "static_flights"

    async def search(self, criteria: SearchCriteria) -> list[FlightOption]:
        if not criteria.origin:
            return []

        rng = _rng("flight", criteria.origin, criteria.destination.lower(), criteria.start_date.isoformat())
        dep_hour = rng.choice([7, 9, 11, 14, 17])
        departure = datetime(
            criteria.start_date.year, criteria.start_date.month, criteria.start_date.day,
            dep_hour, 0, tzinfo=timezone.utc,
        )
        duration = rng.randint(5, 13) * 60
        return [
            FlightOption(
                airline_code="XX",
                airline_name="Estimated fare",
                flight_numbers="",
                origin_airport=criteria.origin[:3].upper(),
                destination_airport=criteria.destination[:3].upper(),
                departure_time=departure,
                arrival_time=departure + timedelta(minutes=duration),
                duration_minutes=duration,
                stops=1,
                price=STATIC_ROUND_TRIP_FARE * criteria.traveler_count,
                source=self.name,
            )
        ]


static_hotels = StaticHotels()
static_flights = StaticFlights()
