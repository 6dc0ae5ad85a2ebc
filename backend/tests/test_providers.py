from datetime import date

import httpx
import pytest

from tripsmith.config import settings
from tripsmith.errors import ProviderError, ProviderUnavailable
from tripsmith.schemas.search import SearchCriteria
from tripsmith.services.providers.amadeus_client import AmadeusClient
from tripsmith.services.providers.google_places_client import GooglePlacesClient
from tripsmith.services.providers.hotels_com_client import HotelsComClient
from tripsmith.services.providers.reddit_client import RedditClient, extract_venue_names
from tripsmith.services.providers.static_data import StaticFlights, StaticHotels


def _criteria(**overrides) -> SearchCriteria:
    data = {
        "destination": "Paris",
        "start_date": date(2026, 6, 1),
        "end_date": date(2026, 6, 3),
        "traveler_count": 2,
    }
    data.update(overrides)
    return SearchCriteria(**data)


def _mock_client(base_url: str, handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler))


# --- Amadeus ---

FLIGHT_OFFERS = {
    "data": [
        {
            "price": {"grandTotal": "1412.80", "currency": "USD"},
            "itineraries": [{
                "duration": "PT7H25M",
                "segments": [{
                    "carrierCode": "AF", "number": "7",
                    "departure": {"iataCode": "JFK", "at": "2026-06-01T18:30:00"},
                    "arrival": {"iataCode": "CDG", "at": "2026-06-02T07:55:00"},
                }],
            }],
            "travelerPricings": [{"fareDetailsBySegment": [{"cabin": "ECONOMY"}]}],
        },
        {"price": {"grandTotal": "99"}, "itineraries": []},
    ]
}


@pytest.fixture
def amadeus_keys(monkeypatch):
    monkeypatch.setattr(settings, "amadeus_client_id", "id")
    monkeypatch.setattr(settings, "amadeus_client_secret", "secret")


def _amadeus(handler) -> AmadeusClient:
    client = AmadeusClient()
    client._client = _mock_client(settings.amadeus_base_url, handler)
    return client


def _amadeus_handler(routes: dict):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/security/oauth2/token":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        assert request.headers["Authorization"] == "Bearer tok"
        return routes[request.url.path](request)
    return handler


async def test_amadeus_flight_offers_transform(amadeus_keys):
    seen = {}

    def offers(request):
        seen.update(request.url.params)
        return httpx.Response(200, json=FLIGHT_OFFERS)

    client = _amadeus(_amadeus_handler({"/v2/shopping/flight-offers": offers}))
    flights = await client.search_flight_offers(_criteria(origin="JFK"))

    assert seen["originLocationCode"] == "JFK"
    assert seen["destinationLocationCode"] == "PAR"
    assert seen["adults"] == "2"
    assert len(flights) == 1
    offer = flights[0]
    assert offer.airline_name == "Air France"
    assert offer.flight_numbers == "AF7"
    assert offer.duration_minutes == 445
    assert offer.price == 1412.80
    assert offer.source == "amadeus"


async def test_amadeus_hotel_offers_transform(amadeus_keys):
    routes = {
        "/v1/reference-data/locations/hotels/by-city": lambda r: httpx.Response(
            200, json={"data": [{"hotelId": "HLPAR001"}, {"hotelId": "HLPAR002"}]}
        ),
        "/v3/shopping/hotel-offers": lambda r: httpx.Response(200, json={"data": [
            {
                "hotel": {"name": "HOTEL LUTETIA", "latitude": 48.851, "longitude": 2.327},
                "offers": [{
                    "price": {"total": "700.00", "currency": "EUR"},
                    "room": {"typeEstimated": {"category": "DELUXE_ROOM"}},
                }],
            },
            {"hotel": {"name": "NO OFFERS"}, "offers": []},
        ]}),
    }
    client = _amadeus(_amadeus_handler(routes))

    hotels = await client.search_hotel_offers(_criteria())

    assert len(hotels) == 1
    assert hotels[0].hotel_name == "Hotel Lutetia"
    assert hotels[0].nightly_rate == 350.0
    assert hotels[0].total_rate == 700.0
    assert hotels[0].currency == "EUR"
    assert hotels[0].coordinates.lat == 48.851


async def test_amadeus_error_status_raises_provider_error(amadeus_keys):
    client = _amadeus(_amadeus_handler({
        "/v2/shopping/flight-offers": lambda r: httpx.Response(500, json={}),
    }))
    with pytest.raises(ProviderError):
        await client.search_flight_offers(_criteria(origin="JFK"))


async def test_amadeus_unconfigured_is_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "amadeus_client_id", "")
    with pytest.raises(ProviderUnavailable):
        await AmadeusClient().search_hotel_offers(_criteria())


def test_amadeus_duration_parser():
    assert AmadeusClient._parse_duration("PT2H30M") == 150
    assert AmadeusClient._parse_duration("PT45M") == 45
    assert AmadeusClient._parse_duration("") == 0


# --- Hotels.com ---

async def test_hotels_com_prefers_city_destination(monkeypatch):
    monkeypatch.setattr(settings, "rapidapi_key", "key")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/suggest":
            return httpx.Response(200, json={"result": "OK", "data": [
                {"type": "HOTEL", "hotelId": "9"},
                {"type": "CITY", "destinationId": "504261"},
            ]})
        seen.update(request.url.params)
        return httpx.Response(200, json={"data": {"body": {"searchResults": {"results": [
            {
                "name": "Hotel Regina",
                "starRating": 4,
                "ratePlan": {"price": {"exactCurrent": 210.5, "info": {"currency": "USD"}}},
                "address": {"streetAddress": "2 Place des Pyramides", "locality": "Paris"},
                "coordinate": {"lat": 48.863, "lon": 2.332},
            },
            {"name": "No Price Hotel"},
        ]}}}})

    client = HotelsComClient()
    client._client = _mock_client(settings.hotels_com_base_url, handler)
    hotels = await client.search(_criteria())

    assert seen["destinationId"] == "504261"
    assert [h.hotel_name for h in hotels] == ["Hotel Regina"]
    assert hotels[0].total_rate == 421.0
    assert hotels[0].address == "2 Place des Pyramides, Paris"
    assert hotels[0].source == "hotels_com"


async def test_hotels_com_without_key_is_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "rapidapi_key", "")
    with pytest.raises(ProviderUnavailable):
        await HotelsComClient().search(_criteria())


# --- Google Places ---

async def test_google_places_maps_types_and_price(monkeypatch):
    monkeypatch.setattr(settings, "google_places_api_key", "key")
    queries = []

    def handler(request: httpx.Request) -> httpx.Response:
        queries.append(request.url.params["query"])
        return httpx.Response(200, json={"status": "OK", "results": [{
            "name": "Le Petit Vendôme",
            "types": ["restaurant", "food", "point_of_interest"],
            "rating": 4.6,
            "user_ratings_total": 1200,
            "price_level": 2,
            "geometry": {"location": {"lat": 48.868, "lng": 2.329}},
            "formatted_address": "8 Rue des Capucines, Paris",
        }]})

    client = GooglePlacesClient()
    client._client = _mock_client(settings.google_places_base_url, handler)
    candidates = await client.search(_criteria(categories=["food"]))

    assert queries == ["best local restaurants in Paris"]
    [place] = candidates
    assert place.category == "dining"
    assert place.estimated_cost == 35.0
    assert place.confidence == pytest.approx(0.824)
    assert place.source_tags == ["google_places"]


async def test_google_places_denied_everywhere_raises(monkeypatch):
    monkeypatch.setattr(settings, "google_places_api_key", "key")
    client = GooglePlacesClient()
    client._client = _mock_client(
        settings.google_places_base_url,
        lambda r: httpx.Response(200, json={"status": "REQUEST_DENIED", "results": []}),
    )
    with pytest.raises(ProviderError):
        await client.search(_criteria(categories=["culture"]))


# --- Reddit ---

POSTS = [
    {
        "id": "a1",
        "title": "Paris trip report",
        "selftext": "Had dinner and we ate at Chez Janou, highly recommend. Also visited Rodin Museum in the morning.",
        "score": 40,
    },
    {
        "id": "b2",
        "title": "Must see in Paris?",
        "selftext": "Rodin Museum is amazing. Skip the overpriced cafes.",
        "score": 12,
    },
    {
        "id": "a1",
        "title": "Paris trip report",
        "selftext": "Had dinner and we ate at Chez Janou, highly recommend. Also visited Rodin Museum in the morning.",
    },
]


def test_reddit_mining_counts_mentions_once_per_post():
    candidates = RedditClient().mine_mentions(POSTS, "Paris")

    assert [c.name for c in candidates] == ["Rodin Museum", "Chez Janou"]
    museum, janou = candidates
    assert museum.mention_count == 2
    assert museum.category == "culture"
    assert janou.mention_count == 1
    assert janou.category == "dining"
    assert all(c.source_tags == ["reddit"] for c in candidates)


def test_extract_venue_names_handles_quotes_and_articles():
    names = extract_venue_names('Go to The Louvre early. Try "Du Pain et des Idées" for pastries.')
    assert "Louvre" in names
    assert "Du Pain et des Idées" in names


async def test_reddit_search_sends_user_agent(monkeypatch):
    monkeypatch.setattr(settings, "reddit_enabled", True)
    agents = []

    def handler(request: httpx.Request) -> httpx.Response:
        agents.append(request.headers["User-Agent"])
        return httpx.Response(200, json={"data": {"children": [{"data": POSTS[0]}]}})

    client = RedditClient()
    client._client = httpx.AsyncClient(
        base_url=settings.reddit_base_url,
        headers={"User-Agent": settings.reddit_user_agent},
        transport=httpx.MockTransport(handler),
    )
    candidates = await client.search(_criteria(categories=["food"]))

    assert len(agents) == 2
    assert set(agents) == {settings.reddit_user_agent}
    assert {c.name for c in candidates} == {"Chez Janou", "Rodin Museum"}


# --- Static datasets ---

async def test_static_hotels_are_deterministic():
    first = await StaticHotels().search(_criteria())
    second = await StaticHotels().search(_criteria())
    assert first == second
    assert first and all(h.source == "static_hotels" for h in first)
    assert [h.nightly_rate for h in first] == sorted(h.nightly_rate for h in first)


async def test_static_flights_scale_with_party():
    [flight] = await StaticFlights().search(_criteria(origin="JFK", traveler_count=3))
    assert flight.price == 648.0 * 3
    assert await StaticFlights().search(_criteria()) == []
