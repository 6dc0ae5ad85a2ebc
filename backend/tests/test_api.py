import pytest
from fastapi.testclient import TestClient

from conftest import FakeSource, failing_source, make_candidate
from tripsmith.main import app
from tripsmith.routers import itineraries, search
from tripsmith.services.itinerary_service import ItineraryService
from tripsmith.services.planner_config import AggregatorConfig
from tripsmith.services.providers.base import ProviderChain
from tripsmith.services.providers.static_data import StaticHotels
from tripsmith.services.recommendation_service import RecommendationAggregator

client = TestClient(app)

TRIP = {
    "destination": "Paris",
    "start_date": "2026-06-01",
    "end_date": "2026-06-04",
    "traveler_count": 2,
    "total_budget": 4000,
    "interest_categories": ["culture", "food"],
}


@pytest.fixture
def fake_service(cache, monkeypatch):
    venues = FakeSource("google_places", [
        make_candidate("Musée Rodin", "culture", estimated_cost=14),
        make_candidate("Le Comptoir", "dining", estimated_cost=45),
    ])
    aggregator = RecommendationAggregator(
        venue_source=ProviderChain("venues", [venues]),
        mention_source=ProviderChain("mentions", [failing_source("reddit")]),
        config=AggregatorConfig(enable_enrichment=False),
    )
    service = ItineraryService(
        aggregator=aggregator,
        hotel_chain=ProviderChain("hotels", [failing_source("amadeus")], fallback=StaticHotels()),
        cache=cache,
    )
    monkeypatch.setattr(itineraries, "itinerary_service", service)
    return service


def test_health():
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "tripsmith"}


def test_generate_rejects_end_before_start():
    resp = client.post("/api/itineraries", json={**TRIP, "end_date": "2026-05-30"})
    assert resp.status_code == 422


def test_generate_rejects_empty_interests():
    resp = client.post("/api/itineraries", json={**TRIP, "interest_categories": []})
    assert resp.status_code == 422


def test_generate_then_fetch_by_id(fake_service):
    resp = client.post("/api/itineraries", json=TRIP)
    assert resp.status_code == 200
    body = resp.json()
    assert body["destination"] == "Paris"
    assert len(body["days"]) == 3
    assert body["generated_by"] == "data-driven"
    assert body["hotels"] and body["hotels"][0]["source"] == "static_hotels"

    fetched = client.get(f"/api/itineraries/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]


def test_unknown_itinerary_is_404(fake_service):
    resp = client.get("/api/itineraries/does-not-exist")
    assert resp.status_code == 404


def test_flight_search_requires_origin():
    resp = client.post("/api/search/flights", json={
        "destination": "Paris", "start_date": "2026-06-01", "end_date": "2026-06-04",
    })
    assert resp.status_code == 400


def test_hotel_search_flags_static_fallback(monkeypatch):
    chain = ProviderChain("hotels", [failing_source("amadeus")], fallback=StaticHotels())
    monkeypatch.setattr(search, "hotel_chain", chain)

    resp = client.post("/api/search/hotels", json={
        "destination": "Lisbon", "start_date": "2026-06-01", "end_date": "2026-06-04",
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["is_fallback"] is True
    assert body["source"] == "static_hotels"
    assert body["items"]


def test_hotel_search_unavailable_is_503(monkeypatch):
    monkeypatch.setattr(search, "hotel_chain", ProviderChain("hotels", [failing_source("amadeus")]))

    resp = client.post("/api/search/hotels", json={
        "destination": "Lisbon", "start_date": "2026-06-01", "end_date": "2026-06-04",
    })

    assert resp.status_code == 503
